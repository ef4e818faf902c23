def tally_votes(options, votes):
    """Count votes per option.

    ``options`` must be in creation order; every option gets a row, including
    those with no votes. Rows are ordered by descending count, with creation
    order breaking display ties.
    """
    option_counts = {option.id: 0 for option in options}

    for vote in votes:
        if vote.option_id in option_counts:
            option_counts[vote.option_id] += 1

    total_votes = sum(option_counts.values())

    option_results = []
    for position, option in enumerate(options):
        count = option_counts[option.id]
        percent = (count / total_votes * 100) if total_votes > 0 else 0
        option_results.append(
            {
                "option_id": option.id,
                "text": option.text,
                "vote_count": count,
                "percent": percent,
                "position": position,
            }
        )

    option_results.sort(key=lambda row: (-row["vote_count"], row["position"]))
    return option_results


def find_tied_options(option_results):
    """Return the top vote count and the option ids sharing it, in tally order."""
    top_vote_count = max((row["vote_count"] for row in option_results), default=0)
    tied = [
        row["option_id"]
        for row in option_results
        if row["vote_count"] == top_vote_count
    ]
    return top_vote_count, tied
