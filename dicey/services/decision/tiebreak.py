"""Tie detection and randomized tiebreakers.

Dice, coin and spinner are presentation variants of one uniform draw over
the tied options; they differ only in how many options they can represent
and in the detail the client uses to replay the animation.
"""
import math
import random

from dicey.services.decision.tally import find_tied_options
from dicey.services.errors import ValidationError

RANDOM = "random"
DICE = "dice"
COIN = "coin"
SPINNER = "spinner"

# method -> (min tied options, max tied options or None for unbounded)
TIEBREAKER_LIMITS = {
    RANDOM: (2, None),
    DICE: (2, 6),
    COIN: (2, 2),
    SPINNER: (2, None),
}

TIEBREAKER_METHODS = tuple(TIEBREAKER_LIMITS)

_system_random = random.SystemRandom()


def normalize_tiebreaker(method):
    if method is None:
        return None
    name = str(method).strip().lower()
    if name not in TIEBREAKER_LIMITS:
        allowed = ", ".join(TIEBREAKER_METHODS)
        raise ValidationError(
            f"Unknown tiebreaker '{method}'. Choose one of: {allowed}."
        )
    return name


def validate_tiebreaker(method, tied_count):
    name = normalize_tiebreaker(method)
    if name is None:
        raise ValidationError("A tiebreaker method is required to settle a tie.")
    minimum, maximum = TIEBREAKER_LIMITS[name]
    if tied_count < minimum or (maximum is not None and tied_count > maximum):
        if minimum == maximum:
            expected = f"exactly {minimum}"
        elif maximum is None:
            expected = f"at least {minimum}"
        else:
            expected = f"between {minimum} and {maximum}"
        raise ValidationError(
            f"The {name} tiebreaker needs {expected} tied options, got {tied_count}."
        )
    return name


def break_tie(tied_option_ids, method=RANDOM, rng=None):
    """Pick one of ``tied_option_ids`` uniformly at random.

    Returns ``{"winner_id", "method", "detail"}``. ``detail`` is what the
    chosen method shows: the die face, the coin side (heads is the first
    tied option) or the spinner angle inside the winner's arc.
    """
    tied = list(tied_option_ids)
    name = validate_tiebreaker(method, len(tied))
    rng = rng or _system_random

    index = rng.randrange(len(tied))

    if name == DICE:
        detail = {"face": index + 1}
    elif name == COIN:
        detail = {"side": "heads" if index == 0 else "tails"}
    elif name == SPINNER:
        arc = 360.0 / len(tied)
        upper = (index + 1) * arc
        # The winner's arc is [index * arc, upper); float error must not push
        # the angle onto the next option's boundary.
        angle = (index + rng.random()) * arc
        if angle >= upper:
            angle = math.nextafter(upper, 0.0)
        detail = {"angle": angle}
    else:
        detail = {}

    return {"winner_id": tied[index], "method": name, "detail": detail}


def resolve_winner(option_results, method=None, default_method=RANDOM, rng=None):
    """Turn tally rows into a single winner.

    A sole leader wins outright and no tiebreaker is recorded. Otherwise
    ``method`` (or ``default_method`` when none was requested) settles it.
    """
    top_vote_count, tied = find_tied_options(option_results)
    if not tied:
        raise ValidationError("There are no options to choose a winner from.")

    if len(tied) == 1:
        return {
            "winner_id": tied[0],
            "tiebreaker_used": None,
            "tiebreaker_detail": None,
            "tied_option_ids": tied,
            "top_vote_count": top_vote_count,
        }

    outcome = break_tie(tied, method or default_method, rng=rng)
    return {
        "winner_id": outcome["winner_id"],
        "tiebreaker_used": outcome["method"],
        "tiebreaker_detail": outcome["detail"],
        "tied_option_ids": tied,
        "top_vote_count": top_vote_count,
    }
