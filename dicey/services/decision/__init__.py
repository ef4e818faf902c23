from dicey.services.decision.lifecycle import (
    COMPLETED,
    RESULTS,
    ROOM_STATUSES,
    VOTING,
    WAITING,
    room_status,
)
from dicey.services.decision.tally import find_tied_options, tally_votes
from dicey.services.decision.tiebreak import (
    COIN,
    DICE,
    RANDOM,
    SPINNER,
    TIEBREAKER_METHODS,
    break_tie,
    resolve_winner,
    validate_tiebreaker,
)

__all__ = [
    "WAITING",
    "VOTING",
    "RESULTS",
    "COMPLETED",
    "ROOM_STATUSES",
    "room_status",
    "tally_votes",
    "find_tied_options",
    "RANDOM",
    "DICE",
    "COIN",
    "SPINNER",
    "TIEBREAKER_METHODS",
    "break_tie",
    "resolve_winner",
    "validate_tiebreaker",
]
