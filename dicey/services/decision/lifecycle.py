from dicey.services.errors import InvalidState, PermissionDenied

WAITING = "WAITING"
VOTING = "VOTING"
RESULTS = "RESULTS"
COMPLETED = "COMPLETED"

ROOM_STATUSES = (WAITING, VOTING, RESULTS, COMPLETED)

# Linear lifecycle: each status has exactly one successor, COMPLETED has none.
NEXT_STATUS = {
    WAITING: VOTING,
    VOTING: RESULTS,
    RESULTS: COMPLETED,
}

MIN_OPTIONS_TO_VOTE = 2


def room_status(room):
    if room.is_completed:
        return COMPLETED
    return room.status or WAITING


def is_owner(room, user_id):
    return user_id is not None and room.owner_id == user_id


def require_owner(room, user_id, action):
    if not is_owner(room, user_id):
        raise PermissionDenied(f"Only the room owner can {action}.")


def check_transition(room, target):
    current = room_status(room)
    if current == COMPLETED:
        raise InvalidState("This decision has already been completed.")
    if NEXT_STATUS.get(current) != target:
        raise InvalidState(f"Cannot move a room from {current} to {target}.")
    return current


def check_open_voting(room, option_count):
    check_transition(room, VOTING)
    if option_count < MIN_OPTIONS_TO_VOTE:
        raise InvalidState(
            f"At least {MIN_OPTIONS_TO_VOTE} options are needed to open voting."
        )


def check_accepts_options(room):
    status = room_status(room)
    if status == COMPLETED:
        raise InvalidState("This decision has already been completed.")
    if status not in (WAITING, VOTING):
        raise InvalidState("Voting is closed; no more options can be added.")


def check_accepts_votes(room):
    status = room_status(room)
    if status == COMPLETED:
        raise InvalidState("This room is closed; the decision has been made.")
    if status != VOTING:
        raise InvalidState("Voting is not open for this room.")


def check_can_finalize(room):
    """Finalizing is legal from VOTING (closing it implicitly) or RESULTS."""
    status = room_status(room)
    if status == WAITING:
        raise InvalidState("Voting has not been opened for this room.")
    return status
