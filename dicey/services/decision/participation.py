from dicey.services.decision.lifecycle import is_owner
from dicey.services.errors import (
    CapacityExceeded,
    NotFound,
    PermissionDenied,
    ValidationError,
)


def is_member(room, user_id, is_participant):
    return is_participant or is_owner(room, user_id)


def require_member(room, user_id, is_participant):
    if not is_member(room, user_id, is_participant):
        raise PermissionDenied("You are not a participant in this room.")


def check_capacity(room, participant_count):
    # Best effort: two joins racing for the last seat can both pass this check.
    if room.max_participants and participant_count >= room.max_participants:
        raise CapacityExceeded("Room is full.")


def check_option_permission(room, user_id, is_participant):
    require_member(room, user_id, is_participant)
    if not room.allow_participants_to_add_options and not is_owner(room, user_id):
        raise PermissionDenied("Only the room owner can add options.")


def check_vote_target(room, option):
    if option is None:
        raise NotFound("Option not found.")
    if option.room_id != room.id:
        raise ValidationError("That option belongs to a different room.")
