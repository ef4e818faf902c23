import logging

from dicey.services.decision.lifecycle import (
    RESULTS,
    VOTING,
    WAITING,
    check_accepts_options,
    check_accepts_votes,
    check_can_finalize,
    check_open_voting,
    check_transition,
    is_owner,
    require_owner,
    room_status,
)
from dicey.services.decision.participation import (
    check_capacity,
    check_option_permission,
    check_vote_target,
    require_member,
)
from dicey.services.decision.tally import tally_votes
from dicey.services.decision.tiebreak import (
    RANDOM,
    normalize_tiebreaker,
    resolve_winner,
)
from dicey.services.errors import InvalidState, NotFound, ValidationError
from dicey.services.security import normalize_room_code

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
OPTION_MAX_LENGTH = 200


class RoomService:
    """Room lifecycle, voting and decision resolution on top of a repository."""

    def __init__(self, repository, rng=None, default_tiebreaker=RANDOM):
        self.repository = repository
        self.rng = rng
        self.default_tiebreaker = normalize_tiebreaker(default_tiebreaker)

    # Lookups

    def _get_room(self, room_id):
        room = self.repository.get_room(room_id)
        if room is None:
            raise NotFound("Room not found.")
        return room

    def _require_member(self, room, user_id):
        require_member(room, user_id, self.repository.is_participant(room.id, user_id))

    def get_room_by_code(self, code):
        room = self.repository.get_room_by_code(normalize_room_code(code))
        if room is None:
            raise NotFound("Room not found.")
        return room

    def get_room(self, room_id, user_id):
        room = self._get_room(room_id)
        self._require_member(room, user_id)
        return {
            "room": room,
            "status": room_status(room),
            "options": self.repository.list_options(room.id),
            "participant_count": self.repository.count_participants(room.id),
            "user_vote": self.repository.get_user_vote(room.id, user_id),
            "is_owner": is_owner(room, user_id),
        }

    def list_rooms_for_user(self, user_id):
        return self.repository.list_rooms_for_user(user_id)

    def list_options(self, room_id, user_id):
        room = self._get_room(room_id)
        self._require_member(room, user_id)
        return self.repository.list_options(room.id)

    # Room lifecycle

    def create_room(
        self,
        owner_id,
        title,
        description=None,
        max_participants=None,
        allow_participants_to_add_options=True,
    ):
        if self.repository.get_user(owner_id) is None:
            raise NotFound("User not found.")

        title = (title or "").strip()
        if not title:
            raise ValidationError("Room title is required.")
        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Room title must be at most {TITLE_MAX_LENGTH} characters."
            )

        description = (description or "").strip() or None

        if max_participants is not None:
            if isinstance(max_participants, bool) or not isinstance(
                max_participants, int
            ):
                raise ValidationError("Maximum participants must be a whole number.")
            if max_participants < 1:
                raise ValidationError("Maximum participants must be at least 1.")

        room = self.repository.create_room(
            owner_id=owner_id,
            title=title,
            description=description,
            max_participants=max_participants,
            allow_participants_to_add_options=bool(allow_participants_to_add_options),
        )
        logger.info("Room %s created by user %s with code %s", room.id, owner_id, room.code)
        return room

    def join_room(self, code, user_id):
        room = self.get_room_by_code(code)
        if self.repository.is_participant(room.id, user_id):
            return room

        check_capacity(room, self.repository.count_participants(room.id))
        self.repository.add_participant(room.id, user_id)
        logger.info("User %s joined room %s", user_id, room.id)
        return room

    def open_voting(self, room_id, owner_id):
        room = self._get_room(room_id)
        require_owner(room, owner_id, "open voting")
        check_open_voting(room, len(self.repository.list_options(room.id)))
        self._transition(room, WAITING, VOTING)
        return self._get_room(room_id)

    def close_voting(self, room_id, owner_id):
        room = self._get_room(room_id)
        require_owner(room, owner_id, "close voting")
        check_transition(room, RESULTS)
        self._transition(room, VOTING, RESULTS)
        return self._get_room(room_id)

    def _transition(self, room, from_status, to_status):
        if not self.repository.transition_room(room.id, from_status, to_status):
            raise InvalidState(
                f"Room is no longer {from_status}; it was changed by another request."
            )
        logger.info("Room %s moved from %s to %s", room.id, from_status, to_status)

    def delete_room(self, room_id, owner_id):
        room = self._get_room(room_id)
        require_owner(room, owner_id, "delete the room")
        self.repository.delete_room(room.id)
        logger.info("Room %s deleted by owner %s", room_id, owner_id)

    # Options and votes

    def add_option(self, room_id, text, user_id):
        room = self._get_room(room_id)
        check_option_permission(
            room, user_id, self.repository.is_participant(room.id, user_id)
        )
        check_accepts_options(room)

        text = (text or "").strip()
        if not text:
            raise ValidationError("Option text is required.")
        if len(text) > OPTION_MAX_LENGTH:
            raise ValidationError(
                f"Option text must be at most {OPTION_MAX_LENGTH} characters."
            )

        return self.repository.add_option(room.id, text, user_id)

    def cast_vote(self, room_id, option_id, user_id):
        room = self._get_room(room_id)
        check_accepts_votes(room)
        check_vote_target(room, self.repository.get_option(option_id))

        enroll = not (
            is_owner(room, user_id) or self.repository.is_participant(room.id, user_id)
        )
        if enroll:
            check_capacity(room, self.repository.count_participants(room.id))

        previous = self.repository.get_user_vote(room.id, user_id)
        previous_option_id = previous.option_id if previous is not None else None
        vote = self.repository.record_vote(room.id, user_id, option_id, enroll=enroll)
        if previous_option_id is not None:
            logger.info(
                "User %s replaced vote in room %s: option %s -> %s",
                user_id,
                room.id,
                previous_option_id,
                option_id,
            )
        return vote

    def get_tally(self, room_id, user_id=None):
        room = self._get_room(room_id)
        if user_id is not None:
            self._require_member(room, user_id)
        return tally_votes(
            self.repository.list_options(room.id), self.repository.list_votes(room.id)
        )

    # Decision

    def complete_decision(self, room_id, owner_id, tiebreaker=None):
        """Commit the winning option and mark the room completed.

        Calling it on an already completed room returns the recorded result
        without drawing again.
        """
        room = self._get_room(room_id)
        require_owner(room, owner_id, "complete the decision")
        if room.is_completed:
            return room

        check_can_finalize(room)
        method = normalize_tiebreaker(tiebreaker)

        def resolve(options, votes):
            if not votes:
                raise InvalidState("No votes have been cast yet.")
            return resolve_winner(
                tally_votes(options, votes),
                method=method,
                default_method=self.default_tiebreaker,
                rng=self.rng,
            )

        room, resolved = self.repository.complete_room(room.id, resolve)
        if resolved:
            logger.info(
                "Room %s completed: winner option %s, tiebreaker %s",
                room.id,
                room.winning_option_id,
                room.tiebreaker_used,
            )
        else:
            logger.info(
                "Room %s was already completed by another request; keeping option %s",
                room.id,
                room.winning_option_id,
            )
        return room
