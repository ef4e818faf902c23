"""Storage seam for the room decision services.

``RoomService`` talks only to a ``RoomRepository``. The SQLAlchemy
implementation below is what the web app uses; anything else that honours the
same contract (the tests ship an in-memory one) can stand in for it.
"""
import logging
from abc import ABC, abstractmethod

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from dicey.extensions import db
from dicey.models import Option, Participant, Room, User, Vote
from dicey.services.decision.lifecycle import (
    COMPLETED,
    RESULTS,
    VOTING,
    check_accepts_options,
    check_accepts_votes,
)
from dicey.services.errors import InvalidState, NotFound
from dicey.services.security import generate_room_code

logger = logging.getLogger(__name__)

ROOM_CODE_ATTEMPTS = 10


class RoomRepository(ABC):
    @abstractmethod
    def get_user(self, user_id):
        """Return the user or None."""

    @abstractmethod
    def create_room(self, owner_id, title, description, max_participants,
                    allow_participants_to_add_options):
        """Persist a new room with a unique code and enrol its owner."""

    @abstractmethod
    def get_room(self, room_id):
        """Return the room or None."""

    @abstractmethod
    def get_room_by_code(self, code):
        """Return the room with this (already normalized) code or None."""

    @abstractmethod
    def list_rooms_for_user(self, user_id):
        """Rooms the user participates in, newest first."""

    @abstractmethod
    def transition_room(self, room_id, from_status, to_status):
        """Move the room from ``from_status`` to ``to_status``.

        Returns False if the room was no longer in ``from_status``.
        """

    @abstractmethod
    def delete_room(self, room_id):
        """Delete the room with its options, participants and votes."""

    @abstractmethod
    def add_option(self, room_id, text, created_by_id):
        """Persist a new option.

        Raises ``InvalidState`` if the room no longer accepts options at the
        time of the write.
        """

    @abstractmethod
    def get_option(self, option_id):
        """Return the option or None."""

    @abstractmethod
    def list_options(self, room_id):
        """Options of the room in creation order."""

    @abstractmethod
    def add_participant(self, room_id, user_id):
        """Enrol the user; return the existing membership if already enrolled."""

    @abstractmethod
    def is_participant(self, room_id, user_id):
        """Whether the user has joined the room."""

    @abstractmethod
    def count_participants(self, room_id):
        """Number of members of the room."""

    @abstractmethod
    def get_user_vote(self, room_id, user_id):
        """The user's current vote in the room or None."""

    @abstractmethod
    def list_votes(self, room_id):
        """All votes cast in the room."""

    @abstractmethod
    def record_vote(self, room_id, user_id, option_id, enroll=False):
        """Replace the user's vote in the room as one transactional unit.

        With ``enroll`` the user is also added as a participant in the same
        unit, so a failed write never leaves a vote without a membership.
        Raises ``InvalidState`` if the room is not open for voting at the
        time of the write.
        """

    @abstractmethod
    def complete_room(self, room_id, resolve):
        """Atomically finalize the room.

        ``resolve(options, votes)`` is called with the current options and
        votes and returns a ``resolve_winner`` outcome; it runs inside the
        same unit of work as the write. Returns ``(room, resolved)`` where
        ``resolved`` is False when the room had already been completed, in
        which case the recorded winner is left untouched.
        """


class SqlAlchemyRoomRepository(RoomRepository):
    def __init__(self, code_length=6):
        self.code_length = code_length

    def get_user(self, user_id):
        return db.session.get(User, user_id)

    def create_room(self, owner_id, title, description, max_participants,
                    allow_participants_to_add_options):
        code = self._unused_code()
        room = Room(
            title=title,
            description=description,
            code=code,
            owner_id=owner_id,
            max_participants=max_participants,
            allow_participants_to_add_options=allow_participants_to_add_options,
        )
        try:
            db.session.add(room)
            db.session.flush()
            db.session.add(Participant(room_id=room.id, user_id=owner_id))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return room

    def _unused_code(self):
        for _ in range(ROOM_CODE_ATTEMPTS):
            code = generate_room_code(self.code_length)
            if self.get_room_by_code(code) is None:
                return code
            logger.debug("Room code %s already taken, generating another", code)
        raise RuntimeError("Could not generate a unique room code.")

    def get_room(self, room_id):
        return db.session.get(Room, room_id)

    def get_room_by_code(self, code):
        return Room.query.filter_by(code=code).first()

    def list_rooms_for_user(self, user_id):
        return (
            Room.query.join(Participant, Participant.room_id == Room.id)
            .filter(Participant.user_id == user_id)
            .order_by(Room.created_at.desc(), Room.id.desc())
            .all()
        )

    def transition_room(self, room_id, from_status, to_status):
        try:
            result = db.session.execute(
                update(Room)
                .where(
                    Room.id == room_id,
                    Room.status == from_status,
                    Room.is_completed.is_(False),
                )
                .values(status=to_status)
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result.rowcount == 1

    def delete_room(self, room_id):
        room = self.get_room(room_id)
        if room is None:
            return
        try:
            # Options, participants and votes go with it through the
            # relationship cascades on Room.
            db.session.delete(room)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def _locked_room(self, room_id):
        # Re-read inside the current transaction so a close or completion
        # committed since the caller's checks is seen before writing.
        room = db.session.get(
            Room, room_id, with_for_update=True, populate_existing=True
        )
        if room is None:
            raise NotFound("Room not found.")
        return room

    def add_option(self, room_id, text, created_by_id):
        option = Option(room_id=room_id, text=text, created_by_id=created_by_id)
        try:
            check_accepts_options(self._locked_room(room_id))
            db.session.add(option)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return option

    def get_option(self, option_id):
        return db.session.get(Option, option_id)

    def list_options(self, room_id):
        return (
            Option.query.filter_by(room_id=room_id)
            .order_by(Option.created_at, Option.id)
            .all()
        )

    def add_participant(self, room_id, user_id):
        existing = Participant.query.filter_by(room_id=room_id, user_id=user_id).first()
        if existing:
            return existing

        participant = Participant(room_id=room_id, user_id=user_id)
        try:
            db.session.add(participant)
            db.session.commit()
        except IntegrityError:
            # Someone else enrolled the same user in between.
            db.session.rollback()
            return Participant.query.filter_by(room_id=room_id, user_id=user_id).one()
        except Exception:
            db.session.rollback()
            raise
        return participant

    def is_participant(self, room_id, user_id):
        return (
            Participant.query.filter_by(room_id=room_id, user_id=user_id).first()
            is not None
        )

    def count_participants(self, room_id):
        return Participant.query.filter_by(room_id=room_id).count()

    def get_user_vote(self, room_id, user_id):
        return Vote.query.filter_by(room_id=room_id, user_id=user_id).first()

    def list_votes(self, room_id):
        return Vote.query.filter_by(room_id=room_id).order_by(Vote.id).all()

    def record_vote(self, room_id, user_id, option_id, enroll=False):
        # A concurrent write for the same (room, user) trips the unique
        # constraint; the retry makes the later request's choice stick.
        for attempt in range(2):
            try:
                check_accepts_votes(self._locked_room(room_id))
                if enroll and not self.is_participant(room_id, user_id):
                    db.session.add(Participant(room_id=room_id, user_id=user_id))
                existing_votes = Vote.query.filter_by(
                    room_id=room_id, user_id=user_id
                ).all()
                for existing in existing_votes:
                    db.session.delete(existing)
                # Deletes must reach the database before the insert, or the
                # unique constraint on (room_id, user_id) fires.
                db.session.flush()
                vote = Vote(room_id=room_id, user_id=user_id, option_id=option_id)
                db.session.add(vote)
                db.session.commit()
                return vote
            except IntegrityError:
                db.session.rollback()
                if attempt:
                    raise
                logger.warning(
                    "Concurrent vote write for room %s user %s, retrying",
                    room_id,
                    user_id,
                )
            except Exception:
                db.session.rollback()
                raise

    def complete_room(self, room_id, resolve):
        try:
            room = db.session.get(
                Room, room_id, with_for_update=True, populate_existing=True
            )
            if room is None:
                raise NotFound("Room not found.")
            if room.is_completed:
                db.session.rollback()
                return self.get_room(room_id), False

            outcome = resolve(self.list_options(room_id), self.list_votes(room_id))

            result = db.session.execute(
                update(Room)
                .where(
                    Room.id == room_id,
                    Room.is_completed.is_(False),
                    Room.status.in_((VOTING, RESULTS)),
                )
                .values(
                    is_completed=True,
                    status=COMPLETED,
                    winning_option_id=outcome["winner_id"],
                    tiebreaker_used=outcome["tiebreaker_used"],
                    tiebreaker_detail=outcome["tiebreaker_detail"],
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.session.rollback()
                room = db.session.get(Room, room_id, populate_existing=True)
                if room is not None and room.is_completed:
                    return room, False
                raise InvalidState("Voting has not been opened for this room.")

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return db.session.get(Room, room_id, populate_existing=True), True
