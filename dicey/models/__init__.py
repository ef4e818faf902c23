from dicey.models.option import Option
from dicey.models.participant import Participant
from dicey.models.room import Room
from dicey.models.user import User
from dicey.models.vote import Vote

__all__ = [
    "User",
    "Room",
    "Option",
    "Participant",
    "Vote",
]
