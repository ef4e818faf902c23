from datetime import datetime, timezone

from dicey.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class Room(db.Model):
    __tablename__ = "rooms"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    code = db.Column(db.String(16), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    max_participants = db.Column(db.Integer, nullable=True)
    allow_participants_to_add_options = db.Column(
        db.Boolean, nullable=False, default=True
    )
    # "WAITING", "VOTING", "RESULTS", "COMPLETED"
    status = db.Column(db.String(20), nullable=False, default="WAITING")
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    winning_option_id = db.Column(db.Integer, nullable=True)
    tiebreaker_used = db.Column(db.String(20), nullable=True)
    tiebreaker_detail = db.Column(db.JSON, nullable=True)

    options = db.relationship(
        "Option",
        backref="room",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Option.id",
    )
    participants = db.relationship(
        "Participant", backref="room", lazy=True, cascade="all, delete-orphan"
    )
    votes = db.relationship(
        "Vote", backref="room", lazy=True, cascade="all, delete-orphan"
    )
