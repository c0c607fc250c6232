from sqlalchemy import UniqueConstraint
from runclub.extensions import db
from runclub.helpers.time import utcnow

class EventParticipant(db.Model):
    __tablename__ = "event_participants"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    event = db.relationship("Event", back_populates="participants")
    user = db.relationship("User", back_populates="participations")

    __table_args__ = (
        # The real guard against concurrent double-joins
        UniqueConstraint("event_id", "user_id", name="uq_event_participant"),
    )
