from sqlalchemy import UniqueConstraint
from runclub.extensions import db
from runclub.helpers.time import utcnow

class EventClosedDate(db.Model):
    __tablename__ = "event_closed_dates"

    id = db.Column(db.Integer, primary_key=True)

    event_id = db.Column(
        db.Integer,
        db.ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    closed_date = db.Column(db.Date, nullable=False)

    created_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    event = db.relationship("Event", back_populates="closed_dates")
    closed_by = db.relationship("User")

    __table_args__ = (
        UniqueConstraint("event_id", "closed_date", name="uq_event_closed_date"),
    )
