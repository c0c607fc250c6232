from runclub.extensions import db
from runclub.helpers.time import utcnow

CATEGORIES = ("advanced", "intermediate")
GENDER_RESTRICTIONS = ("male", "female", "both")

class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)

    # Public-facing name, e.g. "June 50K Challenge"
    name = db.Column(db.String(160), nullable=False)

    # Ranking window, inclusive on both ends
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    category = db.Column(db.String(20), nullable=False)
    gender_restriction = db.Column(db.String(10), nullable=False, default="both")
    km_goal = db.Column(db.Float, nullable=False, default=0)

    # Set manually by an admin; there is no way back
    is_ended = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    creator = db.relationship("User")

    participants = db.relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    closed_dates = db.relationship(
        "EventClosedDate",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("start_date < end_date", name="ck_events_dates"),
        db.CheckConstraint("category IN ('advanced', 'intermediate')", name="ck_events_category"),
        db.CheckConstraint(
            "gender_restriction IN ('male', 'female', 'both')",
            name="ck_events_gender_restriction",
        ),
        db.CheckConstraint("km_goal >= 0", name="ck_events_km_goal"),
    )
