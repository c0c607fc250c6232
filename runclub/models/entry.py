from runclub.extensions import db
from runclub.helpers.time import utcnow

class Entry(db.Model):
    __tablename__ = "entries"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Several entries per user per day are allowed (no unique constraint)
    entry_date = db.Column(db.Date, nullable=False, index=True)

    km_run = db.Column(db.Float, nullable=False, default=0)
    hours = db.Column(db.Float, nullable=False, default=0)
    pace = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="entries")
    upload = db.relationship(
        "Upload",
        back_populates="entry",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("km_run >= 0", name="ck_entries_km_run"),
        db.CheckConstraint("hours >= 0", name="ck_entries_hours"),
    )
