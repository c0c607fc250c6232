from runclub.extensions import db
from runclub.helpers.time import utcnow

GENDERS = ("male", "female")

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Nullable only for the seeded primary admin, who never joins events
    gender = db.Column(db.String(10), nullable=True)

    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    entries = db.relationship(
        "Entry",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    uploads = db.relationship(
        "Upload",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    participations = db.relationship(
        "EventParticipant",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("gender IN ('male', 'female')", name="ck_users_gender"),
    )
