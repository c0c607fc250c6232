from runclub.extensions import db
from runclub.helpers.time import utcnow

class Upload(db.Model):
    __tablename__ = "uploads"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Standalone uploads have no entry; an entry has at most one upload
    entry_id = db.Column(
        db.Integer,
        db.ForeignKey("entries.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    )

    # Storage key inside UPLOAD_FOLDER
    filename = db.Column(db.String(255), nullable=False)
    originalname = db.Column(db.String(255), nullable=False)
    mimetype = db.Column(db.String(120), nullable=False)
    size = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="uploads")
    entry = db.relationship("Entry", back_populates="upload")
