from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from runclub.errors import ConflictError, ValidationError, store_errors
from runclub.extensions import db
from runclub.models import GENDERS, User

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def normalize_gender(raw: str) -> Optional[str]:
    k = (raw or "").strip().lower()
    if k in ("m", "male"):
        return "male"
    if k in ("f", "female"):
        return "female"
    return None

def create_user(email: str, password: str, gender: str, is_admin: bool = False) -> User:
    email = normalize_email(email)
    if not email or not password or not gender:
        raise ValidationError("Missing fields")

    gender_val = normalize_gender(gender)
    if gender_val not in GENDERS:
        raise ValidationError("Invalid gender")

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        gender=gender_val,
        is_admin=is_admin,
    )
    db.session.add(user)

    with store_errors("Failed to register"):
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise ConflictError("Email already registered") from e

    return user

def authenticate(email: str, password: str) -> Optional[User]:
    email = normalize_email(email)
    if not email or not password:
        return None

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        return None
    return user

def ensure_primary_admin() -> User:
    """
    Seed the primary admin account (DEFAULT_ADMIN_EMAIL) if it is missing.
    Safe to call on every boot.
    """
    email = normalize_email(current_app.config["DEFAULT_ADMIN_EMAIL"])

    admin = User.query.filter_by(email=email).first()
    if admin:
        return admin

    admin = User(
        email=email,
        password_hash=generate_password_hash(current_app.config["DEFAULT_ADMIN_PASSWORD"]),
        gender=None,
        is_admin=True,
    )
    db.session.add(admin)
    db.session.commit()
    current_app.logger.info("[BOOTSTRAP] Seeded primary admin account %r", email)
    return admin

def is_primary_admin(user: User) -> bool:
    return user.email == normalize_email(current_app.config["DEFAULT_ADMIN_EMAIL"])
