from functools import wraps
from typing import Optional

from flask import g, session

from runclub.errors import AuthError, ForbiddenError
from runclub.extensions import db
from runclub.models import User

def login_user(user: User) -> None:
    session.clear()
    session["user_id"] = user.id
    session["is_admin"] = bool(user.is_admin)
    session.permanent = True

def logout_user() -> None:
    session.clear()

def current_user() -> Optional[User]:
    """
    The logged-in User row, or None.
    A session pointing at a deleted user is treated as logged out.
    """
    user_id = session.get("user_id")
    if not user_id:
        return None

    user = db.session.get(User, user_id)
    if not user:
        session.clear()
        return None
    return user

def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        if not user:
            raise AuthError("Unauthorized")
        g.user = user
        return view(*args, **kwargs)
    return wrapped

def admin_required(view):
    """Admin flag is read from the DB row, so revoking it takes effect at once."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        if not user:
            raise AuthError("Unauthorized")
        if not user.is_admin:
            raise ForbiddenError("Forbidden")
        g.user = user
        return view(*args, **kwargs)
    return wrapped
