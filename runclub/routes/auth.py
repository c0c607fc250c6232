from flask import Blueprint, current_app, jsonify, request

from runclub.errors import AuthError, ValidationError
from runclub.helpers.account import authenticate, create_user
from runclub.helpers.auth import current_user, login_user, logout_user

auth_bp = Blueprint("auth", __name__)

def _payload():
    return request.get_json(silent=True) or request.form

@auth_bp.route("/api/register", methods=["POST"])
def register():
    """
    Create an account and log it in.
    Body: email, password, gender ("male" | "female").
    """
    data = _payload()
    user = create_user(data.get("email"), data.get("password"), data.get("gender"))
    login_user(user)

    current_app.logger.info("[AUTH] registered user #%s", user.id)
    return jsonify({"ok": True, "userId": user.id})

@auth_bp.route("/api/login", methods=["POST"])
def login():
    data = _payload()
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        raise ValidationError("Missing fields")

    user = authenticate(email, password)
    if not user:
        raise AuthError("Invalid credentials")

    login_user(user)
    return jsonify({"ok": True})

@auth_bp.route("/api/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"ok": True})

@auth_bp.route("/api/me")
def me():
    user = current_user()
    if not user:
        return jsonify({"user": None})

    return jsonify(
        {
            "user": {
                "id": user.id,
                "email": user.email,
                "gender": user.gender,
                "is_admin": bool(user.is_admin),
            }
        }
    )
