from flask import Blueprint, current_app, g, jsonify, request

from runclub.errors import NotFoundError, ValidationError, store_errors
from runclub.extensions import db
from runclub.helpers.account import is_primary_admin, normalize_email, normalize_gender
from runclub.helpers.auth import admin_required
from runclub.helpers.eligibility import get_event_or_404
from runclub.helpers.entries import delete_entry, get_entry_or_404, parse_entry_fields, update_entry
from runclub.helpers.events import (
    create_event,
    delete_event,
    end_event,
    list_all_events,
    list_ended_events,
    parse_event_payload,
    update_event,
)
from runclub.helpers.monthly import list_entries, resolve_month, top10
from runclub.helpers.parsing import parse_bool, parse_id, parse_iso_date
from runclub.helpers.submission import close_date, list_closed_dates, reopen_date
from runclub.helpers.uploads import discard_stored_files, send_stored_upload
from runclub.models import Entry, Upload, User

admin_bp = Blueprint("admin", __name__)

UPLOADS_LIMIT = 200

def _payload():
    return request.get_json(silent=True) or request.form

# --- users ---

@admin_bp.route("/api/admin/users")
@admin_required
def admin_users():
    primary = normalize_email(current_app.config["DEFAULT_ADMIN_EMAIL"])
    users = (
        User.query
        .filter(User.email != primary)
        .order_by(User.id.asc())
        .all()
    )
    return jsonify(
        {
            "users": [
                {
                    "id": u.id,
                    "email": u.email,
                    "gender": u.gender,
                    "is_admin": bool(u.is_admin),
                    "created_at": u.created_at.isoformat() if u.created_at else None,
                }
                for u in users
            ]
        }
    )

@admin_bp.route("/api/admin/users/<user_id>", methods=["PUT"])
@admin_required
def admin_update_user(user_id):
    """Only the gender and admin flags are editable here."""
    user_id = parse_id(user_id, "user id")
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    data = _payload()

    if "gender" in data:
        gender = normalize_gender(data.get("gender"))
        if not gender:
            raise ValidationError("Invalid gender")
        user.gender = gender

    if "is_admin" in data:
        make_admin = parse_bool(data.get("is_admin"))
        if not make_admin and (user.id == g.user.id or is_primary_admin(user)):
            raise ValidationError("Cannot remove admin rights from this account")
        user.is_admin = make_admin

    with store_errors("Failed to update user"):
        db.session.commit()

    current_app.logger.info("[ADMIN] user #%s updated by admin #%s", user.id, g.user.id)
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/users/<user_id>", methods=["DELETE"])
@admin_required
def admin_delete_user(user_id):
    user_id = parse_id(user_id, "user id")
    if user_id == g.user.id:
        raise ValidationError("Cannot delete yourself")

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if is_primary_admin(user):
        raise ValidationError("Cannot delete primary admin")

    filenames = [u.filename for u in user.uploads]

    # Entries, uploads and event participation go with the user
    db.session.delete(user)
    with store_errors("Delete failed"):
        db.session.commit()

    discard_stored_files(filenames)
    current_app.logger.info("[ADMIN] user #%s deleted by admin #%s", user_id, g.user.id)
    return jsonify({"ok": True, "deleted": 1})

# --- entries ---

@admin_bp.route("/api/admin/entries")
@admin_required
def admin_entries():
    window = resolve_month(request.args.get("month"))
    return jsonify({"entries": list_entries(window), "month": window.label})

@admin_bp.route("/api/admin/entries/<entry_id>", methods=["PUT"])
@admin_required
def admin_edit_entry(entry_id):
    entry_id = parse_id(entry_id, "entry ID")
    entry = get_entry_or_404(entry_id)

    update_entry(entry, parse_entry_fields(_payload()))
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/entries/<entry_id>", methods=["DELETE"])
@admin_required
def admin_delete_entry(entry_id):
    entry_id = parse_id(entry_id, "entry ID")
    entry = get_entry_or_404(entry_id)

    delete_entry(entry)
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/top10")
@admin_required
def admin_top10():
    window = resolve_month(request.args.get("month"))
    return jsonify({"month": window.label, "top10": top10(window)})

# --- uploads ---

@admin_bp.route("/api/admin/uploads")
@admin_required
def admin_uploads():
    """Newest uploads first, optionally only one user's (?user_id=)."""
    q = (
        db.session.query(
            Upload.id,
            Upload.user_id,
            User.email,
            Upload.entry_id,
            Entry.entry_date,
            Upload.filename,
            Upload.originalname,
            Upload.mimetype,
            Upload.size,
            Upload.created_at,
        )
        .join(User, User.id == Upload.user_id)
        .outerjoin(Entry, Entry.id == Upload.entry_id)
    )

    raw_user_id = (request.args.get("user_id") or "").strip()
    if raw_user_id:
        q = q.filter(Upload.user_id == parse_id(raw_user_id, "user id"))

    with store_errors("Failed to fetch uploads"):
        rows = (
            q.order_by(Upload.created_at.desc(), Upload.id.desc())
            .limit(UPLOADS_LIMIT)
            .all()
        )

    return jsonify(
        {
            "uploads": [
                {
                    "id": r.id,
                    "user_id": r.user_id,
                    "email": r.email,
                    "entry_id": r.entry_id,
                    "date": r.entry_date.isoformat() if r.entry_date else None,
                    "filename": r.filename,
                    "originalname": r.originalname,
                    "mimetype": r.mimetype,
                    "size": r.size,
                    "created_at": r.created_at.isoformat() if r.created_at else None,
                }
                for r in rows
            ]
        }
    )

@admin_bp.route("/api/admin/uploads/<upload_id>/file")
@admin_required
def admin_upload_file(upload_id):
    upload_id = parse_id(upload_id, "id")
    upload = db.session.get(Upload, upload_id)
    if not upload:
        raise NotFoundError("Not found")
    return send_stored_upload(upload)

# --- events ---

@admin_bp.route("/api/admin/events", methods=["POST"])
@admin_required
def admin_create_event():
    fields = parse_event_payload(_payload())
    event = create_event(fields, g.user.id)
    return jsonify({"ok": True, "eventId": event.id})

@admin_bp.route("/api/admin/events")
@admin_required
def admin_events():
    return jsonify({"events": list_all_events()})

@admin_bp.route("/api/admin/events/ended")
@admin_required
def admin_ended_events():
    return jsonify({"events": list_ended_events()})

@admin_bp.route("/api/admin/events/<event_id>", methods=["PUT"])
@admin_required
def admin_update_event(event_id):
    event_id = parse_id(event_id, "event ID")
    fields = parse_event_payload(_payload())
    event = get_event_or_404(event_id)

    update_event(event, fields)
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/events/<event_id>/end", methods=["POST"])
@admin_required
def admin_end_event(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)

    end_event(event)
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/events/<event_id>", methods=["DELETE"])
@admin_required
def admin_delete_event(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)

    delete_event(event)
    return jsonify({"ok": True})

# --- closed submission dates ---

@admin_bp.route("/api/admin/events/<event_id>/close-date", methods=["POST"])
@admin_required
def admin_close_date(event_id):
    event_id = parse_id(event_id, "event ID")
    day = parse_iso_date(_payload().get("date"))
    event = get_event_or_404(event_id)

    closed_id = close_date(event, day, g.user.id)
    return jsonify({"ok": True, "closedDateId": closed_id})

@admin_bp.route("/api/admin/events/<event_id>/close-date", methods=["DELETE"])
@admin_required
def admin_open_date(event_id):
    event_id = parse_id(event_id, "event ID")
    day = parse_iso_date(_payload().get("date"))
    event = get_event_or_404(event_id)

    reopen_date(event, day)
    return jsonify({"ok": True})

@admin_bp.route("/api/admin/events/<event_id>/closed-dates")
@admin_required
def admin_closed_dates(event_id):
    event_id = parse_id(event_id, "event ID")
    event = get_event_or_404(event_id)
    return jsonify({"closedDates": list_closed_dates(event)})
