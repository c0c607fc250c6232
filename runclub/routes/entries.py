from flask import Blueprint, g, jsonify, request

from runclub.errors import NotFoundError
from runclub.helpers.auth import login_required
from runclub.helpers.entries import (
    create_standalone_upload,
    delete_entry,
    get_entry_or_404,
    parse_entry_fields,
    submit_entry,
    update_entry,
)
from runclub.helpers.monthly import list_entries, resolve_month
from runclub.helpers.parsing import parse_id
from runclub.helpers.uploads import require_file, send_stored_upload
from runclub.models import Upload

entries_bp = Blueprint("entries", __name__)

@entries_bp.route("/api/entries")
@login_required
def my_entries():
    """
    The viewer's entries for ?month=YYYY-MM.
    A missing or malformed month quietly falls back to the current month.
    """
    window = resolve_month(request.args.get("month"))
    rows = list_entries(window, user_id=g.user.id)
    return jsonify({"entries": rows, "month": window.label})

@entries_bp.route("/api/entries", methods=["POST"])
@login_required
def create_entry():
    """
    Multipart form: date, km, hours, pace, file (screenshot, required).
    """
    fields = parse_entry_fields(request.form)
    file = require_file(request.files)

    entry_id = submit_entry(g.user.id, fields, file)
    return jsonify({"ok": True, "entryId": entry_id})

@entries_bp.route("/api/entries/<entry_id>", methods=["PUT"])
@login_required
def edit_entry(entry_id):
    entry_id = parse_id(entry_id, "entry ID")
    entry = get_entry_or_404(entry_id, owner_id=g.user.id)

    fields = parse_entry_fields(request.get_json(silent=True) or request.form)
    update_entry(entry, fields)
    return jsonify({"ok": True})

@entries_bp.route("/api/entries/<entry_id>", methods=["DELETE"])
@login_required
def remove_entry(entry_id):
    entry_id = parse_id(entry_id, "entry ID")
    entry = get_entry_or_404(entry_id, owner_id=g.user.id)

    delete_entry(entry)
    return jsonify({"ok": True})

@entries_bp.route("/api/uploads", methods=["POST"])
@login_required
def upload_file():
    file = require_file(request.files, "No file")
    upload = create_standalone_upload(g.user.id, file)

    return jsonify(
        {
            "ok": True,
            "file": {
                "id": upload.id,
                "filename": upload.filename,
                "originalname": upload.originalname,
                "size": upload.size,
            },
        }
    )

@entries_bp.route("/api/uploads/<upload_id>/file")
@login_required
def my_upload_file(upload_id):
    upload_id = parse_id(upload_id, "id")

    # Someone else's upload looks exactly like a missing one
    upload = Upload.query.filter_by(id=upload_id, user_id=g.user.id).first()
    if not upload:
        raise NotFoundError("Not found")

    return send_stored_upload(upload)
