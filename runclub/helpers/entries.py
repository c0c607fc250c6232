from typing import Optional

from flask import current_app

from runclub.errors import NotFoundError, StoreError, store_errors
from runclub.extensions import db
from runclub.helpers.parsing import parse_iso_date, parse_non_negative
from runclub.helpers.uploads import StoredFile, discard_stored_files, save_upload
from runclub.models import Entry, Upload, User

def parse_entry_fields(data) -> dict:
    """date/km/hours/pace from a form or JSON body. Blank numbers count as 0, blank pace as None."""
    return {
        "entry_date": parse_iso_date(data.get("date")),
        "km_run": parse_non_negative(data.get("km"), "km"),
        "hours": parse_non_negative(data.get("hours"), "hours"),
        "pace": parse_non_negative(data.get("pace"), "pace", default=None),
    }

def create_entry_with_upload(user_id: int, fields: dict, stored: StoredFile) -> int:
    """
    Write the Entry and its screenshot Upload in one transaction.
    Either both rows exist afterwards or neither does.
    """
    with store_errors("Failed to save entry"):
        entry = Entry(user_id=user_id, **fields)
        db.session.add(entry)
        db.session.flush()

        db.session.add(
            Upload(
                user_id=user_id,
                entry_id=entry.id,
                filename=stored.filename,
                originalname=stored.originalname,
                mimetype=stored.mimetype,
                size=stored.size,
            )
        )
        db.session.commit()

    return entry.id

def submit_entry(user_id: int, fields: dict, file) -> int:
    """
    Store the screenshot blob, then the rows. Shared by the plain entry form
    and event submissions; only the gate in front of it differs.
    """
    stored = save_upload(file)
    try:
        entry_id = create_entry_with_upload(user_id, fields, stored)
    except StoreError:
        discard_stored_files([stored.filename])
        raise

    current_app.logger.info(
        "[ENTRY] user #%s logged %.2f km on %s (entry #%s)",
        user_id, fields["km_run"], fields["entry_date"], entry_id,
    )
    return entry_id

def create_standalone_upload(user_id: int, file) -> Upload:
    stored = save_upload(file)
    upload = Upload(
        user_id=user_id,
        filename=stored.filename,
        originalname=stored.originalname,
        mimetype=stored.mimetype,
        size=stored.size,
    )
    db.session.add(upload)
    try:
        with store_errors("Failed to record upload"):
            db.session.commit()
    except StoreError:
        discard_stored_files([stored.filename])
        raise
    return upload

def get_entry_or_404(entry_id: int, owner_id: Optional[int] = None) -> Entry:
    """Entries owned by someone else are reported exactly like missing ones."""
    q = Entry.query.filter(Entry.id == entry_id)
    if owner_id is not None:
        q = q.filter(Entry.user_id == owner_id)

    entry = q.first()
    if not entry:
        raise NotFoundError("Entry not found")
    return entry

def update_entry(entry: Entry, fields: dict) -> None:
    for key, value in fields.items():
        setattr(entry, key, value)
    with store_errors("Failed to update entry"):
        db.session.commit()

def delete_entry(entry: Entry) -> None:
    filenames = [entry.upload.filename] if entry.upload else []
    db.session.delete(entry)
    with store_errors("Failed to delete entry"):
        db.session.commit()
    discard_stored_files(filenames)

def entry_rows(*criteria, user_id: Optional[int] = None, include_user: bool = False) -> list[dict]:
    """
    One row per entry (LEFT JOIN to its upload), newest entry_date first.

    `criteria` are SQLAlchemy filter clauses for the date window, so monthly
    (half-open) and event (inclusive) listings share the same shape.
    """
    q = (
        db.session.query(
            Entry.id,
            Entry.user_id,
            User.email,
            Entry.entry_date,
            Entry.km_run,
            Entry.hours,
            Entry.pace,
            Upload.id.label("upload_id"),
            Upload.filename,
            Upload.originalname,
            Upload.mimetype,
        )
        .join(User, User.id == Entry.user_id)
        .outerjoin(Upload, Upload.entry_id == Entry.id)
        .filter(*criteria)
    )

    if user_id is not None:
        q = q.filter(Entry.user_id == user_id)
        q = q.order_by(Entry.entry_date.desc(), Entry.id.desc())
    else:
        q = q.order_by(Entry.entry_date.desc(), Entry.user_id.asc(), Entry.id.desc())

    with store_errors("Failed to fetch entries"):
        rows = q.all()

    out = []
    for r in rows:
        row = {
            "id": r.id,
            "date": r.entry_date.isoformat(),
            "km": r.km_run,
            "hours": r.hours,
            "pace": r.pace,
            "upload_id": r.upload_id,
            "filename": r.filename,
            "originalname": r.originalname,
            "mimetype": r.mimetype,
        }
        if include_user:
            row["user_id"] = r.user_id
            row["email"] = r.email
        out.append(row)

    return out
