import os
import secrets
import time
from dataclasses import dataclass
from typing import Iterable

from flask import current_app, send_file
from werkzeug.utils import secure_filename

from runclub.errors import NotFoundError, ValidationError

@dataclass(frozen=True)
class StoredFile:
    filename: str
    originalname: str
    mimetype: str
    size: int

def upload_folder() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder

def storage_key(originalname: str) -> str:
    """Opaque, collision-resistant key: "<epoch-ms>-<random><.ext>"."""
    # Sanitise only the suffix; secure_filename drops non-ASCII stems entirely
    suffix = secure_filename(os.path.splitext(originalname or "")[1].lstrip("."))
    ext = f".{suffix.lower()}" if suffix else ""
    return f"{int(time.time() * 1000)}-{secrets.randbelow(1_000_000_000)}{ext}"

def require_file(files, message: str = "Screenshot file is required"):
    file = files.get("file")
    if not file or not file.filename:
        raise ValidationError(message)
    return file

def save_upload(file) -> StoredFile:
    key = storage_key(file.filename)
    path = os.path.join(upload_folder(), key)
    file.save(path)

    return StoredFile(
        filename=key,
        originalname=file.filename,
        mimetype=file.mimetype or "application/octet-stream",
        size=os.path.getsize(path),
    )

def discard_stored_files(filenames: Iterable[str]) -> None:
    """Remove blobs whose rows are gone. Missing files are ignored."""
    folder = current_app.config["UPLOAD_FOLDER"]
    for name in filenames:
        if not name:
            continue
        try:
            os.remove(os.path.join(folder, name))
        except FileNotFoundError:
            pass
        except OSError as e:
            current_app.logger.warning("[UPLOADS] Could not remove %s: %s", name, e)

def disposition_filename(originalname: str) -> str:
    return (originalname or "").replace('"', "").replace("\r", "").replace("\n", "")

def send_stored_upload(upload):
    path = os.path.join(current_app.config["UPLOAD_FOLDER"], upload.filename)
    if not os.path.isfile(path):
        raise NotFoundError("File missing")

    resp = send_file(path, mimetype=upload.mimetype)
    resp.headers["Content-Disposition"] = f'inline; filename="{disposition_filename(upload.originalname)}"'
    return resp
