from flask import current_app
from werkzeug.utils import secure_filename
import logging
import os
import time

logger = logging.getLogger(__name__)


def allowed_file(filename):
    ext = os.path.splitext(filename)[1].lower()
    return ext in current_app.config['ALLOWED_UPLOAD_EXTENSIONS']


def check_upload(storage, field, errors):
    """Validate an optional uploaded file; records a field error when rejected"""
    if storage is None or not storage.filename:
        return None
    if not allowed_file(storage.filename):
        allowed = ', '.join(sorted(current_app.config['ALLOWED_UPLOAD_EXTENSIONS']))
        errors[field] = f"File type not allowed. Allowed: {allowed}"
        return None
    return storage


def save_upload(storage):
    """Save an uploaded file under UPLOAD_FOLDER and return its public URL.

    Filenames get a millisecond timestamp prefix to avoid collisions.
    """
    if storage is None:
        return None
    upload_dir = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_dir, exist_ok=True)
    name = secure_filename(storage.filename) or 'upload'
    filename = f"{int(time.time() * 1000)}-{name}"
    storage.save(os.path.join(upload_dir, filename))
    logger.info(f"Stored upload {filename}")
    return f"/uploads/{filename}"


def discard_upload(url):
    """Remove a file stored by save_upload, e.g. when its row failed to commit"""
    if not url:
        return
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], os.path.basename(url))
    if os.path.isfile(path):
        os.remove(path)
        logger.info(f"Discarded upload {os.path.basename(url)}")
