"""Payment proof uploads.

Proofs are written through Django's default storage under
``bookings/payment_proofs/`` with a random UUID file name that keeps the
original extension. The returned storage path is what a Booking keeps.
"""

import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage

from .errors import (
    FileTooLargeError,
    MissingFileError,
    StorageReadError,
    StorageWriteError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)

PROOF_NAMESPACE = "bookings/payment_proofs"
ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "pdf"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/pjpeg", "image/png", "application/pdf"}


def max_proof_size():
    return getattr(settings, "PAYMENT_PROOF_MAX_SIZE", 5 * 1024 * 1024)


def validate_proof(upload):
    """Check an uploaded proof and return its normalized extension."""
    if not upload:
        raise MissingFileError()

    _, ext = os.path.splitext(upload.name or "")
    ext = ext.lstrip(".").lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError()

    content_type = getattr(upload, "content_type", None)
    if content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise UnsupportedFileTypeError()

    limit = max_proof_size()
    if upload.size > limit:
        raise FileTooLargeError(f"Payment proof must not be larger than {limit / 1024 / 1024:.0f} MB.")
    return ext


def store_proof(upload):
    ext = validate_proof(upload)
    name = f"{PROOF_NAMESPACE}/{uuid.uuid4()}.{ext}"
    try:
        upload.seek(0)
        path = default_storage.save(name, upload)
    except OSError as exc:
        logger.exception("Could not write payment proof %s", name)
        raise StorageWriteError() from exc
    logger.info("Stored payment proof %s (%d bytes)", path, upload.size)
    return path


def delete_proof(path):
    try:
        default_storage.delete(path)
    except OSError as exc:
        raise StorageWriteError(f"Could not delete payment proof {path}.") from exc
    logger.info("Deleted payment proof %s", path)


def discard_proof(path):
    """Best-effort removal used to undo a store after a failed transaction."""
    if not path:
        return
    try:
        delete_proof(path)
    except StorageWriteError:
        logger.exception("Orphaned payment proof left in storage: %s", path)


def proof_exists(path):
    try:
        return default_storage.exists(path)
    except OSError as exc:
        raise StorageReadError() from exc


def proof_url(path, request=None):
    if not path:
        return None
    try:
        url = default_storage.url(path)
    except (OSError, NotImplementedError) as exc:
        raise StorageReadError() from exc
    if request is not None and url.startswith("/"):
        return request.build_absolute_uri(url)
    return url
