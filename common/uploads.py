"""Upload validation and storage shared by gig images, deliveries and attachments.

Files are validated by MIME type, extension and size, written through Django's
default storage and referenced afterwards by their URL path only.
"""

import os
import re
import uuid

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework import serializers

IMAGE_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}

ATTACHMENT_MIME_TYPES = IMAGE_MIME_TYPES | {
    "application/pdf",
    "application/zip",
    "text/plain",
}
ATTACHMENT_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf", ".zip", ".txt"}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def _max_size():
    return getattr(settings, "UPLOAD_MAX_FILE_SIZE", 5 * 1024 * 1024)


def _max_files():
    return getattr(settings, "UPLOAD_MAX_FILES", 10)


def is_uploaded_file(obj) -> bool:
    return hasattr(obj, "read")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", os.path.basename(name or "file"))


def validate_upload(file_obj, field="file", mime_types=IMAGE_MIME_TYPES, extensions=IMAGE_EXTENSIONS):
    """Raise a field-level ValidationError if the file is not acceptable."""
    ctype = (getattr(file_obj, "content_type", "") or "").lower()
    if ctype not in mime_types:
        raise serializers.ValidationError(
            {field: f"Invalid file type. Allowed types: {', '.join(sorted(mime_types))}."}
        )
    ext = os.path.splitext(getattr(file_obj, "name", "") or "")[1].lower()
    if ext not in extensions:
        raise serializers.ValidationError(
            {field: f"Invalid file extension. Allowed extensions: {', '.join(sorted(extensions))}."}
        )
    limit = _max_size()
    if getattr(file_obj, "size", 0) > limit:
        raise serializers.ValidationError(
            {field: f"File too large. Maximum size is {limit // (1024 * 1024)}MB."}
        )


def validate_upload_batch(files, field="images", **kwargs):
    files = list(files or [])
    if len(files) > _max_files():
        raise serializers.ValidationError(
            {field: f"Too many files. Maximum {_max_files()} files allowed."}
        )
    for f in files:
        validate_upload(f, field=field, **kwargs)
    return files


def store_upload(file_obj, folder: str, owner_id) -> dict:
    """Save a validated file and return the metadata stored on the owning record."""
    original = getattr(file_obj, "name", "") or "file"
    filename = f"{owner_id}-{uuid.uuid4().hex}-{sanitize_filename(original)}"
    saved_path = default_storage.save(f"{folder}/{filename}", file_obj)
    return {
        "url": f"{settings.MEDIA_URL}{saved_path}".replace("//", "/"),
        "filename": saved_path,
        "original_name": original,
        "size": getattr(file_obj, "size", 0),
        "mimetype": (getattr(file_obj, "content_type", "") or "").lower(),
    }


def delete_stored(filename: str) -> None:
    if filename and default_storage.exists(filename):
        default_storage.delete(filename)
