# Overview: Service-layer operations for attachment storage; local filesystem buckets with owner-scoped reads.

"""
Attachment Storage

Objects live under UPLOAD_FOLDER/<bucket>/<owner_id>/<timestamp>.<ext>.
The stored "url" is the bucket-relative path "<owner_id>/<timestamp>.<ext>";
its first segment is the uploader's user id, which is what the read rule
checks.

Upload rules (storage_objects insert predicate):
- grievance-attachments: hod, staff
- service-bills: admin, hod

Read rule: admins read everything; others only objects under their own id.
Unknown or unreadable objects are reported as not found.
"""

from __future__ import annotations

import os
import posixpath

from flask import current_app
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from ..constants import Bucket
from ..policies import CallerContext, Operation
from ..validation import NotFoundError, ValidationError
from ..time_utils import epoch_millis
from .policy_service import require_row, require_values


TABLE = "storage_objects"
NOT_FOUND = "File not found"

ALLOWED_EXTENSIONS = {
    Bucket.GRIEVANCE_ATTACHMENTS: {"png", "jpg", "jpeg", "gif", "webp", "pdf", "doc", "docx", "txt"},
    Bucket.SERVICE_BILLS: {"png", "jpg", "jpeg", "webp", "pdf"},
}


def _bucket_root(bucket: str) -> str:
    return os.path.join(os.path.abspath(current_app.config["UPLOAD_FOLDER"]), bucket)


def _extension(filename: str | None) -> str:
    safe = secure_filename(filename or "")
    if "." not in safe:
        return ""
    return safe.rsplit(".", 1)[1].lower()


def _normalized_path(path: str | None) -> str:
    """
    Canonical "<owner_id>/<name>" form of a requested path.

    The read rule looks at the first segment, so anything that could resolve
    elsewhere after normalization (absolute paths, "..", "." or doubled
    slashes) is treated as a missing object.
    """
    if not path or path.startswith("/") or "\\" in path:
        raise NotFoundError(NOT_FOUND)
    normalized = posixpath.normpath(path)
    if normalized != path or ".." in normalized.split("/"):
        raise NotFoundError(NOT_FOUND)
    return normalized


def upload_object(caller: CallerContext, bucket: str, file_storage) -> str:
    """
    Store an uploaded file and return its bucket-relative path.

    file_storage is a werkzeug FileStorage (request.files[...]).
    """
    if bucket not in Bucket.ALL:
        raise ValidationError(f"bucket must be one of: {', '.join(Bucket.ALL)}")

    require_values(TABLE, Operation.INSERT, caller, {"bucket": bucket})

    if file_storage is None or not file_storage.filename:
        raise ValidationError("file is required")

    ext = _extension(file_storage.filename)
    if ext not in ALLOWED_EXTENSIONS[bucket]:
        raise ValidationError(f"Unsupported file type: .{ext}" if ext else "File must have an extension")

    data = file_storage.read()
    limit = current_app.config["MAX_UPLOAD_BYTES"]
    if len(data) > limit:
        raise ValidationError(f"File exceeds maximum size of {limit // (1024 * 1024)}MB")
    if not data:
        raise ValidationError("File is empty")

    owner = str(caller.user_id)
    name = f"{epoch_millis()}.{ext}"
    directory = os.path.join(_bucket_root(bucket), owner)
    os.makedirs(directory, exist_ok=True)

    with open(os.path.join(directory, name), "wb") as fh:
        fh.write(data)

    path = f"{owner}/{name}"
    current_app.logger.info("Stored %s/%s (%d bytes)", bucket, path, len(data))
    return path


def resolve_object(caller: CallerContext, bucket: str, path: str) -> str:
    """
    Absolute filesystem path of a readable object.

    Raises NotFoundError for unknown buckets, traversal attempts, missing
    files and objects the caller may not read.
    """
    path = _normalized_path(path)
    require_row(
        TABLE, Operation.READ, caller, {"bucket": bucket, "path": path},
        not_found_message=NOT_FOUND,
    )

    full_path = safe_join(_bucket_root(bucket), path)
    if full_path is None or not os.path.isfile(full_path):
        raise NotFoundError(NOT_FOUND)
    return full_path


def remove_object(bucket: str, path: str | None) -> None:
    """Delete a stored object (a failed record's upload, or a replaced bill)."""
    if not path or bucket not in Bucket.ALL:
        return
    full_path = safe_join(_bucket_root(bucket), path)
    if full_path and os.path.isfile(full_path):
        os.remove(full_path)
