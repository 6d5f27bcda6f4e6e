# Overview: Flask API routes for attachment storage buckets; upload and owner-scoped download.

from flask import Blueprint, request, jsonify, g, send_file

from ..decorators import require_auth
from ..services import storage_service


attachments_bp = Blueprint("attachments", __name__, url_prefix="/api/attachments")


@attachments_bp.post("/<bucket>")
@require_auth
def upload_attachment_route(bucket: str):
    """Upload a file (multipart field "file"); returns its bucket path."""
    path = storage_service.upload_object(g.caller, bucket, request.files.get("file"))
    return jsonify({"bucket": bucket, "path": path}), 201


@attachments_bp.get("/<bucket>/<path:object_path>")
@require_auth
def download_attachment_route(bucket: str, object_path: str):
    """Fetch a stored file. Admins read any object; others only their own."""
    full_path = storage_service.resolve_object(g.caller, bucket, object_path)
    return send_file(full_path)
