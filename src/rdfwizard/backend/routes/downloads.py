"""Download routes — /api/downloads/*."""

from __future__ import annotations

from io import BytesIO

from flask import Blueprint, current_app, jsonify, send_file

from rdfwizard.backend.services.session_service import SessionService

downloads_bp = Blueprint("downloads", __name__)


@downloads_bp.route("/<handle>", methods=["GET"])
def get_download(handle: str):
    """Serve an exported file; revoked or unknown handles are 404."""
    download = SessionService(current_app.config).get_download(handle)
    if download is None:
        return jsonify({"error": "Download not found or expired"}), 404
    return send_file(
        BytesIO(download.content),
        mimetype=download.media_type,
        as_attachment=True,
        download_name=download.filename,
    )
