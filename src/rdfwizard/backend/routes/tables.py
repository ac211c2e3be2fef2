"""Table import wizard routes — /api/tables/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, url_for

from rdfwizard.backend.services.session_service import SessionService
from rdfwizard.session import ImportSession

tables_bp = Blueprint("tables", __name__)


def _get_svc() -> SessionService:
    return SessionService(current_app.config)


def _state(session: ImportSession):
    return session.state(current_app.config.get("PREVIEW_ROWS", 10))


def _not_found(session_id: str):
    return jsonify({"error": f"Session '{session_id}' not found"}), 404


def _bad_header():
    return jsonify({"error": "'header' must be true or false"}), 400


@tables_bp.route("/", methods=["POST"])
def create_session():
    """Start a new table import session."""
    data = request.get_json(silent=True) or {}
    header = data.get("header", True)
    if not isinstance(header, bool):
        return _bad_header()
    session_id, session = _get_svc().create_table_session(header=header)
    return jsonify({"id": session_id, **_state(session)}), 201


@tables_bp.route("/<session_id>", methods=["GET"])
def get_session(session_id: str):
    """Return the wizard state: open steps, preview, errors, columns."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)
    return jsonify(_state(session))


@tables_bp.route("/<session_id>", methods=["DELETE"])
def close_session(session_id: str):
    """End a session and release its downloads."""
    if not _get_svc().close_table_session(session_id):
        return _not_found(session_id)
    return jsonify({"message": f"Closed {session_id}"}), 200


@tables_bp.route("/<session_id>/source", methods=["PUT"])
def set_source(session_id: str):
    """Replace the source text (JSON ``text`` or an uploaded ``file``)."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)

    if "file" in request.files:
        upload = request.files["file"]
        try:
            text = upload.read().decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return jsonify({"error": f"File is not UTF-8 text: {exc}"}), 400
        filename = upload.filename or upload.mimetype
    else:
        data = request.get_json(force=True)
        text = data.get("text")
        filename = data.get("filename")
        if not isinstance(text, str):
            return jsonify({"error": "Missing 'text'"}), 400

    session.set_source(text, filename)
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/dataverse", methods=["POST"])
def load_dataverse(session_id: str):
    """Fetch the source file (and its provenance) from Dataverse."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)

    data = request.get_json(force=True)
    persistent_id = data.get("persistent_id", "")
    if not persistent_id:
        return jsonify({"error": "Missing 'persistent_id'"}), 400

    session.load_from_dataverse(current_app.config["DATAVERSE"], persistent_id)
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/header", methods=["PUT"])
def set_header(session_id: str):
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)
    data = request.get_json(force=True)
    header = data.get("header", True)
    if not isinstance(header, bool):
        return _bad_header()
    session.set_header(header)
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/subject", methods=["PUT"])
def set_subject(session_id: str):
    """Set the class URI given to every row."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)
    data = request.get_json(force=True)
    session.set_subject(str(data.get("uri", "")))
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/columns", methods=["PUT"])
def set_columns(session_id: str):
    """Set all column URIs, or auto-fill them from a ``namespace``."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)

    data = request.get_json(force=True)
    try:
        if "namespace" in data:
            session.autofill(str(data["namespace"]))
        else:
            session.set_columns([str(uri) for uri in data.get("uris", [])])
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/columns/<int:index>", methods=["PUT"])
def set_column(session_id: str, index: int):
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)
    data = request.get_json(force=True)
    try:
        session.set_column(index, str(data.get("uri", "")))
    except IndexError as exc:
        return jsonify({"error": str(exc)}), 404
    return jsonify(_state(session))


@tables_bp.route("/<session_id>/export", methods=["POST"])
def export(session_id: str):
    """Generate canonical ``schema.nq`` and ``assertion.nq`` downloads."""
    session = _get_svc().get_table_session(session_id)
    if session is None:
        return _not_found(session_id)

    downloads = session.export()
    return jsonify({
        name: {
            **download.describe(),
            "url": url_for("downloads.get_download", handle=download.handle),
        }
        for name, download in downloads.items()
    }), 201
