"""Schema editor routes — /api/schemas/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, url_for

from rdfwizard.backend.services.session_service import SessionService
from rdfwizard.export import Download
from rdfwizard.schema import Label

schemas_bp = Blueprint("schemas", __name__)


def _get_svc() -> SessionService:
    return SessionService(current_app.config)


def _not_found(session_id: str):
    return jsonify({"error": f"Session '{session_id}' not found"}), 404


@schemas_bp.route("/", methods=["POST"])
def create_session():
    """Start a new schema editor session."""
    data = request.get_json(silent=True) or {}
    namespace = data.get("namespace", current_app.config.get("DEFAULT_NAMESPACE"))
    session_id, session = _get_svc().create_schema_session(namespace)
    return jsonify({"id": session_id, **session.state()}), 201


@schemas_bp.route("/<session_id>", methods=["GET"])
def get_session(session_id: str):
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    return jsonify(session.state())


@schemas_bp.route("/<session_id>", methods=["DELETE"])
def close_session(session_id: str):
    """End a session and release its download."""
    if not _get_svc().close_schema_session(session_id):
        return _not_found(session_id)
    return jsonify({"message": f"Closed {session_id}"}), 200


@schemas_bp.route("/<session_id>/namespace", methods=["PUT"])
def set_namespace(session_id: str):
    """Set the namespace label keys are relative to (``null`` for none)."""
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    data = request.get_json(force=True)
    session.set_namespace(data.get("namespace"))
    return jsonify(session.state())


@schemas_bp.route("/<session_id>/labels", methods=["POST"])
def add_label(session_id: str):
    """Append a unit-typed label with an empty key and a fresh id."""
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    label = session.add_label()
    return jsonify({"label": label.to_jsonld(), **session.state()}), 201


@schemas_bp.route("/<session_id>/labels/<int:index>", methods=["PUT"])
def update_label(session_id: str, index: int):
    """Replace the label at *index*; its id is kept."""
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    if not 0 <= index < len(session.labels):
        return jsonify({"error": f"No label {index}"}), 404

    label = Label.model_validate(request.get_json(force=True))
    session.update_label(index, label)
    return jsonify(session.state())


@schemas_bp.route("/<session_id>/labels/<int:index>", methods=["DELETE"])
def remove_label(session_id: str, index: int):
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    if not 0 <= index < len(session.labels):
        return jsonify({"error": f"No label {index}"}), 404
    session.remove_label(index)
    return jsonify(session.state())


@schemas_bp.route("/<session_id>/import", methods=["POST"])
def import_schema(session_id: str):
    """Import an N-Quads / N-Triples schema (uploaded ``file`` or JSON ``text``)."""
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)

    if "file" in request.files:
        upload = request.files["file"]
        try:
            text = upload.read().decode("utf-8")
        except UnicodeDecodeError as exc:
            return jsonify({"error": f"File is not UTF-8 text: {exc}"}), 400
        filename = upload.filename or upload.mimetype
    else:
        data = request.get_json(force=True)
        text = data.get("text")
        filename = data.get("filename")
        if not isinstance(text, str):
            return jsonify({"error": "Missing 'text'"}), 400

    session.import_schema(text, filename)
    return jsonify(session.state())


@schemas_bp.route("/<session_id>/example", methods=["POST"])
def load_example(session_id: str):
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)
    session.load_example()
    return jsonify(session.state())


@schemas_bp.route("/<session_id>/export", methods=["POST"])
def export(session_id: str):
    """Validate and normalize the schema into a ``schema.nq`` download."""
    session = _get_svc().get_schema_session(session_id)
    if session is None:
        return _not_found(session_id)

    outcome = session.export()
    if not isinstance(outcome, Download):
        return jsonify({"error": outcome.to_dict()}), 422
    return jsonify({
        **outcome.describe(),
        "url": url_for("downloads.get_download", handle=outcome.handle),
    }), 201
