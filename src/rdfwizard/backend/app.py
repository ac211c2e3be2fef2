"""Flask application factory for the rdfwizard backend API."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from rdfwizard.backend.config import Config
from rdfwizard.export import CanonicalExporter, DownloadRegistry
from rdfwizard.fetch import DataverseClient, DocumentFetcher
from rdfwizard.importer import SchemaImportError
from rdfwizard.session import SessionStore, WizardStateError
from rdfwizard.validation import SchemaValidationError

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers."""

    @app.errorhandler(400)
    def bad_request(exc):
        return jsonify({"error": str(exc.description)}), 400

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(ValidationError)
    def invalid_payload(exc):
        return jsonify({
            "error": "Invalid payload",
            "details": exc.errors(include_url=False, include_context=False),
        }), 400

    @app.errorhandler(WizardStateError)
    def wizard_state(exc):
        return jsonify({"error": str(exc)}), 409

    @app.errorhandler(SchemaValidationError)
    def invalid_schema(exc):
        return jsonify({"error": exc.to_dict()}), 422

    @app.errorhandler(SchemaImportError)
    def import_failed(exc):
        return jsonify({"error": str(exc)}), 422

    @app.errorhandler(Exception)
    def unhandled(exc):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/api/*": {
            "origins": config_class.CORS_ORIGINS,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        },
    })

    # ── In-memory session state ───────────────────────────────────────
    app.config["EXPORTER"] = CanonicalExporter()
    app.config["DOWNLOADS"] = DownloadRegistry()
    app.config["TABLE_SESSIONS"] = SessionStore()
    app.config["SCHEMA_SESSIONS"] = SessionStore()
    app.config["DATAVERSE"] = DataverseClient(
        DocumentFetcher(timeout=config_class.FETCH_TIMEOUT),
        base_url=config_class.DATAVERSE_URL,
        api_token=config_class.DATAVERSE_API_TOKEN or None,
    )

    # ── Blueprints ────────────────────────────────────────────────────
    from rdfwizard.backend.routes.downloads import downloads_bp
    from rdfwizard.backend.routes.schemas import schemas_bp
    from rdfwizard.backend.routes.tables import tables_bp
    from rdfwizard.backend.routes.uris import uris_bp

    app.register_blueprint(tables_bp, url_prefix="/api/tables")
    app.register_blueprint(schemas_bp, url_prefix="/api/schemas")
    app.register_blueprint(downloads_bp, url_prefix="/api/downloads")
    app.register_blueprint(uris_bp, url_prefix="/api/uris")

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    logger.info("rdfwizard backend ready")
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
