"""URI validation routes — /api/uris/*."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from rdfwizard.validation import (
    NAMESPACE_PATTERN,
    PROPERTY_PATTERN,
    is_namespace_uri,
    is_property_uri,
    pattern_url,
)

uris_bp = Blueprint("uris", __name__)


@uris_bp.route("/check", methods=["POST"])
def check_uri():
    """Report whether a URI is a property URI and/or a namespace URI."""
    data = request.get_json(force=True)
    uri = data.get("uri")
    if not isinstance(uri, str):
        return jsonify({"error": "Missing 'uri'"}), 400
    return jsonify({
        "uri": uri,
        "property": is_property_uri(uri),
        "namespace": is_namespace_uri(uri),
    })


@uris_bp.route("/patterns", methods=["GET"])
def patterns():
    """The URI patterns, with links to their railroad diagrams."""
    return jsonify({
        "property": {
            "pattern": PROPERTY_PATTERN.pattern,
            "url": pattern_url(PROPERTY_PATTERN),
        },
        "namespace": {
            "pattern": NAMESPACE_PATTERN.pattern,
            "url": pattern_url(NAMESPACE_PATTERN),
        },
    })
