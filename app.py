#!/usr/bin/env python3
"""Standalone Flask application for the RDFWizard HTTP API.

This script provides an easy way to run the API during development.

Usage:
    python app.py

The API will be available at http://localhost:5000/api
"""

import os

from rdfwizard.backend.app import create_app


def main():
    """Run the Flask development server."""
    app = create_app()

    # Get configuration from environment variables
    debug = os.getenv('FLASK_DEBUG', 'True').lower() == 'true'
    host = os.getenv('FLASK_HOST', '0.0.0.0')
    port = int(os.getenv('FLASK_PORT', '5000'))

    print("Starting RDFWizard API...")
    print(f"Server will be available at: http://localhost:{port}/api")
    print(f"Debug mode: {debug}")

    app.run(debug=debug, host=host, port=port)


if __name__ == '__main__':
    main()
