"""
Lychee Meta Tool API Application

Flask application exposing the metadata query engine over JSON.
"""

import logging
from typing import Dict, Any, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .album_routes import album_api
from .models import ErrorResponse
from .photo_routes import photo_api
from .security import get_security_headers, get_cors_config
from .web_routes import create_frontend_blueprint
from ..config import get_config_value
from ..db.connection import Database
from ..db.operations import PhotoOperations, AlbumOperations
from ..errors import (
    PhotoNotFound, ValidationRejected, StorageFailure, StorageTimeout,
    PartialUpdateInconsistency
)
from ..titles import TitleRuleSet

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1024 * 1024  # metadata patches are small


def create_app(
    config: Dict[str, Any],
    database: Optional[Database] = None,
    rules: Optional[TitleRuleSet] = None
) -> Flask:
    """
    Create and configure the API application.

    Args:
        config: Validated configuration (see lycheemeta.config.load_config)
        database: Database to use; created from config['database'] when omitted
        rules: Generic-title rules; the built-in set when omitted

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    pagination = config['pagination']
    app.config.update(
        MAX_CONTENT_LENGTH=MAX_CONTENT_LENGTH,
        PAGINATION=pagination,
        LYCHEE_BASE_URL=config['lychee_base_url'],
    )

    if database is None:
        database = Database.from_config(config['database'])

    # Store services in app context
    app.database = database
    app.photo_operations = PhotoOperations(
        database,
        config['lychee_base_url'],
        rules=rules,
        default_limit=pagination['default_limit'],
        max_limit=pagination['max_limit'],
    )
    app.album_operations = AlbumOperations(database, rules=rules)

    allowed_origins = get_config_value(config, 'server.cors.allowed_origins') or []
    CORS(app, resources={r"/api/*": get_cors_config(allowed_origins)})
    if not allowed_origins:
        logger.info("No CORS origins configured; cross-origin requests will be refused")

    # Error handlers
    @app.errorhandler(PhotoNotFound)
    def photo_not_found(error):
        return jsonify(ErrorResponse(
            message=str(error),
            error_code="NOT_FOUND"
        ).to_dict()), 404

    @app.errorhandler(ValidationRejected)
    def validation_rejected(error):
        return jsonify(ErrorResponse(
            message=str(error),
            error_code="VALIDATION_FAILED",
            details=error.details
        ).to_dict()), 400

    @app.errorhandler(StorageTimeout)
    def storage_timeout(error):
        return jsonify(ErrorResponse(
            message="Database did not respond in time. Please try again.",
            error_code="STORAGE_TIMEOUT"
        ).to_dict()), 504

    @app.errorhandler(PartialUpdateInconsistency)
    def partial_update(error):
        return jsonify(ErrorResponse(
            message="Update failed and could not be rolled back. Please check the photo and try again.",
            error_code="INCONSISTENT_UPDATE"
        ).to_dict()), 500

    @app.errorhandler(StorageFailure)
    def storage_failure(error):
        return jsonify(ErrorResponse(
            message="Database error. Please try again.",
            error_code="STORAGE_FAILURE"
        ).to_dict()), 500

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify(ErrorResponse(
            message=error.description or error.name,
            error_code=error.name.upper().replace(' ', '_')
        ).to_dict()), error.code

    @app.after_request
    def after_request(response):
        """Add security headers."""
        for header, value in get_security_headers().items():
            response.headers[header] = value
        return response

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        if not app.database.ping():
            return jsonify(ErrorResponse(
                message="Service temporarily unavailable. Please try again later.",
                error_code="DATABASE_UNAVAILABLE"
            ).to_dict()), 503
        return jsonify({'status': 'ok'})

    app.register_blueprint(photo_api)
    app.register_blueprint(album_api)

    frontend_dist = get_config_value(config, 'server.frontend_dist')
    if frontend_dist:
        app.register_blueprint(create_frontend_blueprint(frontend_dist))

    logger.info(f"API application created (database: {database.dialect_name})")
    return app
