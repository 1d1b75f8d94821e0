"""
Photo API Routes

Listing photos that need metadata, fetching one photo and applying
title/description/album updates.
"""

import logging

from flask import Blueprint, request, jsonify, current_app

from .models import ErrorResponse, PhotoListResponse, PhotoUpdateResponse
from .validation import validate_photo_id, validate_photo_update, query_params
from ..errors import PhotoNotFound

logger = logging.getLogger(__name__)

# Create photo blueprint
photo_api = Blueprint('photo_api', __name__, url_prefix='/api/photos')


def _invalid_photo_id():
    return jsonify(ErrorResponse(
        message="Invalid photo ID format. Must be 1-64 characters, alphanumeric with underscores and hyphens only.",
        error_code="INVALID_ID"
    ).to_dict()), 400


@photo_api.route('/needsmetadata', methods=['GET'])
def list_needing_metadata():
    """
    List photos with generic titles or missing descriptions.

    Query Parameters:
        album_id: Restrict to one album
        limit: Page size (default from config, capped at max_limit)
        offset: Number of photos to skip
    """
    pagination = current_app.config['PAGINATION']
    params = query_params(request.args, pagination['default_limit'], pagination['max_limit'])

    photos = current_app.photo_operations.list_needing_metadata(**params)
    logger.debug(f"Returning {len(photos)} photos needing metadata (album_id={params['album_id']}, "
                 f"limit={params['limit']}, offset={params['offset']})")
    return jsonify(PhotoListResponse(photos).to_dict())


@photo_api.route('/<photo_id>', methods=['GET'])
def get_photo(photo_id: str):
    if not validate_photo_id(photo_id):
        return _invalid_photo_id()

    photo = current_app.photo_operations.get_by_id(photo_id)
    if photo is None:
        raise PhotoNotFound(photo_id)
    return jsonify(photo.to_dict())


@photo_api.route('/<photo_id>', methods=['PUT'])
def update_photo(photo_id: str):
    """Apply a sparse {title, description, album_id} patch."""
    if not validate_photo_id(photo_id):
        return _invalid_photo_id()

    update = validate_photo_update(request.get_json(silent=True))
    photo = current_app.photo_operations.update(
        photo_id,
        title=update.title,
        description=update.description,
        album_id=update.album_id,
    )
    return jsonify(PhotoUpdateResponse(photo).to_dict())
