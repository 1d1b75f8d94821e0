"""
Album API Routes

Regular (non-tag) albums, optionally with the number of photos in each
that still need metadata.
"""

import logging

from flask import Blueprint, jsonify, current_app

from .models import AlbumListResponse

logger = logging.getLogger(__name__)

# Create album blueprint
album_api = Blueprint('album_api', __name__, url_prefix='/api/albums')


@album_api.route('', methods=['GET'])
def list_albums():
    albums = current_app.album_operations.list_albums()
    return jsonify(AlbumListResponse(albums).to_dict())


@album_api.route('/withphotocounts', methods=['GET'])
def list_albums_with_photo_counts():
    """Albums with at least one photo needing metadata, with counts."""
    albums = current_app.album_operations.list_albums_with_eligible_photo_counts()
    return jsonify(AlbumListResponse(albums).to_dict())
