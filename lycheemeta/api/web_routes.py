"""
Web Interface Routes

Serves a built single-page frontend with an index.html fallback so
client-side routes survive a page reload.
"""

import logging
import os
from pathlib import Path
from typing import Union

from flask import Blueprint, send_from_directory, abort

logger = logging.getLogger(__name__)


def create_frontend_blueprint(dist_dir: Union[str, Path]) -> Blueprint:
    """
    Build a blueprint serving files from a frontend build directory.

    Args:
        dist_dir: Directory containing index.html and static assets
    """
    dist_dir = os.path.realpath(dist_dir)
    frontend = Blueprint('frontend', __name__)

    @frontend.route('/', defaults={'path': ''})
    @frontend.route('/<path:path>')
    def spa_fallback(path: str):
        if path == 'api' or path.startswith('api/'):
            abort(404)

        resolved = os.path.realpath(os.path.join(dist_dir, path))
        if path and resolved.startswith(dist_dir + os.sep) and os.path.isfile(resolved):
            return send_from_directory(dist_dir, os.path.relpath(resolved, dist_dir))
        return send_from_directory(dist_dir, 'index.html')

    logger.info(f"Serving frontend from {dist_dir}")
    return frontend
