"""
Lychee Meta Tool Database Module

Provides the Lychee schema mapping, connection management, dialect
translators and the metadata query engine.
"""

from .connection import Database, configure_database, get_database, build_url, is_timeout_error
from .dialects import TitleDialect, title_dialect_for
from .models import Base, Photo, BaseAlbum, TagAlbum, SizeVariant, SizeVariantType, photo_album
from .operations import (
    PhotoOperations, AlbumOperations, PhotoRecord, AlbumRecord,
    build_image_url, clamp_limit, clamp_offset
)

__all__ = [
    'Database',
    'configure_database',
    'get_database',
    'build_url',
    'is_timeout_error',
    'TitleDialect',
    'title_dialect_for',
    'PhotoOperations',
    'AlbumOperations',
    'PhotoRecord',
    'AlbumRecord',
    'build_image_url',
    'clamp_limit',
    'clamp_offset',
    # Models
    'Base',
    'Photo',
    'BaseAlbum',
    'TagAlbum',
    'SizeVariant',
    'SizeVariantType',
    'photo_album',
]
