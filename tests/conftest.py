"""
Shared fixtures: an in-memory SQLite Lychee library with a known mix of
generated and human-written titles.
"""

from datetime import datetime

import pytest
from sqlalchemy import insert

from lycheemeta.config import get_default_config
from lycheemeta.db.connection import Database
from lycheemeta.db.models import (
    Base, Photo, BaseAlbum, TagAlbum, SizeVariant, SizeVariantType, photo_album
)
from lycheemeta.db.operations import PhotoOperations, AlbumOperations

BASE_URL = "https://photos.example.com"

ALBUMS = [
    ('album_trips', 'Trips'),
    ('album_family', 'Family'),
    ('album_archive', 'Archive'),
    ('album_tag', 'Tagged'),
]

# id, title, description, album, created_at
PHOTOS = [
    ('photo01', 'IMG_1234.jpg', 'Harbour', 'album_trips', datetime(2024, 1, 10, 12, 0)),
    ('photo02', 'Sunset', '', 'album_family', datetime(2024, 1, 9, 12, 0)),
    ('photo03', 'Sunset over the bay', 'Lovely evening', 'album_trips', datetime(2024, 1, 8, 12, 0)),
    ('photo04', None, 'Untitled upload', None, datetime(2024, 1, 7, 12, 0)),
    ('photo05', '   ', 'Blank title', 'album_trips', datetime(2024, 1, 6, 12, 0)),
    ('photo06', '12345', 'Just digits', 'album_family', datetime(2024, 1, 5, 18, 0)),
    ('photo07', 'IMG_12a4', 'Near miss', 'album_archive', datetime(2024, 1, 5, 12, 0)),
    ('photo08', 'Screenshot 2024-01-01 at 10.00.00.png', 'Receipt', 'album_tag', datetime(2024, 1, 4, 12, 0)),
    ('photo09', '550e8400-e29b-41d4-a716-446655440000.jpg', 'Upload', 'album_trips', datetime(2024, 1, 3, 12, 0)),
    ('photo10', '550e8400e29b-41d4-a716-446655440000', 'Mixed hyphens', 'album_family', datetime(2024, 1, 3, 12, 0)),
    ('photo11', 'DSC_0001', 'Camera', 'album_family', datetime(2024, 1, 3, 12, 0)),
    ('photo12', 'screenshot of a receipt', 'Lowercase', 'album_archive', datetime(2024, 1, 2, 12, 0)),
]

# Newest first, ties by id
ELIGIBLE_IDS = ['photo01', 'photo02', 'photo04', 'photo05', 'photo08', 'photo09', 'photo11']


def seed_library(database: Database) -> None:
    """Create the Lychee tables and load the sample library."""
    Base.metadata.create_all(database.engine)

    with database.session() as session:
        for album_id, title in ALBUMS:
            session.add(BaseAlbum(id=album_id, title=title))
        session.add(TagAlbum(id='album_tag', show_tags='receipts'))
        session.flush()

        for photo_id, title, description, album_id, created_at in PHOTOS:
            session.add(Photo(
                id=photo_id,
                title=title,
                description=description,
                album_id=album_id,
                created_at=created_at,
                updated_at=created_at,
                type='image/jpeg',
            ))
        session.flush()

        for photo_id, _, _, album_id, _ in PHOTOS:
            if album_id:
                session.execute(insert(photo_album).values(photo_id=photo_id, album_id=album_id))

        session.add_all([
            SizeVariant(photo_id='photo01', type=SizeVariantType.ORIGINAL, short_path='original/aa/photo01.jpg'),
            SizeVariant(photo_id='photo01', type=SizeVariantType.MEDIUM, short_path='medium/aa/photo01.jpg'),
            SizeVariant(photo_id='photo01', type=SizeVariantType.THUMB, short_path='thumb/aa/photo01.jpg'),
            SizeVariant(photo_id='photo02', type=SizeVariantType.THUMB, short_path='/thumb/bb/photo02.jpg'),
        ])


def make_config(**overrides):
    """A validated-looking config for an in-memory SQLite library."""
    config = get_default_config()
    config['database'].update(type='sqlite', path=':memory:')
    config['lychee_base_url'] = BASE_URL
    config['server']['cors']['allowed_origins'] = ['http://localhost:5173']
    for key, value in overrides.items():
        config[key] = value
    return config


@pytest.fixture
def database():
    """Seeded in-memory SQLite database."""
    db = Database.from_config({'type': 'sqlite', 'path': ':memory:', 'statement_timeout_ms': 5000})
    seed_library(db)
    yield db
    db.dispose()


@pytest.fixture
def photo_ops(database):
    return PhotoOperations(database, BASE_URL)


@pytest.fixture
def album_ops(database):
    return AlbumOperations(database)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def app(config, database):
    """Create test Flask app"""
    from lycheemeta.api.app import create_app

    app = create_app(config, database=database)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()
