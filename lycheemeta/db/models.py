"""
Database models for the Lychee Meta Tool.

Maps the subset of the Lychee schema this tool reads and writes. The
schema belongs to Lychee: these models are never used to create or
migrate tables outside of tests.
"""

import enum

from sqlalchemy import (
    Column, Integer, BigInteger, String, Text, Boolean, DateTime,
    ForeignKey, Table, Index
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class SizeVariantType(enum.IntEnum):
    """Lychee size variant tiers, as stored in size_variants.type."""
    ORIGINAL = 0
    SMALL2X = 1
    SMALL = 2
    MEDIUM2X = 3
    MEDIUM = 4
    SMALL_THUMB = 5
    THUMB = 6


# Many-to-many mirror of photos.old_album_id
photo_album = Table(
    'photo_album',
    Base.metadata,
    Column('album_id', String(24), ForeignKey('base_albums.id'), primary_key=True),
    Column('photo_id', String(24), ForeignKey('photos.id'), primary_key=True),
)


class BaseAlbum(Base):
    """Any Lychee album, normal or tag album."""
    __tablename__ = 'base_albums'

    id = Column(String(24), primary_key=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    title = Column(String(100), nullable=False)
    description = Column(Text)
    owner_id = Column(Integer, default=0)


class TagAlbum(Base):
    """Smart album; its id marks the matching base album as ineligible."""
    __tablename__ = 'tag_albums'

    id = Column(String(24), ForeignKey('base_albums.id'), primary_key=True)
    show_tags = Column(Text)


class Photo(Base):
    """A photo record in the Lychee library."""
    __tablename__ = 'photos'

    id = Column(String(24), primary_key=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now())
    owner_id = Column(Integer, default=0)
    album_id = Column('old_album_id', String(24), ForeignKey('base_albums.id'), nullable=True)
    title = Column(String(100))
    description = Column(Text)
    is_starred = Column(Boolean, default=False)
    taken_at = Column(DateTime)
    type = Column(String(30), default='image/jpeg')
    checksum = Column(String(40))

    __table_args__ = (
        Index('idx_photos_old_album_id', 'old_album_id'),
    )


class SizeVariant(Base):
    """A rendition of a photo at one size tier."""
    __tablename__ = 'size_variants'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    photo_id = Column(String(24), ForeignKey('photos.id'), nullable=False)
    type = Column(Integer, nullable=False)
    short_path = Column(String(255), nullable=False)
    width = Column(Integer, default=0)
    height = Column(Integer, default=0)
    filesize = Column(BigInteger, default=0)
    storage_disk = Column(String(255), default='images')

    __table_args__ = (
        Index('idx_size_variants_photo_type', 'photo_id', 'type'),
    )
