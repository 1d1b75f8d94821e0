"""
Database operations for the Lychee Meta Tool.

Provides the needs-metadata query, single-photo lookup, the
title/description/album update and album listings. Every public method
runs in its own short transaction and raises only
:mod:`lycheemeta.errors` exceptions.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterator

from sqlalchemy import select, update as sa_update, delete, insert, and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from .connection import Database, is_timeout_error
from .dialects import TitleDialect, title_dialect_for
from .models import Photo, BaseAlbum, TagAlbum, SizeVariant, SizeVariantType, photo_album
from ..errors import (
    MetadataError, PhotoNotFound, ValidationRejected, FieldError,
    StorageFailure, StorageTimeout
)
from ..titles import TitleRuleSet, DEFAULT_RULE_SET
from ..utils.logging import StructuredLogger

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def build_image_url(base_url: str, short_path: Optional[str]) -> str:
    """
    Join the Lychee base URL and a size variant path.

    Examples:
        >>> build_image_url("https://photos.example.com/", "thumb/ab/cd.jpg")
        'https://photos.example.com/uploads/thumb/ab/cd.jpg'
        >>> build_image_url("https://photos.example.com", None)
        ''
    """
    if not short_path:
        return ""
    return f"{base_url.rstrip('/')}/uploads/{short_path.lstrip('/')}"


def clamp_limit(limit: Optional[int], default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    if limit is None:
        limit = default
    return max(1, min(limit, maximum))


def clamp_offset(offset: Optional[int]) -> int:
    return max(0, offset or 0)


@dataclass
class PhotoRecord:
    """A photo as presented to callers, with album title and image URLs."""
    id: str
    title: Optional[str]
    description: Optional[str]
    album_id: Optional[str]
    album_title: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    type: Optional[str]
    thumbnail_url: str
    full_url: str
    needs_metadata: bool

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the photo JSON shape used by the HTTP API."""
        return {
            'id': self.id,
            'title': self.title or '',
            'description': self.description or '',
            'album_id': self.album_id,
            'album_title': self.album_title,
            'thumbnail_url': self.thumbnail_url,
            'full_url': self.full_url,
            'type': self.type or '',
            'needs_metadata': self.needs_metadata,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class AlbumRecord:
    id: str
    title: str
    photo_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.photo_count is None:
            del data['photo_count']
        return data


class _OperationsBase:
    """Shared plumbing: dialect resolution and storage error translation."""

    def __init__(self, db: Database, rules: Optional[TitleRuleSet] = None):
        self.db = db
        self.rules = rules or DEFAULT_RULE_SET
        self.log = StructuredLogger(self.__class__.__module__, {'component': self.__class__.__name__})
        self._title_dialect: Optional[TitleDialect] = None

    def title_dialect(self, session: Session) -> TitleDialect:
        """Resolve the title translator from a live connection (detects MariaDB)."""
        if self._title_dialect is None:
            self._title_dialect = title_dialect_for(session.connection().dialect, self.rules)
        return self._title_dialect

    def eligible(self, session: Session):
        return self.title_dialect(session).needs_metadata_clause(Photo.title, Photo.description)

    @contextmanager
    def storage_errors(self, operation: str, **context) -> Iterator[None]:
        """Translate SQLAlchemy errors into StorageFailure / StorageTimeout."""
        try:
            yield
        except MetadataError:
            raise
        except SQLAlchemyError as e:
            if is_timeout_error(e):
                self.log.error(f"Timed out during {operation}", operation=operation,
                               error=e.__class__.__name__, **context)
                raise StorageTimeout(operation, e) from e
            self.log.error(f"Database error during {operation}", exc_info=True, operation=operation,
                           error=e.__class__.__name__, **context)
            raise StorageFailure(operation, e) from e


class PhotoOperations(_OperationsBase):
    """Queries and updates photos that need metadata."""

    def __init__(
        self,
        db: Database,
        base_url: str,
        rules: Optional[TitleRuleSet] = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT
    ):
        super().__init__(db, rules)
        self.base_url = base_url
        self.default_limit = default_limit
        self.max_limit = max_limit

    def _select_photos(self):
        thumb = aliased(SizeVariant, name='thumb')
        medium = aliased(SizeVariant, name='medium')
        return (
            select(
                Photo.id, Photo.title, Photo.description, Photo.album_id,
                BaseAlbum.title.label('album_title'),
                Photo.created_at, Photo.updated_at, Photo.type,
                thumb.short_path.label('thumb_path'),
                medium.short_path.label('medium_path'),
            )
            .outerjoin(BaseAlbum, BaseAlbum.id == Photo.album_id)
            .outerjoin(thumb, and_(thumb.photo_id == Photo.id,
                                   thumb.type == int(SizeVariantType.THUMB)))
            .outerjoin(medium, and_(medium.photo_id == Photo.id,
                                    medium.type == int(SizeVariantType.MEDIUM)))
        )

    def _to_record(self, row) -> PhotoRecord:
        return PhotoRecord(
            id=row.id,
            title=row.title,
            description=row.description,
            album_id=row.album_id,
            album_title=row.album_title,
            created_at=row.created_at,
            updated_at=row.updated_at,
            type=row.type,
            thumbnail_url=build_image_url(self.base_url, row.thumb_path),
            full_url=build_image_url(self.base_url, row.medium_path),
            needs_metadata=self.rules.needs_metadata(row.title, row.description),
        )

    def list_needing_metadata(
        self,
        album_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = 0
    ) -> List[PhotoRecord]:
        """
        List photos with a generic title or an empty description.

        Args:
            album_id: Restrict to photos whose primary album is this id
            limit: Page size, clamped to [1, max_limit]
            offset: Number of matching photos to skip, clamped to >= 0

        Returns:
            Photo records, newest first, ties broken by id
        """
        limit = clamp_limit(limit, self.default_limit, self.max_limit)
        offset = clamp_offset(offset)

        with self.storage_errors('list_needing_metadata', album_id=album_id, limit=limit, offset=offset):
            with self.db.session() as session:
                dialect = self.title_dialect(session)
                stmt = (
                    self._select_photos()
                    .where(self.eligible(session))
                    .order_by(Photo.created_at.desc(), Photo.id)
                )
                if album_id:
                    stmt = stmt.where(Photo.album_id == album_id)

                if dialect.exact:
                    rows = session.execute(stmt.limit(limit).offset(offset)).all()
                    return [self._to_record(row) for row in rows]

                return self._page_filtered(session, stmt, limit, offset)

    def _page_filtered(self, session: Session, stmt, limit: int, offset: int) -> List[PhotoRecord]:
        """Apply the exact predicate to a superset query while streaming rows."""
        records = []
        skipped = 0
        result = session.execute(stmt)
        try:
            for row in result:
                if not self.rules.needs_metadata(row.title, row.description):
                    continue
                if skipped < offset:
                    skipped += 1
                    continue
                records.append(self._to_record(row))
                if len(records) >= limit:
                    break
        finally:
            result.close()
        return records

    def _fetch(self, session: Session, photo_id: str) -> Optional[PhotoRecord]:
        row = session.execute(self._select_photos().where(Photo.id == photo_id)).first()
        return self._to_record(row) if row is not None else None

    def get_by_id(self, photo_id: str) -> Optional[PhotoRecord]:
        """Get one photo regardless of whether it still needs metadata."""
        with self.storage_errors('get_by_id', photo_id=photo_id):
            with self.db.session() as session:
                return self._fetch(session, photo_id)

    def update(
        self,
        photo_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        album_id: Optional[str] = None
    ) -> PhotoRecord:
        """
        Apply a sparse metadata patch in one transaction.

        Args:
            photo_id: Photo to update
            title: New title, or None to leave unchanged
            description: New description, or None to leave unchanged
            album_id: New primary album; "" removes the photo from its album

        Returns:
            The photo as stored after the update

        Raises:
            PhotoNotFound: If the photo does not exist
            ValidationRejected: If album_id names a missing or tag album
            StorageFailure: If any statement fails; nothing is committed
        """
        with self.storage_errors('update', photo_id=photo_id, album_id=album_id):
            with self.db.session() as session:
                exists = session.execute(select(Photo.id).where(Photo.id == photo_id)).first()
                if exists is None:
                    raise PhotoNotFound(photo_id)

                values = {}
                if title is not None:
                    values['title'] = title
                if description is not None:
                    values['description'] = description
                if values:
                    values['updated_at'] = func.now()
                    session.execute(
                        sa_update(Photo)
                        .where(Photo.id == photo_id)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )

                if album_id is not None:
                    self._reassign_album(session, photo_id, album_id or None)

                session.flush()
                record = self._fetch(session, photo_id)

        changed = {'title': title, 'description': description, 'album_id': album_id}
        self.log.info("Updated photo metadata", photo_id=photo_id,
                      fields=[name for name, value in changed.items() if value is not None])
        return record

    def _reassign_album(self, session: Session, photo_id: str, album_id: Optional[str]) -> None:
        """Point the photo at a new primary album and mirror it in photo_album."""
        if album_id is not None and not _is_regular_album(session, album_id):
            raise ValidationRejected([FieldError('album_id', f"album '{album_id}' does not exist or is a tag album")])

        session.execute(
            sa_update(Photo)
            .where(Photo.id == photo_id)
            .values(album_id=album_id, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        session.execute(delete(photo_album).where(photo_album.c.photo_id == photo_id))
        if album_id is not None:
            session.execute(insert(photo_album).values(photo_id=photo_id, album_id=album_id))


def _is_regular_album(session: Session, album_id: str) -> bool:
    """True when the album exists and is not a tag (smart) album."""
    stmt = (
        select(BaseAlbum.id)
        .outerjoin(TagAlbum, TagAlbum.id == BaseAlbum.id)
        .where(BaseAlbum.id == album_id, TagAlbum.id.is_(None))
    )
    return session.execute(stmt).first() is not None


class AlbumOperations(_OperationsBase):
    """Read-only album listings."""

    @staticmethod
    def _regular_albums():
        return (
            select(BaseAlbum.id, BaseAlbum.title)
            .outerjoin(TagAlbum, TagAlbum.id == BaseAlbum.id)
            .where(TagAlbum.id.is_(None))
        )

    def list_albums(self) -> List[AlbumRecord]:
        with self.storage_errors('list_albums'):
            with self.db.session() as session:
                rows = session.execute(
                    self._regular_albums().order_by(BaseAlbum.title, BaseAlbum.id)
                ).all()
                return [AlbumRecord(id=row.id, title=row.title) for row in rows]

    def list_albums_with_eligible_photo_counts(self) -> List[AlbumRecord]:
        """
        List regular albums holding at least one photo that needs metadata.

        Returns:
            Albums ordered by title, each with its eligible photo count
        """
        with self.storage_errors('list_albums_with_eligible_photo_counts'):
            with self.db.session() as session:
                dialect = self.title_dialect(session)

                if dialect.exact:
                    stmt = (
                        self._regular_albums()
                        .add_columns(func.count(Photo.id).label('photo_count'))
                        .join(Photo, Photo.album_id == BaseAlbum.id)
                        .where(self.eligible(session))
                        .group_by(BaseAlbum.id, BaseAlbum.title)
                        .order_by(BaseAlbum.title, BaseAlbum.id)
                    )
                    return [
                        AlbumRecord(id=row.id, title=row.title, photo_count=row.photo_count)
                        for row in session.execute(stmt)
                    ]

                stmt = (
                    self._regular_albums()
                    .add_columns(Photo.title.label('photo_title'), Photo.description)
                    .join(Photo, Photo.album_id == BaseAlbum.id)
                    .where(self.eligible(session))
                    .order_by(BaseAlbum.title, BaseAlbum.id)
                )
                counts: Dict[str, AlbumRecord] = {}
                for row in session.execute(stmt):
                    if not self.rules.needs_metadata(row.photo_title, row.description):
                        continue
                    album = counts.setdefault(row.id, AlbumRecord(id=row.id, title=row.title, photo_count=0))
                    album.photo_count += 1
                return list(counts.values())
