"""
API Data Models

Response envelopes for the Lychee Meta Tool HTTP API.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

from ..db.operations import PhotoRecord, AlbumRecord


@dataclass
class ErrorResponse:
    """Error body: {"error": ..., "error_code": ..., "details": [...]}."""
    message: str
    error_code: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.message,
            'error_code': self.error_code,
            'details': list(self.details),
        }


@dataclass
class PhotoListResponse:
    photos: List[PhotoRecord]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'photos': [photo.to_dict() for photo in self.photos],
            'total': len(self.photos),
        }


@dataclass
class PhotoUpdateResponse:
    photo: PhotoRecord
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {'success': self.success, 'photo': self.photo.to_dict()}


@dataclass
class AlbumListResponse:
    albums: List[AlbumRecord]

    def to_dict(self) -> Dict[str, Any]:
        return {'albums': [album.to_dict() for album in self.albums]}
