"""
Request validation and sanitization for the HTTP API.

Ids are checked against a conservative charset, free text is length
limited, screened for script injection, then trimmed and HTML-escaped
before it reaches the database.
"""

import html
import re
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Tuple

from ..errors import FieldError, ValidationRejected

MIN_ID_LENGTH = 1
MAX_ID_LENGTH = 64
# photos.title is VARCHAR(100); lengths are measured after escaping
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 2000

ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp', '.tiff', '.bmp')

_SCRIPT_TAG = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL)
_JAVASCRIPT_URI = re.compile(r'javascript:', re.IGNORECASE)
_EVENT_HANDLER = re.compile(r'<[^>]*on\w+\s*=', re.IGNORECASE)


def strip_image_extension(photo_id: str) -> str:
    lowered = photo_id.lower()
    for ext in IMAGE_EXTENSIONS:
        if lowered.endswith(ext):
            return photo_id[:-len(ext)]
    return photo_id


def validate_photo_id(photo_id: Optional[str]) -> bool:
    """
    Check a photo id from the URL path.

    A trailing image extension (``abc123.JPG``) is tolerated and ignored
    for the charset check.
    """
    if not photo_id or not MIN_ID_LENGTH <= len(photo_id) <= MAX_ID_LENGTH:
        return False
    return bool(ID_PATTERN.match(strip_image_extension(photo_id)))


def validate_album_id(album_id: Optional[str], allow_empty: bool = True) -> bool:
    if album_id == "" or album_id is None:
        return allow_empty
    if not MIN_ID_LENGTH <= len(album_id) <= MAX_ID_LENGTH:
        return False
    return bool(ID_PATTERN.match(album_id))


def contains_dangerous_content(text: str) -> bool:
    return bool(
        _SCRIPT_TAG.search(text)
        or _JAVASCRIPT_URI.search(text)
        or _EVENT_HANDLER.search(text)
    )


def sanitize_text(text: str) -> str:
    """
    Trim, HTML-escape and normalize line endings.

    Examples:
        >>> sanitize_text("  Fish & Chips\\r\\n")
        'Fish &amp; Chips'
    """
    text = html.escape(text.strip())
    return text.replace('\r\n', '\n').replace('\r', '\n')


def _check_text(field_name: str, value: Any, max_length: int) -> Tuple[Optional[FieldError], Optional[str]]:
    """Screen and sanitize one text field, returning (error, sanitized value)."""
    if not isinstance(value, str):
        return FieldError(field_name, "must be a string"), None
    if contains_dangerous_content(value):
        return FieldError(field_name, f"{field_name} contains potentially dangerous content"), None
    sanitized = sanitize_text(value)
    if len(sanitized) > max_length:
        return FieldError(
            field_name, f"{field_name} too long (max {max_length} characters, got {len(sanitized)})"
        ), None
    return None, sanitized


def _parse_int(raw: Optional[str], field_name: str, message: str) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationRejected([FieldError(field_name, message)], message=f"Invalid {field_name} parameter")


def parse_limit(raw: Optional[str], default: int, maximum: int) -> int:
    """Parse ?limit=: non-positive means the default, large values are capped."""
    limit = _parse_int(raw, 'limit', f"must be a number between 1 and {maximum}")
    if limit is None or limit <= 0:
        return default
    return min(limit, maximum)


def parse_offset(raw: Optional[str]) -> int:
    offset = _parse_int(raw, 'offset', "must be a non-negative number")
    if offset is None or offset < 0:
        return 0
    return offset


@dataclass
class PhotoUpdate:
    """A validated, sanitized sparse patch; None means "leave unchanged"."""
    title: Optional[str] = None
    description: Optional[str] = None
    album_id: Optional[str] = None


def validate_photo_update(payload: Any) -> PhotoUpdate:
    """
    Validate a PUT /api/photos/<id> body.

    Unknown keys are ignored. All field problems are collected and
    reported together.

    Raises:
        ValidationRejected: With one FieldError per rejected field
    """
    if not isinstance(payload, dict):
        raise ValidationRejected(
            [FieldError('body', "must be a JSON object")],
            message="Invalid JSON format in request body"
        )

    errors: List[FieldError] = []
    update = PhotoUpdate()

    for field_name, max_length in (('title', MAX_TITLE_LENGTH), ('description', MAX_DESCRIPTION_LENGTH)):
        if payload.get(field_name) is None:
            continue
        error, value = _check_text(field_name, payload[field_name], max_length)
        if error:
            errors.append(error)
        else:
            setattr(update, field_name, value)

    album_id = payload.get('album_id')
    if album_id is not None:
        if not isinstance(album_id, str) or not validate_album_id(album_id):
            errors.append(FieldError(
                'album_id',
                f"invalid album ID format (length: {MIN_ID_LENGTH}-{MAX_ID_LENGTH}, "
                "pattern: alphanumeric, underscore, hyphen)"
            ))
        else:
            update.album_id = album_id

    if errors:
        raise ValidationRejected(errors)
    return update


def query_params(args: Dict[str, str], default_limit: int, max_limit: int) -> Dict[str, Any]:
    """Parse the needs-metadata query string into engine arguments."""
    album_id = (args.get('album_id') or '').strip() or None
    if album_id is not None and not validate_album_id(album_id, allow_empty=False):
        raise ValidationRejected(
            [FieldError('album_id', "must be alphanumeric with underscores and hyphens only")],
            message="Invalid album_id format"
        )
    return {
        'album_id': album_id,
        'limit': parse_limit(args.get('limit'), default_limit, max_limit),
        'offset': parse_offset(args.get('offset')),
    }
