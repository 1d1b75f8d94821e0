"""
Lychee Meta Tool: find and fix untitled photos in a Lychee library

Locates photos whose titles are still camera-generated (or missing a
description) and lets a user assign titles, descriptions and albums
through a small web interface.
"""

__version__ = "1.0.0"

from .config import load_config
from .titles import is_generic_title, needs_metadata

__all__ = [
    "load_config",
    "is_generic_title",
    "needs_metadata",
]
