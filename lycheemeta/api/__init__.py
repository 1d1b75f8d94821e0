"""
Lychee Meta Tool HTTP API

JSON endpoints for reviewing photos that need metadata and updating them.
"""

from .app import create_app

__all__ = ['create_app']
