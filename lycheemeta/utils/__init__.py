"""Utility helpers for the Lychee Meta Tool."""

from .logging import StructuredLogger, setup_logging

__all__ = ['StructuredLogger', 'setup_logging']
