"""
HTTP security settings for the Lychee Meta Tool API.
"""

from typing import Dict, List, Any

CORS_METHODS = ['GET', 'PUT', 'POST', 'OPTIONS']
CORS_HEADERS = ['Content-Type']
CORS_MAX_AGE = 86400  # 24 hours for preflight cache


def get_security_headers() -> Dict[str, str]:
    """
    Get security headers that should be applied to all HTTP responses.

    Returns:
        Dictionary of security headers
    """
    return {
        # Prevent MIME type sniffing
        'X-Content-Type-Options': 'nosniff',

        # Prevent clickjacking
        'X-Frame-Options': 'DENY',

        'X-XSS-Protection': '1; mode=block',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
    }


def get_cors_config(allowed_origins: List[str]) -> Dict[str, Any]:
    """
    CORS settings for flask-cors.

    Only the configured origins are allowed; with none configured no
    cross-origin request is permitted.
    """
    return {
        'origins': list(allowed_origins),
        'methods': CORS_METHODS,
        'allow_headers': CORS_HEADERS,
        'max_age': CORS_MAX_AGE,
    }
