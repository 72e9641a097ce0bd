"""Validation utilities for short links."""

import math
import re
from numbers import Real
from urllib.parse import urlparse
from typing import Tuple

MAX_URL_LENGTH = 2048

RESERVED_CODES = frozenset({
    "api", "health", "admin", "static", "assets", "favicon",
    "robots", "sitemap", "create", "delete", "list", "stats",
})


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a destination URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
        # Accessing the port validates it
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    if not result.hostname:
        return False, "URL must have a valid domain"

    if any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    return True, ""


def is_valid_validity(minutes) -> Tuple[bool, str]:
    """Validate a validity window given in minutes.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(minutes, bool) or not isinstance(minutes, Real):
        return False, "Validity must be a number of minutes"

    if not math.isfinite(minutes) or minutes <= 0:
        return False, "Validity must be a positive number of minutes"

    return True, ""


def is_valid_short_code(short_code: str, min_length: int = 3, max_length: int = 32) -> Tuple[bool, str]:
    """Validate a custom short code submitted through the HTTP or CLI layer.

    Args:
        short_code: The short code to validate
        min_length: Minimum length for short code
        max_length: Maximum length for short code

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if len(short_code) < min_length:
        return False, f"Short code must be at least {min_length} characters"

    if len(short_code) > max_length:
        return False, f"Short code must be at most {max_length} characters"

    # Only allow alphanumeric characters, hyphens, and underscores
    if not re.match(r'^[a-zA-Z0-9_-]+$', short_code):
        return False, "Short code can only contain letters, numbers, hyphens, and underscores"

    if short_code.lower() in RESERVED_CODES:
        return False, f"'{short_code}' is a reserved word and cannot be used"

    return True, ""
