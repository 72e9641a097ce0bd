"""Header parsing utilities."""

from typing import Dict, Optional

from ..database.models import DIRECT_SOURCE


def extract_forwarded_headers(headers: Dict[str, str]) -> Dict[str, Optional[str]]:
    """Extract the X-Forwarded-Proto and X-Forwarded-Host headers.

    Args:
        headers: Request headers dictionary

    Returns:
        Dictionary with forwarded_proto and forwarded_host
    """
    # Header names are case-insensitive
    headers_lower = {k.lower(): v for k, v in headers.items()}

    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
    }


def build_base_url(
    headers: Dict[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build base URL from headers or fallback.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + host
    3. Fallback base URL from config

    Returns:
        Base URL (e.g., https://example.com)
    """
    forwarded = extract_forwarded_headers(headers)

    # Behind a proxy the forwarded headers describe the public origin
    if forwarded["forwarded_proto"] and forwarded["forwarded_host"]:
        return f"{forwarded['forwarded_proto']}://{forwarded['forwarded_host']}"

    # Then the scheme and host the request arrived with
    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"

    # Fall back to configured base URL
    return fallback_base_url.rstrip("/")


def click_source(headers: Dict[str, str]) -> str:
    """Referrer of a redirect request, or "direct" when there is none."""
    for key, value in headers.items():
        if key.lower() == "referer" and value and value.strip():
            return value.strip()
    return DIRECT_SOURCE
