"""Validation helpers shared by the request schema and the link service."""

import re
from urllib.parse import urlparse

CODE_PATTERN = re.compile(r"[A-Za-z0-9]{6,8}")
MAX_URL_LENGTH = 2048
# Paths served by the app itself that a custom code would shadow
RESERVED_CODES = {"healthz"}


def is_valid_url(url: str) -> tuple[bool, str]:
    """Check that ``url`` is an absolute URL with both a scheme and a host.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    if url != url.strip() or any(ch.isspace() for ch in url):
        return False, "URL must not contain whitespace"

    try:
        result = urlparse(url)
        # Accessing the port raises for malformed values like "http://host:abc"
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if not result.scheme:
        return False, "URL must include a scheme"
    if not result.hostname:
        return False, "URL must have a valid host"

    return True, ""


def is_valid_code(code: str) -> tuple[bool, str]:
    if not code or not isinstance(code, str):
        return False, "Custom code is required"
    if not CODE_PATTERN.fullmatch(code):
        return False, "Custom code must be 6-8 letters or digits"
    if code in RESERVED_CODES:
        return False, f"'{code}' is reserved"
    return True, ""
