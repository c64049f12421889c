"""HTTP Basic credential parsing."""

import base64
import binascii
from typing import Optional


class BadCredentialsError(Exception):
    """Raised when supplied credentials cannot be decoded or do not match."""


def is_basic(header: Optional[str]) -> bool:
    """True when an Authorization header uses the Basic scheme."""
    return bool(header) and header[:6].lower() == "basic "


def decode_basic_credentials(header: str) -> tuple[str, str]:
    """Decode "Basic <base64(username:password)>" into (username, password)."""
    encoded = header[6:].strip()
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise BadCredentialsError("Failed to decode basic authentication token")

    username, sep, password = decoded.partition(":")
    if not sep:
        raise BadCredentialsError("Invalid basic authentication token")
    return username, password
