"""JWT token creation and verification.

A token is minted once per Basic login on GET /user and then sent back
by the client on every request. It carries the username and the
comma-separated authorities, so validating it needs no database lookup.

Both functions take the Settings of the app serving the request; the
middleware passes request.app.state.settings. Without one they fall back
to the environment's settings.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt

from bankgate.config import Settings, settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(
    username: str,
    authorities: Iterable[str],
    expires_minutes: Optional[int] = None,
    app_settings: Optional[Settings] = None,
) -> str:
    """Create a signed JWT for an authenticated user."""
    cfg = app_settings or settings
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or cfg.jwt_expire_minutes
    )
    payload = {
        "iss": cfg.jwt_issuer,
        "sub": username,
        "username": username,
        "authorities": ",".join(authorities),
        "iat": now,
        "exp": expires,
    }
    return jwt.encode(payload, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)


def verify_token(token: str, app_settings: Optional[Settings] = None) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    cfg = app_settings or settings
    try:
        payload = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[cfg.jwt_algorithm],
            issuer=cfg.jwt_issuer,
            options={"require": ["exp", "iss", "username"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")


def parse_authorities(claim: str) -> list[str]:
    """Split the comma-separated authorities claim."""
    return [a.strip() for a in claim.split(",") if a.strip()]
