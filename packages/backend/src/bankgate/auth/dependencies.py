"""FastAPI auth dependencies.

The middleware chain has already authenticated the request (or not) by
the time a handler runs; these dependencies read request.state and turn
the per-route access rules into 401/403 responses:

    @router.get("/myBalance", dependencies=[Depends(has_any_role("USER", "ADMIN"))])
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request

ROLE_PREFIX = "ROLE_"

# Challenge sent with every 401 so browsers and curl know to retry with Basic.
BASIC_CHALLENGE = {"WWW-Authenticate": 'Basic realm="Realm"'}


class Authentication:
    """The authenticated principal for one request.

    Built either from verified Basic credentials or from a valid JWT.
    Never stored between requests; the service is stateless.
    """

    def __init__(
        self,
        username: str,
        authorities: Optional[list[str]] = None,
        method: str = "basic",  # "basic" or "jwt"
    ):
        self.username = username
        self.authorities = authorities or []
        self.method = method

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities

    def has_role(self, role: str) -> bool:
        """Check for ROLE_<role> among the granted authorities."""
        return self.has_authority(f"{ROLE_PREFIX}{role}")

    def has_any_role(self, *roles: str) -> bool:
        return any(self.has_role(role) for role in roles)

    def __repr__(self) -> str:
        return (
            f"Authentication(username={self.username!r}, "
            f"authorities={self.authorities!r}, method={self.method!r})"
        )


def get_authentication_optional(request: Request) -> Optional[Authentication]:
    """The request's Authentication, or None for anonymous requests."""
    return getattr(request.state, "authentication", None)


def get_current_user(
    authentication: Optional[Authentication] = Depends(get_authentication_optional),
) -> Authentication:
    """Require an authenticated principal (401 otherwise)."""
    if authentication is None:
        raise HTTPException(
            status_code=401,
            detail="Full authentication is required to access this resource",
            headers=BASIC_CHALLENGE,
        )
    return authentication


def has_any_role(*roles: str):
    """Dependency factory: require at least one of the given roles."""

    def check(
        authentication: Authentication = Depends(get_current_user),
    ) -> Authentication:
        if not authentication.has_any_role(*roles):
            raise HTTPException(status_code=403, detail="Access Denied")
        return authentication

    return check


def has_role(role: str):
    """Dependency factory: require a single role."""
    return has_any_role(role)
