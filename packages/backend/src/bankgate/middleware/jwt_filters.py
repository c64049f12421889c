"""JWT middleware pair for stateless authentication.

- JwtValidatorMiddleware runs before Basic authentication on every path
  except the login path. A present Authorization header must hold a
  valid token (raw, or with a case-insensitive "Bearer " prefix).
- JwtGeneratorMiddleware runs after authentication and only on the login
  path: a successful Basic login is answered with a fresh token in the
  Authorization response header, which CORS exposes to the browser.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bankgate.auth.dependencies import Authentication
from bankgate.auth.jwt import (
    TokenError,
    create_access_token,
    parse_authorities,
    verify_token,
)

logger = structlog.get_logger()

LOGIN_PATH = "/user"


class JwtValidatorMiddleware(BaseHTTPMiddleware):
    """Authenticate requests that carry a JWT."""

    def __init__(
        self,
        app,
        header_name: str = "Authorization",
        login_path: str = LOGIN_PATH,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.login_path = login_path

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == self.login_path:
            return await call_next(request)

        token = request.headers.get(self.header_name)
        if not token:
            return await call_next(request)
        if token[:7].lower() == "bearer ":
            token = token[7:]

        try:
            payload = verify_token(token, request.app.state.settings)
        except TokenError as e:
            logger.warning("auth.jwt_rejected", error=str(e))
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid Token received!"},
            )

        request.state.authentication = Authentication(
            username=payload["username"],
            authorities=parse_authorities(payload.get("authorities", "")),
            method="jwt",
        )
        return await call_next(request)


class JwtGeneratorMiddleware(BaseHTTPMiddleware):
    """Issue a JWT after a successful login."""

    def __init__(
        self,
        app,
        header_name: str = "Authorization",
        login_path: str = LOGIN_PATH,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.login_path = login_path

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)

        if request.url.path != self.login_path:
            return response

        authentication = getattr(request.state, "authentication", None)
        if authentication is not None:
            response.headers[self.header_name] = create_access_token(
                authentication.username,
                authentication.authorities,
                app_settings=request.app.state.settings,
            )
            logger.info("auth.jwt_issued", username=authentication.username)
        return response
