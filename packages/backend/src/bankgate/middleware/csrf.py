"""CSRF protection: double-submit cookie.

The token lives in a JavaScript-readable XSRF-TOKEN cookie. A browser
client (the Angular app on :4200) copies it into the X-XSRF-TOKEN header
of state-changing requests; a cross-site form cannot read the cookie and
so cannot produce a matching header.

Two middlewares split the work:
- CsrfMiddleware (early): loads or generates the token, rejects unsafe
  requests whose header does not match the cookie.
- CsrfCookieMiddleware (after authentication): publishes the token in the
  response header, and writes the cookie when the token is new.
"""

import secrets
from dataclasses import dataclass

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

SAFE_METHODS = frozenset({"GET", "HEAD", "TRACE", "OPTIONS"})


@dataclass(frozen=True)
class CsrfToken:
    header_name: str
    parameter_name: str
    value: str
    is_new: bool = False


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class CsrfMiddleware(BaseHTTPMiddleware):
    """Reject unsafe requests without a matching CSRF token."""

    def __init__(
        self,
        app,
        cookie_name: str = "XSRF-TOKEN",
        header_name: str = "X-XSRF-TOKEN",
        parameter_name: str = "_csrf",
        ignored_paths: tuple[str, ...] = (),
    ):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.header_name = header_name
        self.parameter_name = parameter_name
        self.ignored_paths = frozenset(ignored_paths)

    def requires_protection(self, request: Request) -> bool:
        return (
            request.method not in SAFE_METHODS
            and request.url.path not in self.ignored_paths
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        cookie_value = request.cookies.get(self.cookie_name)
        token = CsrfToken(
            header_name=self.header_name,
            parameter_name=self.parameter_name,
            value=cookie_value or generate_token(),
            is_new=not cookie_value,
        )
        # Handlers and later middleware find the token here
        request.state.csrf_token = token

        if self.requires_protection(request):
            supplied = request.headers.get(self.header_name)
            if (
                not cookie_value
                or not supplied
                or not secrets.compare_digest(supplied.encode(), cookie_value.encode())
            ):
                logger.warning(
                    "csrf.rejected",
                    method=request.method,
                    cookie_present=bool(cookie_value),
                    header_present=bool(supplied),
                )
                return JSONResponse(
                    status_code=403,
                    content={"detail": "Invalid CSRF token"},
                )

        return await call_next(request)


class CsrfCookieMiddleware(BaseHTTPMiddleware):
    """Expose the request's CSRF token to the client."""

    def __init__(self, app, cookie_name: str = "XSRF-TOKEN"):
        super().__init__(app)
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)

        token = getattr(request.state, "csrf_token", None)
        if token is None:
            return response

        response.headers[token.header_name] = token.value
        if token.is_new:
            response.set_cookie(
                self.cookie_name,
                token.value,
                path="/",
                httponly=False,  # the browser client must read it
                secure=request.url.scheme == "https",
            )
        return response
