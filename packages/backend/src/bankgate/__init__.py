"""Bankgate: security layer for a small set of banking endpoints.

Password hashing, CORS, CSRF, stateless JWT/Basic authentication and
per-route role checks, all assembled from FastAPI/Starlette primitives.
"""

__version__ = "0.1.0"
