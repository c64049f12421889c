"""Bankgate CLI: run the server and exercise its security flows.

Usage:
    bankgate serve                                   # Run uvicorn on BANKGATE_PORT
    bankgate register -e ann@example.com -n Ann      # Create a customer (prompts for password)
    bankgate login -e ann@example.com                # Basic login on /user → prints a JWT
    bankgate get /myAccount --token <jwt>            # Call a route with a JWT
    bankgate get /myAccount -e ann@example.com       # ...or with Basic credentials
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8080"


def _api_url() -> str:
    return os.environ.get("BANKGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(**kwargs) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Bankgate server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, **kwargs)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(r: httpx.Response) -> None:
    """Print an error response and exit non-zero."""
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="bankgate")
def main():
    """Bankgate: stateless JWT/Basic security for the bank endpoints."""


# ---------------------------------------------------------------------------
# bankgate serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: BANKGATE_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: BANKGATE_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from bankgate.config import settings

    uvicorn.run(
        "bankgate.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# bankgate register
# ---------------------------------------------------------------------------


@main.command()
@click.option("--email", "-e", required=True, help="Customer e-mail (login name)")
@click.option("--name", "-n", required=True, help="Display name")
@click.option("--mobile", "-m", default="0000000000", help="Mobile number")
@click.option("--role", type=click.Choice(["USER", "ADMIN"]), default="USER")
@click.password_option()
def register(email: str, name: str, mobile: str, role: str, password: str):
    """Register a new customer."""
    _run(_register_impl(email, name, mobile, role, password))


async def _register_impl(email: str, name: str, mobile: str, role: str, password: str):
    async with _client() as c:
        r = await c.post(
            "/register",
            json={
                "email": email,
                "name": name,
                "mobile_number": mobile,
                "password": password,
                "role": role,
            },
        )
        if r.status_code == 409:
            click.secho(f"{email} is already registered.", fg="yellow")
            sys.exit(1)
        if r.status_code != 201:
            _fail(r)

        customer = r.json()
        click.secho(f"Registered {customer['email']}", fg="green")
        click.echo(f"  Authorities: {', '.join(customer['authorities'])}")


# ---------------------------------------------------------------------------
# bankgate login
# ---------------------------------------------------------------------------


@main.command()
@click.option("--email", "-e", required=True, help="Customer e-mail")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--quiet", "-q", is_flag=True, help="Print only the token")
def login(email: str, password: str, quiet: bool):
    """Log in with Basic credentials and print the issued JWT."""
    _run(_login_impl(email, password, quiet))


async def _login_impl(email: str, password: str, quiet: bool):
    async with _client(auth=(email, password)) as c:
        r = await c.get("/user")
        if r.status_code != 200:
            _fail(r)

        token = r.headers.get("Authorization")
        if not token:
            click.secho(
                "Login succeeded but no token was issued (server in Basic mode?)",
                fg="yellow",
                err=True,
            )
            sys.exit(1)

        if quiet:
            click.echo(token)
            return

        customer = r.json()
        click.secho(f"Logged in as {customer['email']}", fg="green")
        click.echo(f"  Authorities: {', '.join(customer['authorities'])}")
        click.echo(f"  Token: {token}")


# ---------------------------------------------------------------------------
# bankgate get
# ---------------------------------------------------------------------------


@main.command()
@click.argument("path")
@click.option("--token", "-t", envvar="BANKGATE_TOKEN", help="JWT (or set BANKGATE_TOKEN)")
@click.option("--email", "-e", help="Use Basic credentials instead of a token")
@click.option("--password", help="Password for --email")
def get(path: str, token: Optional[str], email: Optional[str], password: Optional[str]):
    """GET a route, authenticated with a JWT or Basic credentials."""
    if email and password is None:
        password = click.prompt("Password", hide_input=True)
    _run(_get_impl(path, token, email, password))


async def _get_impl(
    path: str, token: Optional[str], email: Optional[str], password: Optional[str]
):
    headers = {}
    auth = None
    if email:
        auth = (email, password or "")
    elif token:
        headers["Authorization"] = token

    async with _client(auth=auth) as c:
        r = await c.get(path if path.startswith("/") else f"/{path}", headers=headers)
        if r.status_code >= 400:
            _fail(r)

        if r.headers.get("content-type", "").startswith("application/json"):
            click.echo(_pretty_json(r.json()))
        else:
            click.echo(r.text)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
