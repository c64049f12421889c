#!/usr/bin/env python3
"""
Bankgate Quickstart: the browser client's security dance in one script.

Registers a customer → logs in with Basic on /user → reads the JWT from
the Authorization header → calls protected routes → posts an inquiry.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8080 (bankgate serve)
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8080"
ORIGIN = "http://localhost:4200"


def main():
    run_id = uuid.uuid4().hex[:6]
    email = f"demo-{run_id}@example.com"
    password = "demo-password-123"
    client = httpx.Client(base_url=BASE, timeout=10, headers={"Origin": ORIGIN})

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        sys.exit(1)
    print(f"  Database: {resp.json()['database']}")

    # ── Register (CSRF exempt) ────────────────────────────────────
    print("\n1. Registering customer...")
    resp = client.post("/register", json={
        "name": f"Demo {run_id}",
        "email": email,
        "mobile_number": "5551234567",
        "password": password,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print(f"   {email} → {resp.json()['authorities']}")

    # ── Login ─────────────────────────────────────────────────────
    print("\n2. Logging in on /user with Basic credentials...")
    resp = client.get("/user", auth=(email, password))
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.headers["Authorization"]
    csrf_token = resp.headers["X-XSRF-TOKEN"]
    print(f"   JWT:  {token[:24]}...")
    print(f"   CSRF: {csrf_token[:12]}... (cookie XSRF-TOKEN)")

    # ── Protected routes ──────────────────────────────────────────
    print("\n3. Calling protected routes with the token...")
    for path in ("/myAccount", "/myBalance", "/myLoans", "/myCards"):
        resp = client.get(path, headers={"Authorization": token})
        print(f"   {path:11s} {resp.status_code}  {resp.text}")

    print("\n4. Same route without a token...")
    resp = client.get("/myAccount")
    print(f"   /myAccount  {resp.status_code}  (expected 401)")

    # ── CSRF ──────────────────────────────────────────────────────
    print("\n5. Unsafe request without the CSRF header...")
    resp = client.post("/notices", headers={"Authorization": token})
    print(f"   POST /notices  {resp.status_code}  {resp.json()['detail']}")

    print("\n6. Posting an inquiry (CSRF exempt)...")
    resp = client.post("/contact", json={
        "name": f"Demo {run_id}",
        "email": email,
        "subject": "Quickstart",
        "message": "Testing the contact form.",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    print(f"   Service request {resp.json()['contact_id']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
