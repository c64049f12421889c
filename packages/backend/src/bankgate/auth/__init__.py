"""Authentication and authorization.

Two ways to become authenticated, both stateless:
1. HTTP Basic → customer e-mail/password checked against bcrypt hashes
2. JWT in the Authorization header → issued by GET /user after Basic login

Either path leaves an Authentication on request.state, which the route
dependencies check against the required roles.
"""
