"""Authentication and access control.

Learn: Three request gates, checked in order:
1. Static API key in the `api-key` header (all routes unless exempt)
2. Bearer access token → identity claims (protected routes)
3. Refresh token in the JSON body → identity + stored-hash check (/auth/refresh)

Users authenticate with username/password and receive an access/refresh
token pair. Each user has at most one live refresh token, rotated on use.
"""
