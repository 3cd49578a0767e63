"""
directory_authz.auth

Request authentication/authorization helpers for the HTTP layer.

Responsibilities:
- Read the authenticated principal id set by the forward-auth proxy.
- Enforce access decisions via reusable FastAPI dependency factories.
"""

# Package marker.
