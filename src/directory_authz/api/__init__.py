"""
directory_authz.api

HTTP API package (FastAPI).

Responsibilities:
- App factory and composition root.
- Routers exposing health and access-decision endpoints.
"""

# Package marker.
