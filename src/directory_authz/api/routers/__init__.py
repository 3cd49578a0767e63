"""
directory_authz.api.routers

HTTP routers, one module per surface (health, access).
"""
