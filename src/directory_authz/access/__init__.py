"""
directory_authz.access

Authorization decision engine.

Responsibilities:
- Static role/permission catalog.
- Directory group -> role mapping (per directory backend).
- Contextual access decisions with a closed denial vocabulary.
"""

from directory_authz.access.errors import (
    AccessDeniedError,
    AccessError,
    AccessLookupError,
    ProtectedEntityError,
)
from directory_authz.access.factory import create_access_service
from directory_authz.access.reasons import DenialReason
from directory_authz.access.role_mapper import (
    LLDAP_DEFAULT_CONFIG,
    BaseRoleMapper,
    LldapRoleMapper,
    RoleMapper,
    RoleMapperConfig,
    create_role_mapper,
)
from directory_authz.access.service import AccessService
from directory_authz.access.types import (
    ROLE_ORDER,
    ROLE_PERMISSIONS,
    AccessCheckResult,
    EntityType,
    Permission,
    Role,
    UserAccessContext,
    minimum_role_for,
    permissions_of,
)

__all__ = [
    "LLDAP_DEFAULT_CONFIG",
    "ROLE_ORDER",
    "ROLE_PERMISSIONS",
    "AccessCheckResult",
    "AccessDeniedError",
    "AccessError",
    "AccessLookupError",
    "AccessService",
    "BaseRoleMapper",
    "DenialReason",
    "EntityType",
    "LldapRoleMapper",
    "Permission",
    "ProtectedEntityError",
    "Role",
    "RoleMapper",
    "RoleMapperConfig",
    "UserAccessContext",
    "create_access_service",
    "create_role_mapper",
    "minimum_role_for",
    "permissions_of",
]
