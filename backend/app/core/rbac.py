"""Admin roles and permissions.

The role comes from the access token's ``app_metadata.role`` claim set in the
hosted auth provider; permissions are derived here.

RBAC Matrix:
┌─────────────────────┬───────┬────────┬────────┐
│ Permission          │ Admin │ Editor │ Viewer │
├─────────────────────┼───────┼────────┼────────┤
│ store:read          │  ✓    │   ✓    │   ✓    │
│ store:create        │  ✓    │   ✓    │        │
│ store:update        │  ✓    │   ✓    │        │
│ store:delete        │  ✓    │        │        │
│ deal:read           │  ✓    │   ✓    │   ✓    │
│ deal:create         │  ✓    │   ✓    │        │
│ deal:update         │  ✓    │   ✓    │        │
│ deal:delete         │  ✓    │        │        │
│ category:read       │  ✓    │   ✓    │   ✓    │
│ category:create     │  ✓    │   ✓    │        │
│ category:update     │  ✓    │   ✓    │        │
│ category:delete     │  ✓    │        │        │
│ country:read        │  ✓    │   ✓    │   ✓    │
│ asset:upload        │  ✓    │   ✓    │        │
└─────────────────────┴───────┴────────┴────────┘
"""

import enum


class PermissionAction(str, enum.Enum):
    """All permission actions in the admin."""
    # Stores
    STORE_READ = "store:read"
    STORE_CREATE = "store:create"
    STORE_UPDATE = "store:update"
    STORE_DELETE = "store:delete"
    # Deals
    DEAL_READ = "deal:read"
    DEAL_CREATE = "deal:create"
    DEAL_UPDATE = "deal:update"
    DEAL_DELETE = "deal:delete"
    # Categories
    CATEGORY_READ = "category:read"
    CATEGORY_CREATE = "category:create"
    CATEGORY_UPDATE = "category:update"
    CATEGORY_DELETE = "category:delete"
    # Countries
    COUNTRY_READ = "country:read"
    # Storage
    ASSET_UPLOAD = "asset:upload"


class RoleType(str, enum.Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


DEFAULT_ROLE = RoleType.VIEWER

ROLE_PERMISSIONS: dict[RoleType, list[PermissionAction]] = {
    RoleType.ADMIN: list(PermissionAction),  # All permissions
    RoleType.EDITOR: [
        PermissionAction.STORE_READ,
        PermissionAction.STORE_CREATE,
        PermissionAction.STORE_UPDATE,
        PermissionAction.DEAL_READ,
        PermissionAction.DEAL_CREATE,
        PermissionAction.DEAL_UPDATE,
        PermissionAction.CATEGORY_READ,
        PermissionAction.CATEGORY_CREATE,
        PermissionAction.CATEGORY_UPDATE,
        PermissionAction.COUNTRY_READ,
        PermissionAction.ASSET_UPLOAD,
    ],
    RoleType.VIEWER: [
        PermissionAction.STORE_READ,
        PermissionAction.DEAL_READ,
        PermissionAction.CATEGORY_READ,
        PermissionAction.COUNTRY_READ,
    ],
}


def permissions_for(role: str | None) -> list[str]:
    """Permission strings granted to a role; unknown roles get nothing."""
    try:
        role_type = RoleType(role) if role else DEFAULT_ROLE
    except ValueError:
        return []
    return [p.value for p in ROLE_PERMISSIONS[role_type]]
