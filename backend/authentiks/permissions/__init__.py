# Overview: Capability system package.
# Re-exports all public APIs so callers import from one place.

from .categories import PermissionCategory, ALL_CATEGORIES
from .definitions import (
    PERMISSION_DEFINITIONS,
    ORDER_PERMISSIONS,
    SCAN_PERMISSIONS,
    REPORT_PERMISSIONS,
    BILLING_PERMISSIONS,
    QR_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    VALID_ROLES,
    PLATFORM_ROLES,
    BRAND_ROLES,
    ROLE_SUPERADMIN,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_USER,
    ROLE_COMPANY,
    ROLE_AUTHORIZER,
    ROLE_CREATOR,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    get_role_permissions,
    role_has_permission,
    is_platform_role,
)

__all__ = [
    "PermissionCategory",
    "ALL_CATEGORIES",
    "PERMISSION_DEFINITIONS",
    "ORDER_PERMISSIONS",
    "SCAN_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "BILLING_PERMISSIONS",
    "QR_PERMISSIONS",
    "USER_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "VALID_ROLES",
    "PLATFORM_ROLES",
    "BRAND_ROLES",
    "ROLE_SUPERADMIN",
    "ROLE_ADMIN",
    "ROLE_MANAGER",
    "ROLE_USER",
    "ROLE_COMPANY",
    "ROLE_AUTHORIZER",
    "ROLE_CREATOR",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "get_role_permissions",
    "role_has_permission",
    "is_platform_role",
]
