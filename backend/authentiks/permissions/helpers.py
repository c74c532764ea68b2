# Overview: Utility functions for capability lookups and validation.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, PLATFORM_ROLES


def get_all_permission_codes():
    """Get list of all capability codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all capabilities in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for a capability code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a capability code is valid."""
    return code in get_all_permission_codes()


def get_role_permissions(role) -> frozenset:
    """Capabilities granted to a role. Unknown roles get nothing (fail closed)."""
    return frozenset(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def role_has_permission(role, code) -> bool:
    return code in DEFAULT_ROLE_PERMISSIONS.get(role, ())


def is_platform_role(role) -> bool:
    return role in PLATFORM_ROLES
