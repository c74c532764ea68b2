# Overview: Role -> capability table. The single source of truth for who may do what.

ROLE_SUPERADMIN = "superadmin"
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_USER = "user"
ROLE_COMPANY = "company"
ROLE_AUTHORIZER = "authorizer"
ROLE_CREATOR = "creator"

VALID_ROLES = (
    ROLE_SUPERADMIN,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_USER,
    ROLE_COMPANY,
    ROLE_AUTHORIZER,
    ROLE_CREATOR,
)

# Platform operators (see every brand)
PLATFORM_ROLES = frozenset({ROLE_SUPERADMIN, ROLE_ADMIN})

# Enterprise roles scoped to one brand
BRAND_ROLES = frozenset({ROLE_COMPANY, ROLE_AUTHORIZER, ROLE_CREATOR})

_EVERYONE = {"SCAN_QR", "SUBMIT_REPORT"}

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_SUPERADMIN: _EVERYONE | {
        "VIEW_ORDERS",
        "REJECT_ORDER",
        "PROCESS_ORDER",
        "DISPATCH_ORDER",
        "DOWNLOAD_ORDER_QRS",
        "VIEW_BRAND_SCANS",
        "VIEW_REPORTS",
        "MANAGE_REPORTS",
        "GRANT_CREDITS",
        "MANAGE_BILLING",
        "VIEW_QRS",
        "MANAGE_FORM_CONFIG",
        "MANAGE_STAFF",
        "MANAGE_COMPANIES",
    },
    ROLE_ADMIN: _EVERYONE | {
        "VIEW_ORDERS",
        "REJECT_ORDER",
        "PROCESS_ORDER",
        "DISPATCH_ORDER",
        "DOWNLOAD_ORDER_QRS",
        "VIEW_BRAND_SCANS",
        "VIEW_REPORTS",
        "MANAGE_REPORTS",
        "GRANT_CREDITS",
        "MANAGE_BILLING",
        "VIEW_QRS",
        "CREATE_QRS",
        "MANAGE_FORM_CONFIG",
        "MANAGE_STAFF",
        "MANAGE_COMPANIES",
    },
    ROLE_MANAGER: _EVERYONE | {
        "VIEW_QRS",
        "CREATE_QRS",
    },
    ROLE_USER: set(_EVERYONE),
    ROLE_COMPANY: _EVERYONE | {
        "VIEW_ORDERS",
        "CREATE_ORDER",
        "AUTHORIZE_ORDER",
        "REJECT_ORDER",
        "RECEIVE_ORDER",
        "VIEW_BRAND_SCANS",
        "VIEW_REPORTS",
        "MANAGE_CREDITS",
        "VIEW_QRS",
        "MANAGE_COMPANY_STAFF",
    },
    ROLE_AUTHORIZER: _EVERYONE | {
        "VIEW_ORDERS",
        "AUTHORIZE_ORDER",
        "REJECT_ORDER",
        "RECEIVE_ORDER",
        "VIEW_BRAND_SCANS",
        "VIEW_REPORTS",
        "MANAGE_CREDITS",
        "VIEW_QRS",
    },
    ROLE_CREATOR: _EVERYONE | {
        "VIEW_ORDERS",
        "CREATE_ORDER",
        "MANAGE_CREDITS",
        "VIEW_QRS",
    },
}
