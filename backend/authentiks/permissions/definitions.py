# Overview: All capability definitions organized by category.
# Each capability is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- ORDERS --

ORDER_PERMISSIONS = [
    (
        "VIEW_ORDERS",
        "View Orders",
        "List and open QR orders (scoped to the caller's brand)",
        PermissionCategory.ORDERS,
    ),
    (
        "CREATE_ORDER",
        "Create Order",
        "Create a QR order (status: Pending Authorization)",
        PermissionCategory.ORDERS,
    ),
    (
        "AUTHORIZE_ORDER",
        "Authorize Order",
        "Authorize a pending order, spending QR credits",
        PermissionCategory.ORDERS,
    ),
    (
        "REJECT_ORDER",
        "Reject Order",
        "Reject a pending or authorized order",
        PermissionCategory.ORDERS,
    ),
    (
        "PROCESS_ORDER",
        "Process Order",
        "Accept an authorized order and generate its QR codes",
        PermissionCategory.ORDERS,
    ),
    (
        "DISPATCH_ORDER",
        "Dispatch Order",
        "Move an order through Dispatching and Dispatched",
        PermissionCategory.ORDERS,
    ),
    (
        "RECEIVE_ORDER",
        "Receive Order",
        "Mark a dispatched order as received, activating its QR codes",
        PermissionCategory.ORDERS,
    ),
    (
        "DOWNLOAD_ORDER_QRS",
        "Download Order QRs",
        "Download the printable QR sheet of an order",
        PermissionCategory.ORDERS,
    ),
]


# -- SCANS --

SCAN_PERMISSIONS = [
    (
        "SCAN_QR",
        "Scan QR",
        "Scan a QR code and view own scan history",
        PermissionCategory.SCANS,
    ),
    (
        "VIEW_BRAND_SCANS",
        "View Brand Scans",
        "View scans recorded against the caller's brand (all brands for admins)",
        PermissionCategory.SCANS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "SUBMIT_REPORT",
        "Submit Report",
        "Report a counterfeit or duplicate product",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_REPORTS",
        "View Reports",
        "View consumer reports for the caller's brand (all brands for admins)",
        PermissionCategory.REPORTS,
    ),
    (
        "MANAGE_REPORTS",
        "Manage Reports",
        "Change report status and counterfeit flag",
        PermissionCategory.REPORTS,
    ),
]


# -- BILLING --

BILLING_PERMISSIONS = [
    (
        "MANAGE_CREDITS",
        "Manage Credits",
        "View the company credit balance and ledger, buy credits",
        PermissionCategory.BILLING,
    ),
    (
        "GRANT_CREDITS",
        "Grant Credits",
        "Grant QR credits to a company outside the payment flow",
        PermissionCategory.BILLING,
    ),
    (
        "MANAGE_BILLING",
        "Manage Billing",
        "Edit plans, GST/charges, coupons and test accounts",
        PermissionCategory.BILLING,
    ),
]


# -- QR CODES --

QR_PERMISSIONS = [
    (
        "VIEW_QRS",
        "View QR Codes",
        "List generated QR codes",
        PermissionCategory.QR_CODES,
    ),
    (
        "CREATE_QRS",
        "Create QR Codes",
        "Create QR codes directly, outside the order workflow",
        PermissionCategory.QR_CODES,
    ),
    (
        "MANAGE_FORM_CONFIG",
        "Manage Form Config",
        "Edit the QR creation form schema",
        PermissionCategory.QR_CODES,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_STAFF",
        "Manage Staff",
        "Create and list platform admins and managers",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_COMPANIES",
        "Manage Companies",
        "Create companies and brands",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_COMPANY_STAFF",
        "Manage Company Staff",
        "Create authorizer/creator logins for the caller's brand",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    ORDER_PERMISSIONS
    + SCAN_PERMISSIONS
    + REPORT_PERMISSIONS
    + BILLING_PERMISSIONS
    + QR_PERMISSIONS
    + USER_PERMISSIONS
)
