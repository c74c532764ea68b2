# Overview: Capability category constants for grouping related capabilities.


class PermissionCategory:
    """Capability categories for organization and UI display."""
    ORDERS = "ORDERS"
    SCANS = "SCANS"
    REPORTS = "REPORTS"
    BILLING = "BILLING"
    QR_CODES = "QR_CODES"
    USERS = "USERS"


ALL_CATEGORIES = (
    PermissionCategory.ORDERS,
    PermissionCategory.SCANS,
    PermissionCategory.REPORTS,
    PermissionCategory.BILLING,
    PermissionCategory.QR_CODES,
    PermissionCategory.USERS,
)
