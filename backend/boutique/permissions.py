"""
Permission codes and the fixed role -> permission mapping.

Two roles exist: admin (everything) and cashier (front-of-house work:
selling, looking things up, printing labels). Anything that changes
stock outside a sale, reverses money or edits configuration is admin-only.
"""

# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for organization."""
    CATALOG = "CATALOG"
    SALES = "SALES"
    CUSTOMERS = "CUSTOMERS"
    REPORTS = "REPORTS"
    USERS = "USERS"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    # CATALOG
    ("VIEW_PRODUCTS", "View Products", "Browse products and stock levels", PermissionCategory.CATALOG),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, edit and delete products", PermissionCategory.CATALOG),
    ("PRINT_BARCODES", "Print Barcodes", "Render barcodes and label sheets", PermissionCategory.CATALOG),
    ("VIEW_CATALOG", "View Catalog", "View categories, brands, units and paper sizes", PermissionCategory.CATALOG),
    ("MANAGE_CATALOG", "Manage Catalog", "Edit categories, brands, units and paper sizes", PermissionCategory.CATALOG),

    # SALES
    ("CREATE_SALE", "Create Sale", "Check out a cart", PermissionCategory.SALES),
    ("VIEW_SALES", "View Sales", "View sale history and receipts", PermissionCategory.SALES),
    ("REFUND_SALE", "Refund Sale", "Refund a completed sale in full", PermissionCategory.SALES),
    ("IMPORT_SALES", "Import Sales", "Import historical sales from CSV/Excel", PermissionCategory.SALES),
    ("VALIDATE_PROMO", "Validate Promo Code", "Look up a promo code at checkout", PermissionCategory.SALES),
    ("MANAGE_PROMOS", "Manage Promo Codes", "Create, edit and delete promo codes", PermissionCategory.SALES),

    # CUSTOMERS
    ("VIEW_CUSTOMERS", "View Customers", "Look up customers and points", PermissionCategory.CUSTOMERS),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create and edit customers", PermissionCategory.CUSTOMERS),

    # REPORTS
    ("VIEW_DASHBOARD", "View Dashboard", "View the dashboard tiles", PermissionCategory.REPORTS),
    ("VIEW_REPORTS", "View Reports", "View period sales reports", PermissionCategory.REPORTS),
    ("VIEW_EXPENSES", "View Expenses", "View and export expenses", PermissionCategory.REPORTS),
    ("MANAGE_EXPENSES", "Manage Expenses", "Record, edit and import expenses", PermissionCategory.REPORTS),

    # USERS
    ("MANAGE_USERS", "Manage Users", "Create and list operator accounts", PermissionCategory.USERS),
]


# =============================================================================
# DEFAULT ROLE MAPPINGS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    # Admin gets ALL permissions
    "admin": [perm[0] for perm in PERMISSION_DEFINITIONS],
    "cashier": [
        "VIEW_PRODUCTS",
        "VIEW_CUSTOMERS",
        "MANAGE_CUSTOMERS",
        "CREATE_SALE",
        "VIEW_SALES",
        "VALIDATE_PROMO",
        "VIEW_CATALOG",
        "VIEW_REPORTS",
        "VIEW_DASHBOARD",
        "PRINT_BARCODES",
    ],
}


# =============================================================================
# PERMISSION HELPERS
# =============================================================================

def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()
