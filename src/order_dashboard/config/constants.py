"""
Centralized application constants.

This file acts as the single point of truth for business rules shared by
the order, payment, and sync services.
"""

# ==============================================================================
# PAYMENTS
# ==============================================================================

# Share of the order total required before production starts
DEPOSIT_RATE = 0.25

# Orders carry at most four payment installments (payment_1 .. payment_4)
MAX_PAYMENT_INSTALLMENTS = 4

# Rounding tolerance when comparing paid amounts with the amount due
PAYMENT_TOLERANCE = 0.01

PAYMENT_STATUS_NONE = "No Payment Received"
PAYMENT_STATUS_DEPOSIT = "Deposit Paid"
PAYMENT_STATUS_PARTIAL = "Partial Payment"
PAYMENT_STATUS_PAID = "Paid"

PAYMENT_TYPES = ["deposit", "final", "additional"]

# ==============================================================================
# SHIPPING
# ==============================================================================

SHIP_STATUS_NOT_SHIPPED = "Not Shipped"
SHIP_STATUS_IN_PRODUCTION = "In Production"
SHIP_STATUS_READY = "Ready to Ship"
SHIP_STATUS_SHIPPED = "Shipped"

BLOCK_STATUS_DEFAULT = "Planned"

# ==============================================================================
# ORDER SOURCES
# ==============================================================================

SOURCE_MANUAL = "Manual"
SOURCE_SHOPIFY = "Shopify"

# ==============================================================================
# LISTING
# ==============================================================================

ORDERS_PAGE_SIZE = 10
BUYERS_PAGE_SIZE = 50
BLOCKS_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500

# Columns the orders listing may be sorted by
ORDER_SORT_COLUMNS = [
    "order_ref",
    "order_date",
    "buyer",
    "total_topay",
    "payment_status",
    "ship_status",
]

# ==============================================================================
# SHOPIFY SYNC
# ==============================================================================

# Maximum orders per API page (Shopify limit is 250)
SHOPIFY_PAGE_SIZE = 250

# Fixed delay between page requests to stay under the REST rate limit
PAGE_DELAY_SECONDS = 0.5

# Bounded exponential backoff for HTTP 429 responses
RATE_LIMIT_MAX_RETRIES = 5
RATE_LIMIT_BASE_DELAY_SECONDS = 1.0
RATE_LIMIT_MAX_DELAY_SECONDS = 16.0

SHOPIFY_REQUEST_TIMEOUT = 30.0

# Number of per-order error messages returned to the caller
SYNC_ERROR_DETAIL_LIMIT = 10

SHOPIFY_ORDER_FIELDS = (
    "id,name,order_number,created_at,source_name,customer,email,"
    "billing_address,line_items,subtotal_price,total_price,"
    "current_total_tax,financial_status,shipping_lines"
)

SHOPIFY_PRODUCT_FIELDS = "id,title,variants,images,product_type,admin_graphql_api_id"

# ==============================================================================
# EMAIL
# ==============================================================================

EMAIL_STATUS_SENT = "sent"
EMAIL_STATUS_FAILED = "failed"
SMTP_TIMEOUT_SECONDS = 30
