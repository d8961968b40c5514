STATUS_IN_STOCK = "In Stock"
STATUS_SOLD = "Sold"

ROLE_ADMIN = "admin"
ROLE_WORKER = "worker"
USER_ROLES = (ROLE_ADMIN, ROLE_WORKER)
DEFAULT_ROLE = ROLE_WORKER

PRODUCTS_COLLECTION = "products"
HISTORY_COLLECTION = "productHistory"

DEFAULT_SELLER = "Unknown"
UNKNOWN_PRODUCT_NAME = "Unknown Product"

CHANGE_PRODUCT_ADDED = "Product added with purchase price"
CHANGE_STOCK_UPDATED = "Stock updated"
CHANGE_PRICE_UPDATED = "Price updated"
CHANGE_PRODUCT_UPDATED = "Product updated"
CHANGE_PRODUCT_ARCHIVED = "product archived"

RECENT_PRODUCTS_LIMIT = 5
