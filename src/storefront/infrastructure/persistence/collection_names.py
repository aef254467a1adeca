"""Collection names used by the storefront.

The store accepts any string; these are the ones the application writes.
"""

USERS = "users"
CATEGORIES = "categories"
PRODUCTS = "products"
REVIEWS = "reviews"
SUPPORT_MESSAGES = "supportMessages"
ORDERS = "orders"
ORDER_ITEMS = "orderItems"
PAYMENTS = "payments"
INVENTORY = "inventory"
SALE_ANALYTICS = "saleAnalytics"
COUPONS = "coupons"
EXCHANGES = "exchanges"
NEWSLETTER_SUBSCRIPTIONS = "newsletterSubscriptions"
STOCK_MOVEMENTS = "stockMovements"

KNOWN_COLLECTIONS = [
    USERS,
    CATEGORIES,
    PRODUCTS,
    REVIEWS,
    SUPPORT_MESSAGES,
    ORDERS,
    ORDER_ITEMS,
    PAYMENTS,
    INVENTORY,
    SALE_ANALYTICS,
    COUPONS,
    EXCHANGES,
    NEWSLETTER_SUBSCRIPTIONS,
    STOCK_MOVEMENTS,
]
