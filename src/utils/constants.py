GUEST_USER_ID = "guest"
GUEST_NAME = "Guest"
GUEST_EMAIL = "guest@example.com"

# local storage keys
IDENTITY_KEY = "user"
GUEST_CART_KEY = "guest_cart"
REGISTERED_USERS_KEY = "registered_users"
CATALOG_CACHE_KEY = "catalog_cache"


def cart_backup_key(user_id: str) -> str:
    return f"cart_{user_id}"


def address_key(user_id: str) -> str:
    return f"user_address_{user_id}"


def orders_key(user_id: str) -> str:
    return f"user_orders_{user_id}"


# pricing
DEFAULT_STOCK = 10
FREE_SHIPPING_THRESHOLD = 5000
FLAT_SHIPPING_FEE = 200
TAX_RATE = 0.18
DELIVERY_DAYS = 7

DELIVERY_FIELDS = (
    "fullName",
    "phoneNumber",
    "email",
    "addressLine1",
    "city",
    "state",
    "pincode",
)
PAYMENT_FIELDS = {
    "upi": ("upiId",),
    "card": ("cardNumber", "cardHolder", "expiryDate", "cvv"),
}

CATEGORIES = {
    "all": "All Products",
    "ro": "RO Purifiers",
    "uv": "UV Purifiers",
    "uf": "UF Purifiers",
    "gravity": "Gravity Filters",
}

SORT_OPTIONS = {
    "featured": "Featured",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
    "rating": "Highest Rated",
    "name": "Name: A to Z",
}

# (upper bound inclusive, band key); None is open ended
TDS_BANDS = (
    (200, "low"),
    (500, "medium"),
    (1000, "high"),
    (None, "veryHigh"),
)

PURIFIER_RECOMMENDATIONS = {
    "low": {
        "range": "0-200 ppm",
        "purifiers": [
            "UV Water Purifier",
            "UF Water Purifier",
            "Basic RO + UV Purifier",
        ],
        "description": "For low TDS water, UV/UF purifiers are sufficient to remove bacteria and viruses.",
    },
    "medium": {
        "range": "201-500 ppm",
        "purifiers": [
            "RO + UV Water Purifier",
            "RO + UF Water Purifier",
            "Standard RO Purifier",
        ],
        "description": "Medium TDS water requires RO purification to remove dissolved salts and impurities.",
    },
    "high": {
        "range": "501-1000 ppm",
        "purifiers": [
            "Advanced RO + UV + UF Purifier",
            "Mineral RO Water Purifier",
            "High TDS RO System",
        ],
        "description": "High TDS water needs advanced RO systems with multiple purification stages.",
    },
    "veryHigh": {
        "range": "1000+ ppm",
        "purifiers": [
            "Commercial Grade RO System",
            "Industrial Water Purifier",
            "Multi-stage RO with TDS Controller",
        ],
        "description": "Very high TDS requires commercial-grade systems with TDS control features.",
    },
}

# shown when neither the remote store nor the local cache has a catalog
ORDER_STATUSES = {
    "pending": "Pending",
    "confirmed": "Confirmed",
    "processing": "Processing",
    "shipped": "Shipped",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}
# a user may cancel an order until it ships
CANCELLABLE_ORDER_STATUSES = ("pending", "confirmed", "processing")
# statuses still waiting on the store
OPEN_ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped")

BOOKING_STATUSES = {
    "pending": "Pending",
    "confirmed": "Confirmed",
    "completed": "Completed",
    "cancelled": "Cancelled",
}

SERVICE_TYPES = {
    "installation": "Water Purifier Installation",
    "maintenance": "Annual Maintenance",
    "repair": "Repair Service",
    "filter": "Filter Replacement",
    "other": "Other",
}

FALLBACK_PRODUCTS = [
    {
        "id": "p001",
        "name": "AquaFresh RO + UV + UF + TDS Water Purifier",
        "category": "ro",
        "price": 18999,
        "originalPrice": 21999,
        "image": "https://images.unsplash.com/photo-1541140532154-b024d705b90a?w=400&h=300&fit=crop",
        "rating": 4.7,
        "reviews": 342,
        "stock": 15,
        "features": [
            "8-stage purification",
            "TDS controller",
            "UV LED",
            "Smart display",
            "Copper Technology",
        ],
        "description": "Advanced 8-stage purification system with UV LED and copper technology for 99.9% pure water.",
    },
    {
        "id": "p002",
        "name": "PureFlow UV Water Purifier with Tank",
        "category": "uv",
        "price": 12999,
        "originalPrice": 14999,
        "image": "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=400&h=300&fit=crop",
        "rating": 4.3,
        "reviews": 189,
        "stock": 25,
        "features": [
            "UV purification",
            "Sediment filter",
            "Carbon filter",
            "10L capacity",
            "Auto Shut-off",
        ],
        "description": "Efficient UV purification system with auto shut-off feature and large storage capacity.",
    },
    {
        "id": "p003",
        "name": "AquaGuard UF Water Purifier",
        "category": "uf",
        "price": 8999,
        "originalPrice": 10999,
        "image": "https://images.unsplash.com/photo-1526304640581-d334cdbbf45e?w=400&h=300&fit=crop",
        "rating": 4.2,
        "reviews": 156,
        "stock": 8,
        "features": ["UF membrane", "No electricity", "No wastage", "6L capacity"],
        "description": "Ultra filtration system that works without electricity and produces zero water wastage.",
    },
    {
        "id": "p004",
        "name": "Gravity Pure Water Filter",
        "category": "gravity",
        "price": 4999,
        "originalPrice": 5999,
        "image": "https://images.unsplash.com/photo-1520218508822-998633d997e6?w=400&h=300&fit=crop",
        "rating": 4.0,
        "reviews": 210,
        "stock": 30,
        "features": [
            "Gravity based",
            "No electricity",
            "Ceramic filter",
            "20L capacity",
        ],
        "description": "Simple gravity-based water filter perfect for areas with frequent power cuts.",
    },
]
