"""
Runtime settings for the Storefront API.

Everything is read from environment variables once at import time.
"""
import os

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

# Bearer tokens are issued by the identity service with the same secret
JWT_SECRET = os.getenv("JWT_SECRET", "default_secret_FOR_DEVELOPMENT_ONLY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "15"))

# Checkout pricing
TAX_RATE = os.getenv("TAX_RATE", "0.10")
FREE_SHIPPING_THRESHOLD = os.getenv("FREE_SHIPPING_THRESHOLD", "100")
SHIPPING_COST = os.getenv("SHIPPING_COST", "10")

# Catalog paging
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "12"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
