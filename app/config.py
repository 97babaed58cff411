from dotenv import load_dotenv
from pytz import timezone
import os

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "certificatesDB")

# Customer listing backend (owned by the customer management feature)
CUSTOMER_API_URL = os.getenv("CUSTOMER_API_URL", "http://localhost:3000/api")
CUSTOMER_API_TOKEN = os.getenv("CUSTOMER_API_TOKEN")
CUSTOMER_FETCH_TIMEOUT = float(os.getenv("CUSTOMER_FETCH_TIMEOUT", "30"))

EXPIRY_HORIZON_DAYS = int(os.getenv("EXPIRY_HORIZON_DAYS", "30"))
APP_TIMEZONE = timezone(os.getenv("APP_TIMEZONE", "Africa/Cairo"))

# Fixed storage keys
NOTIFICATIONS_KEY = "notifications"
CUSTOMERS_KEY = "customers"

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

ADMIN_ROLES = tuple(
    role.strip()
    for role in os.getenv("ADMIN_ROLES", "admin,superadmin,مدير").split(",")
    if role.strip()
)

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
