"""
Application configuration and settings
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cinepay.db")
BOOKING_STORE = os.getenv("BOOKING_STORE", "database").lower()  # database | memory

# Razorpay Configuration
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")
RAZORPAY_TIMEOUT_SECONDS = float(os.getenv("RAZORPAY_TIMEOUT_SECONDS", "10"))
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

# Auth Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Email Configuration
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))

# CORS
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
ALLOWED_ORIGINS_ENV = os.getenv("ALLOWED_ORIGINS", "")
if ALLOWED_ORIGINS_ENV:
    ALLOWED_ORIGINS = [origin.strip() for origin in ALLOWED_ORIGINS_ENV.split(",") if origin.strip()]
else:
    ALLOWED_ORIGINS = DEFAULT_ALLOWED_ORIGINS


# Settings class for attribute-style access
class Settings:
    PROJECT_NAME: str = "CinePay API"
    VERSION: str = "1.0.0"
    DATABASE_URL = DATABASE_URL
    BOOKING_STORE = BOOKING_STORE
    RAZORPAY_KEY_ID = RAZORPAY_KEY_ID
    RAZORPAY_KEY_SECRET = RAZORPAY_KEY_SECRET
    RAZORPAY_WEBHOOK_SECRET = RAZORPAY_WEBHOOK_SECRET
    RAZORPAY_TIMEOUT_SECONDS = RAZORPAY_TIMEOUT_SECONDS
    PAYMENT_CURRENCY = PAYMENT_CURRENCY
    SECRET_KEY = SECRET_KEY
    ACCESS_TOKEN_EXPIRE_MINUTES = ACCESS_TOKEN_EXPIRE_MINUTES
    EMAIL_USER = EMAIL_USER
    EMAIL_PASSWORD = EMAIL_PASSWORD
    SMTP_SERVER = SMTP_SERVER
    SMTP_PORT = SMTP_PORT
    ALLOWED_ORIGINS = ALLOWED_ORIGINS

settings = Settings()
