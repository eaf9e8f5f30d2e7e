# backend/tradelink/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///tradelink.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Include underlying exception text in 5xx bodies (never in production)
    EXPOSE_ERROR_DETAILS = _env_bool("EXPOSE_ERROR_DETAILS", False)

    ACCESS_TOKEN_TTL_MINUTES = int(os.environ.get("ACCESS_TOKEN_TTL_MINUTES", "60"))
    REFRESH_TOKEN_TTL_DAYS = int(os.environ.get("REFRESH_TOKEN_TTL_DAYS", "30"))

    # Phone/OTP verification. Unset URL selects the development verifier.
    IDENTITY_VERIFY_URL = os.environ.get("IDENTITY_VERIFY_URL")
    IDENTITY_VERIFY_TIMEOUT = float(os.environ.get("IDENTITY_VERIFY_TIMEOUT", "10"))
    DEV_OTP_CODE = os.environ.get("DEV_OTP_CODE", "123456")

    INVOICE_STORAGE_DIR = os.environ.get("INVOICE_STORAGE_DIR", os.path.join("instance", "invoices"))
    INVOICE_BASE_URL = os.environ.get("INVOICE_BASE_URL", "/files/invoices")

    # Conditional stock decrement inside every order confirmation
    ENFORCE_STOCK = _env_bool("ENFORCE_STOCK", True)

    # Browser origins allowed to call the API (comma separated)
    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
        if origin.strip()
    )
