# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the SafeHer - Personal Safety Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

import os

# ✅ Only load .env in local/dev
if os.environ.get("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


# 🗄️ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./safeher.db")

# 🔐 Secrets (required; checked where they are used)
FERNET_SECRET = os.getenv("FERNET_SECRET")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
ACCESS_TOKEN_EXPIRE_MINUTES = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 30)

# ⏱️ Session watchdog
ALERT_GRACE_PERIOD_SECONDS = _int_env("ALERT_GRACE_PERIOD_SECONDS", 120)
RECONCILE_INTERVAL_SECONDS = _int_env("RECONCILE_INTERVAL_SECONDS", 30)
MAX_SESSION_MINUTES = 24 * 60
LOCATION_HISTORY_LIMIT = 100

# 🚨 Alerts & contacts
ALERT_RETENTION_DAYS = _int_env("ALERT_RETENTION_DAYS", 30)
MAX_EMERGENCY_CONTACTS = _int_env("MAX_EMERGENCY_CONTACTS", 5)
NOTIFY_TIMEOUT_SECONDS = _int_env("NOTIFY_TIMEOUT_SECONDS", 10)
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kolkata")
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "91")

# 📱 Twilio
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# 📧 SMTP
SMTP_SERVER = os.getenv("SMTP_SERVER", "smtp.gmail.com")
SMTP_PORT = _int_env("SMTP_PORT", 587)
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
FROM_EMAIL = os.getenv("FROM_EMAIL") or SMTP_USERNAME

# 🔔 Firebase
FIREBASE_ADMIN_JSON = os.getenv("FIREBASE_ADMIN_JSON")

# 🚦 Rate limiting
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/15minutes")
