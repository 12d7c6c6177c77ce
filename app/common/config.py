import os

DATABASE_URL = os.getenv(
    "SCHOOLFANTA_DB_URL",
    "postgresql+psycopg2://schoolfanta@localhost/schoolfanta"
)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("SCHOOLFANTA_TOKEN_DAYS", "7"))

EMAIL_API_URL = "https://api.resend.com/emails"
EMAIL_FROM = os.getenv("EMAIL_FROM", "SchoolFanta <onboarding@resend.dev>")

LOG_LEVEL = os.getenv("SCHOOLFANTA_LOG_LEVEL", "INFO").upper()


def get_secret_key() -> str:
    # Read on use so tests and workers can inject it after import.
    secret = os.getenv("SCHOOLFANTA_SECRET")
    if not secret:
        raise RuntimeError("SCHOOLFANTA_SECRET environment variable not set")
    return secret


def get_idp_secret():
    return os.getenv("SCHOOLFANTA_IDP_SECRET")


def get_email_api_key():
    return os.getenv("RESEND_API_KEY")


def get_base_url() -> str:
    return os.getenv("SCHOOLFANTA_BASE_URL", "http://localhost:3000").rstrip("/")


def google_configured() -> bool:
    return bool(os.getenv("GOOGLE_CLIENT_ID") and os.getenv("GOOGLE_CLIENT_SECRET"))
