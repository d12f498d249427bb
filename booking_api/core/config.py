import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

SLOT_MINUTES = 15
BOOKING_HORIZON_DAYS = int(os.getenv("BOOKING_HORIZON_DAYS", "15"))
HOME_VISIT_MIN_BLOCKS = int(os.getenv("HOME_VISIT_MIN_BLOCKS", "2"))
MAX_BOOKING_RESULTS = int(os.getenv("MAX_BOOKING_RESULTS", "200"))
MAX_BOOKING_NOTES_LENGTH = int(os.getenv("MAX_BOOKING_NOTES_LENGTH", "1000"))

# Off restores the permissive behaviour: accepted ranges are only checked for conflicts.
ENFORCE_ACCEPT_WITHIN_SCHEDULE = _get_bool(os.getenv("ENFORCE_ACCEPT_WITHIN_SCHEDULE"), default=True)

NOTIFICATIONS_ENABLED = _get_bool(os.getenv("NOTIFICATIONS_ENABLED"), default=True)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Doctar <noreply@doctar.app>")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
