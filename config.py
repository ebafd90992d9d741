"""Configuration settings for the bakery service."""
import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bakery.db")
SEED_DATABASE = _env_flag("SEED_DATABASE", "true")

# Ordering
PAYMENT_METHOD = os.getenv("PAYMENT_METHOD", "cash")
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))

# Seeded admin account (registration never creates admins)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# Telemetry
TELEMETRY_ENABLED = _env_flag("TELEMETRY_ENABLED", "true")
OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

# Application Settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SERVICE_NAME = os.getenv("SERVICE_NAME", "bakery-service")
API_VERSION = "1.0.0"
