"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration."""

    # Browser
    HEADLESS: bool = _env_bool("HEADLESS", "true")
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    )
    VIEWPORT_WIDTH: int = int(os.getenv("VIEWPORT_WIDTH", "1366"))
    VIEWPORT_HEIGHT: int = int(os.getenv("VIEWPORT_HEIGHT", "768"))

    # Timeouts (milliseconds for browser waits, seconds for sleeps)
    NAV_TIMEOUT_MS: int = int(os.getenv("NAV_TIMEOUT_MS", "30000"))
    FIELD_TIMEOUT_MS: int = int(os.getenv("FIELD_TIMEOUT_MS", "10000"))
    ORDERS_TIMEOUT_MS: int = int(os.getenv("ORDERS_TIMEOUT_MS", "15000"))
    LOGIN_SETTLE_SECONDS: float = float(os.getenv("LOGIN_SETTLE_SECONDS", "3"))
    LOAD_MORE_SETTLE_SECONDS: float = float(os.getenv("LOAD_MORE_SETTLE_SECONDS", "2"))

    # Import limits
    MAX_ORDER_PAGES: int = int(os.getenv("MAX_ORDER_PAGES", "20"))
    IMPORT_TIMEOUT: float = float(os.getenv("IMPORT_TIMEOUT", "180"))

    # Supabase
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str | None = os.getenv("SUPABASE_SERVICE_ROLE")
    PRODUCTS_TABLE: str = os.getenv("PRODUCTS_TABLE", "products")
    CONNECTIONS_TABLE: str = os.getenv("CONNECTIONS_TABLE", "user_connections")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    @classmethod
    def validate(cls, require_supabase: bool = True) -> None:
        """Validate required configuration."""
        errors = []
        if require_supabase:
            if not cls.SUPABASE_URL:
                errors.append("SUPABASE_URL is required")
            if not cls.SUPABASE_SERVICE_ROLE:
                errors.append("SUPABASE_SERVICE_ROLE is required")
        if cls.MAX_ORDER_PAGES < 1:
            errors.append("MAX_ORDER_PAGES must be at least 1")
        if cls.IMPORT_TIMEOUT <= 0:
            errors.append("IMPORT_TIMEOUT must be positive")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
