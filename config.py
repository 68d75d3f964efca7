import logging
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "3000"))

    # Storage settings
    data_file: str = os.getenv("LIBRARY_DB_FILE", "db.json")

    # Checkout IDs
    checkout_id_prefix: str = os.getenv("CHECKOUT_ID_PREFIX", "CKO")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Management API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Set up root logging once; later calls only adjust the level."""
    level_name = (level or settings.log_level or "INFO").upper()
    if settings.debug:
        level_name = "DEBUG"
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level_name,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root.setLevel(level_name)
