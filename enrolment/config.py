import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Student Enrolment Management System")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = _as_bool(os.getenv("DEBUG", "False"))

    # API
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list = field(
        default_factory=lambda: [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    )

    # Database
    database_file: str = os.getenv("ENROLMENT_DB_FILE", "enrolment.db")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Pagination
    default_page_size: int = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
    max_page_size: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # Student ID cards
    id_card_prefix: str = os.getenv("ID_CARD_PREFIX", "STU")


settings = Settings()
