"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (submission ledger)
    database_url: str = "sqlite:///./zakat_admin.db"

    # Upstream ERP API
    erp_api_base: str = "http://localhost:5000/api"
    erp_api_token: str | None = None

    # Service
    service_name: str = "zakat-admin-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Payments
    payment_grace_days: int = 7  # Days after a due date before a payment counts as overdue
    recurring_start_offset_days: int = 7  # Default recurring start: today + offset

    # Listing
    default_page_limit: int = 10


settings = Settings()
