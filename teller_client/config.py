"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Banking backend
    bank_api_base: str = "https://bank-j2ix.onrender.com"
    fee_endpoint: str = "charges"  # "charges" or "transactionCosts"

    # Local storage (persisted session)
    storage_url: str = "sqlite:///./teller_storage.db"
    session_storage_key: str = "user"

    # Service
    service_name: str = "teller-client"
    log_level: str = "INFO"

    # Pending transaction flows left at the confirmation gate are dropped after this
    flow_ttl_seconds: float = 900.0

    # HTTP Client
    http_timeout_seconds: float = 10.0


settings = Settings()
