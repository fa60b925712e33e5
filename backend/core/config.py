"""Core configuration with Pydantic v2 Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "development"
    log_level: str = "INFO"
    enable_metrics: bool = True

    # Key-value store: 'memory' or 'file'
    KV_BACKEND: str = "memory"
    # Directory for JSON namespace files (file backend only)
    KV_DATA_DIR: str = "./var/kv"
    # Namespace used when a request carries no X-Company-ID header
    KV_DEFAULT_NAMESPACE: str = "e-default"

    # Store keys read by the format generator
    INVOICES_KEY: str = "e-invoices"
    CONFIG_KEY: str = "e-config"

    # Format used when the request body names none
    DEFAULT_FORMAT: str = "XRechnung"


# Global settings instance
settings = Settings()
