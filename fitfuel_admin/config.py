from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    """Application configuration using Pydantic BaseSettings.

    Loads configuration from environment variables and .env file (if present).
    Fields are type-checked and validated. Defaults are provided where appropriate.
    """
    # Application
    app_env: str = "local"
    log_level: str = "DEBUG"

    # Document store
    data_dir: str = "sample_data"
    gateway_kind: Literal["json"] = "json"

    # Notification service
    notification_api_url: str = "http://localhost:5000/api"
    request_timeout_seconds: float = 30.0

    # View settings
    projection_workers: int = 8
    token_preview_count: int = 3
    default_product_sort: Literal["name", "price", "createdAt"] = "name"

    # Seed data settings
    default_seed_users: int = 25
    default_seed_products: int = 40
    default_seed_orders: int = 120
    default_seed_days: int = 45
    default_seed_value: int = 42

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Return the AppConfig instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

def set_config_for_test(**kwargs):
    """For testing only: override the AppConfig instance with new values."""
    global _config
    _config = AppConfig(**kwargs)
