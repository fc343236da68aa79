"""Storefront Service Configuration"""

import re
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_API_URL = "http://localhost:5001/api"


def normalize_api_base(raw: Optional[str]) -> str:
    """Accept both "https://host" and "https://host/api" forms"""
    base = (raw or "").strip()
    if not base:
        return DEFAULT_API_URL

    trimmed = base.rstrip("/")
    if re.search(r"/api$", trimmed, re.IGNORECASE):
        return trimmed
    return f"{trimmed}/api"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Cooperative Storefront"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Marketplace API
    marketplace_api_url: str = DEFAULT_API_URL
    marketplace_api_token: Optional[str] = None
    request_timeout: float = 30.0
    request_retries: int = 3

    # Checkout
    shipping_debounce_seconds: float = 0.8
    default_shipping_method: str = "STANDARD"
    orders_redirect_path: str = "/buyer-orders"

    # Client-side cart persistence
    cart_storage_dir: str = ".storefront/carts"
    cart_storage_key: str = "cart"

    # Sessions
    session_max_age_hours: int = 24
    session_cleanup_interval_seconds: float = 600.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("marketplace_api_url", mode="before")
    @classmethod
    def _normalize_api_url(cls, value: Optional[str]) -> str:
        return normalize_api_base(value)

    @property
    def auth_configured(self) -> bool:
        """Check if a marketplace API token is configured"""
        return bool(self.marketplace_api_token)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
