import os
from typing import List, Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Shopify Admin GraphQL
    shopify_api_version: str = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    shopify_request_timeout: float = float(os.getenv("SHOPIFY_REQUEST_TIMEOUT", "30.0"))
    # Minimum spacing between two calls from the same client (seconds)
    shopify_min_request_interval: float = float(os.getenv("SHOPIFY_MIN_REQUEST_INTERVAL", "0.5"))
    # Attempts for throttled (429) and 5xx responses; user errors are never retried
    shopify_max_retries: int = int(os.getenv("SHOPIFY_MAX_RETRIES", "5"))

    # Push defaults (overridable per push via PushOptions)
    push_default_inventory: int = int(os.getenv("PUSH_DEFAULT_INVENTORY", "10"))
    push_activate_on_complete: bool = _env_bool("PUSH_ACTIVATE_ON_COMPLETE", "true")
    push_default_vendor: str = os.getenv("PUSH_DEFAULT_VENDOR", "Commerce Hub")
    push_default_product_type: str = os.getenv("PUSH_DEFAULT_PRODUCT_TYPE", "General")
    # "leave" keeps a partially-created remote product, "delete" removes it
    push_partial_failure_policy: str = os.getenv("PUSH_PARTIAL_FAILURE_POLICY", "leave")

    # Media readiness polling
    media_poll_max_attempts: int = int(os.getenv("MEDIA_POLL_MAX_ATTEMPTS", "10"))
    media_poll_interval_seconds: float = float(os.getenv("MEDIA_POLL_INTERVAL_SECONDS", "1.0"))

    # Batch runner
    batch_max_concurrency: int = int(os.getenv("BATCH_MAX_CONCURRENCY", "1"))

    # Supabase (catalog)
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    catalog_products_table: str = os.getenv("CATALOG_PRODUCTS_TABLE", "products")
    catalog_stores_table: str = os.getenv("CATALOG_STORES_TABLE", "stores")

    # Celery (falls back to REDIS_URL)
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    auto_start_celery: bool = _env_bool("AUTO_START_CELERY", "true")

    # Rate limits
    shopify_api_rate_limit: str = os.getenv("SHOPIFY_API_RATE_LIMIT", "30/m")

    # Optional override for tests / local proxies (e.g. "http://localhost:8080")
    shopify_base_url_override: Optional[str] = os.getenv("SHOPIFY_BASE_URL_OVERRIDE")

    # Comma-separated list; "*" allows any origin
    cors_allowed_origins: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()] or ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
