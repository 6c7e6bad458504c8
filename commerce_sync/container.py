"""
Lazy DI container — singleton access to clients, stores, and services.

Works in the FastAPI process; Celery workers build their own instances per
task run (see celery_app.tasks.base). Import individual getters to avoid
circular imports.
Version: 1.0.0
"""

from functools import lru_cache

from commerce_sync.core.config import settings
from commerce_sync.clients.supabase_client import SupabaseClient
from commerce_sync.clients.shopify_client import ShopifyClient
from commerce_sync.db.catalog_store import CatalogStore
from commerce_sync.services.inventory_resolver import InventoryResolver
from commerce_sync.services.push_orchestrator import PushOrchestrator


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


@lru_cache(maxsize=1)
def get_shopify_client():
    return ShopifyClient(settings)


# -- DB Stores -------------------------------------------------------------

@lru_cache(maxsize=1)
def get_catalog_store():
    return CatalogStore(get_supabase_client(), settings)


# -- Push Services ---------------------------------------------------------

@lru_cache(maxsize=1)
def get_inventory_resolver():
    return InventoryResolver(client=get_shopify_client())


@lru_cache(maxsize=1)
def get_push_orchestrator():
    return PushOrchestrator(
        client=get_shopify_client(),
        settings=settings,
        inventory=get_inventory_resolver(),
    )

