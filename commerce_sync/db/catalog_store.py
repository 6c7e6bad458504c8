"""
Catalog store — source products, store descriptors and sync markers.

Reads the catalog rows a push consumes and writes back the sync marker the
caller persists after a push. The push orchestrator never touches this
store; Celery tasks and routes do.
Version: 1.0.0
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from commerce_sync.clients.supabase_client import SupabaseClient
from commerce_sync.core.config import Settings
from commerce_sync.core.constants.push import PLATFORM_KEY, SYNC_STATUS_ERROR, SYNC_STATUS_SYNCED
from commerce_sync.core.exceptions import StoreNotFoundError
from commerce_sync.db.base_store import BaseStore
from commerce_sync.schemas.products import SourceProduct
from commerce_sync.schemas.push import PushResult, ShopifyStore

logger = logging.getLogger("catalog_store")

_PRODUCT_FIELDS = (
    "id", "title", "description", "vendor", "category", "tags",
    "image_url", "images", "sku", "options", "variants",
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def product_from_row(row: Dict[str, Any]) -> SourceProduct:
    """Project a catalog row onto the fields a push reads."""
    data = {key: row.get(key) for key in _PRODUCT_FIELDS if row.get(key) is not None}
    return SourceProduct.model_validate(data)


def build_catalog_update(result: PushResult) -> Optional[Dict[str, Any]]:
    """Sync marker for a successful push; ``None`` when there is nothing to record."""
    if not result.success or not result.shopify_product_id:
        return None
    return {
        "platform_ids": {PLATFORM_KEY: result.shopify_product_id},
        "sync_status": SYNC_STATUS_SYNCED,
        "last_synced_at": _utc_now_iso(),
    }


class CatalogStore(BaseStore):
    """Catalog products and store connections."""

    def __init__(self, supabase_client: SupabaseClient, settings: Settings) -> None:
        super().__init__(supabase_client)
        self._products_table = settings.catalog_products_table
        self._stores_table = settings.catalog_stores_table

    async def get_products(self, product_ids: Sequence[str]) -> List[SourceProduct]:
        """Products in the requested order; unknown ids are skipped with a warning."""
        rows = await self._select_in(self._products_table, "id", list(product_ids))
        by_id = {str(row.get("id")): row for row in rows}
        products = []
        for product_id in product_ids:
            row = by_id.get(str(product_id))
            if row is None:
                logger.warning("catalog product not found id=%s", product_id)
                continue
            products.append(product_from_row(row))
        return products

    async def get_store(self, store_id: str) -> ShopifyStore:
        """Store descriptor; the Admin API token lives in ``api_credentials``."""
        rows = await self._select(
            self._stores_table, "id,store_url,api_credentials", {"id": store_id}
        )
        if not rows:
            raise StoreNotFoundError(f"Store {store_id} not found")
        row = rows[0]
        credentials = row.get("api_credentials") or {}
        access_token = credentials.get("access_token") if isinstance(credentials, dict) else None
        if not row.get("store_url") or not access_token:
            raise StoreNotFoundError(f"Store {store_id} has no Shopify connection")
        return ShopifyStore(
            id=str(row["id"]),
            store_url=row["store_url"],
            access_token=access_token,
        )

    async def mark_synced(self, product_id: str, result: PushResult) -> Optional[Dict[str, Any]]:
        """Persist the sync marker, keeping other platforms' ids."""
        update = build_catalog_update(result)
        if update is None:
            return None
        rows = await self._select(self._products_table, "platform_ids", {"id": product_id})
        existing = (rows[0].get("platform_ids") if rows else None) or {}
        update["platform_ids"] = {**existing, **update["platform_ids"]}
        await self._update(self._products_table, {"id": product_id}, update)
        logger.info("catalog marked synced id=%s shopify_id=%s", product_id, result.shopify_product_id)
        return update

    async def mark_failed(self, product_id: str, result: PushResult) -> Dict[str, Any]:
        """Flag the product as errored; the error text goes to the log only."""
        error = "; ".join(result.errors or []) or "Push failed"
        update = {"sync_status": SYNC_STATUS_ERROR}
        await self._update(self._products_table, {"id": product_id}, update)
        logger.warning(
            "catalog marked failed id=%s step=%s error=%s", product_id, result.failed_step, error
        )
        return update

    async def record_result(self, product_id: str, result: PushResult) -> Optional[Dict[str, Any]]:
        if result.success:
            return await self.mark_synced(product_id, result)
        return await self.mark_failed(product_id, result)
