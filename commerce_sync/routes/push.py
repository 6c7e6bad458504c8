"""
Push routes — inline product push, queued batch push, remote verification.

POST /api/shopify/push runs one saga inline and returns its PushResult.
POST /api/shopify/push/batch queues the Celery batch task.
GET  /api/shopify/products/{product_id} reads the remote product back.
Version: 1.0.0
"""
import logging
from typing import Callable

from fastapi import APIRouter, Body, HTTPException, Query

from commerce_sync.clients.shopify_client import ShopifyClient
from commerce_sync.core.exceptions import (
    AuthenticationError,
    CommerceSyncException,
    ProductNotFoundError,
    RetryableError,
    StoreNotFoundError,
)
from commerce_sync.db.catalog_store import CatalogStore
from commerce_sync.schemas.push import (
    BatchPushRequest,
    BatchPushResponse,
    ProductVerification,
    PushRequest,
    PushResult,
)
from commerce_sync.services.push_orchestrator import PushOrchestrator

logger = logging.getLogger(__name__)


def to_http_exception(exc: CommerceSyncException) -> HTTPException:
    if isinstance(exc, (StoreNotFoundError, ProductNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, RetryableError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def build_push_router(
    orchestrator: PushOrchestrator,
    client: ShopifyClient,
    catalog_store: Callable[[], CatalogStore],
) -> APIRouter:
    router = APIRouter(tags=["push"])

    @router.post("/api/shopify/push", response_model=PushResult)
    async def push_product(payload: PushRequest = Body(...)):
        """
        Push one product inline.

        A failed push is still a 200 response: the PushResult carries the
        failed step and any partial Shopify identifiers.
        """
        result = await orchestrator.push_product(
            payload.product, payload.store, payload.options.to_options()
        )
        if not result.success:
            logger.warning(
                f"Push of {payload.product.title} failed at step {result.failed_step}: {result.errors}"
            )
        return result

    @router.post("/api/shopify/push/batch", response_model=BatchPushResponse)
    async def push_batch(payload: BatchPushRequest = Body(...)):
        """Queue a batch push of catalog products to one store."""
        try:
            # Import here to avoid circular imports
            from commerce_sync.celery_app.tasks.push import push_products

            task = push_products.delay(
                payload.product_ids,
                payload.store_id,
                payload.options.model_dump(exclude_none=True),
                payload.continue_on_error,
            )
            logger.info(
                f"Queued push of {len(payload.product_ids)} products to store {payload.store_id}, task={task.id}"
            )
            return BatchPushResponse(
                task_id=task.id,
                status="queued",
                total=len(payload.product_ids),
                message=f"Push queued for {len(payload.product_ids)} products",
            )
        except Exception as exc:
            logger.error(f"Failed to queue batch push: {exc}")
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @router.get("/api/shopify/products/{product_id:path}", response_model=ProductVerification)
    async def verify_product(product_id: str, store_id: str = Query(...)):
        """Read back a pushed product (title, status, variants, media)."""
        try:
            store = await catalog_store().get_store(store_id)
            product = await client.get_product(product_id, store)
            if product is None:
                raise ProductNotFoundError(f"Shopify product {product_id} not found")
        except CommerceSyncException as exc:
            raise to_http_exception(exc) from exc
        return ProductVerification(product=product)

    return router
