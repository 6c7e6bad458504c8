"""
Shopify push tasks.

Tasks:
- push_products: push a list of catalog products to one store and write the
  sync markers back to the catalog

Pushes are not idempotent (each run creates new remote products), so the
task never retries on its own. Retry is a caller decision per product,
based on the returned summary.
"""
import logging
from typing import Any, Dict, List, Optional

from commerce_sync.celery_app.celery_config import PUSH_TASK, celery_app
from commerce_sync.celery_app.tasks.base import (
    BaseTask,
    build_batch_service,
    get_catalog_store,
    get_settings,
    run_async,
)
from commerce_sync.core.exceptions import CommerceSyncException
from commerce_sync.schemas.push import PushOptionsPayload

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name=PUSH_TASK,
    max_retries=0,
)
def push_products(
    self,
    product_ids: List[str],
    store_id: str,
    options: Optional[Dict[str, Any]] = None,
    continue_on_error: bool = True,
):
    """
    Push catalog products to a Shopify store.

    Args:
        product_ids: Catalog product ids, pushed in this order
        store_id: Catalog store id holding the Shopify connection
        options: PushOptionsPayload fields (default_inventory, activate_on_complete,
            partial_failure_policy)
        continue_on_error: Keep going after a failed product

    Returns:
        dict: Batch summary plus missing ids and write-back failures
    """
    logger.info(f"Pushing {len(product_ids)} products to store {store_id}")
    push_options = PushOptionsPayload.model_validate(options or {}).to_options()
    return run_async(_push_and_record(product_ids, store_id, push_options, continue_on_error))


async def _push_and_record(product_ids, store_id, push_options, continue_on_error) -> Dict[str, Any]:
    settings = get_settings()
    catalog_store = get_catalog_store()

    store = await catalog_store.get_store(store_id)
    products = await catalog_store.get_products(product_ids)
    found = {p.id for p in products}
    missing = [pid for pid in product_ids if str(pid) not in found]

    summary = await build_batch_service(settings).push_batch(
        products,
        store,
        push_options,
        continue_on_error=continue_on_error,
        max_concurrency=settings.batch_max_concurrency,
    )

    writeback_errors = []
    for item in summary.results:
        try:
            await catalog_store.record_result(item.product.id, item.result)
        except CommerceSyncException as e:
            # The remote product exists either way; report instead of failing the task
            logger.error(f"Catalog write-back failed for {item.product.id}: {e}")
            writeback_errors.append({"product_id": item.product.id, "error": str(e)})

    logger.info(
        f"Push to store {store_id} done: {summary.succeeded} succeeded, "
        f"{summary.failed} failed, {len(missing)} missing"
    )
    payload = summary.model_dump(mode="json")
    payload["missing_product_ids"] = missing
    payload["writeback_errors"] = writeback_errors
    return payload
