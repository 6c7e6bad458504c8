"""
Batch push service — pushes many products against one store.

Each product runs its own independent saga. A failed product is recorded
and, unless the caller asked to stop, the batch moves on. With
``max_concurrency > 1`` pushes overlap; results always come back in input
order.
Version: 1.0.0
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from commerce_sync.schemas.products import SourceProduct
from commerce_sync.schemas.push import (
    BatchItemResult,
    BatchPushResult,
    PushOptions,
    PushResult,
    ShopifyStore,
)
from commerce_sync.services.push_orchestrator import PushOrchestrator

logger = logging.getLogger("batch_push_service")

# (index starting at 1, total, product, result)
ProductProgressCallback = Callable[[int, int, SourceProduct, PushResult], None]


class BatchPushService:
    def __init__(self, orchestrator: PushOrchestrator) -> None:
        self._orchestrator = orchestrator

    async def push_batch(
        self,
        products: Sequence[SourceProduct],
        store: ShopifyStore,
        options: Optional[PushOptions] = None,
        on_product_progress: Optional[ProductProgressCallback] = None,
        continue_on_error: bool = True,
        max_concurrency: int = 1,
    ) -> BatchPushResult:
        """Push every product; one result per attempted product, in input order."""
        total = len(products)
        logger.info(
            "batch push start total=%d store=%s concurrency=%d continue_on_error=%s",
            total, store.id or store.store_url, max_concurrency, continue_on_error,
        )

        results: List[Optional[PushResult]] = [None] * total

        if continue_on_error and max_concurrency > 1:
            semaphore = asyncio.Semaphore(max_concurrency)

            async def _bounded(index: int) -> None:
                async with semaphore:
                    results[index] = await self._push_one(
                        index, total, products[index], store, options, on_product_progress
                    )

            await asyncio.gather(*(_bounded(i) for i in range(total)))
        else:
            for index, product in enumerate(products):
                result = await self._push_one(index, total, product, store, options, on_product_progress)
                results[index] = result
                if not result.success and not continue_on_error:
                    logger.warning(
                        "batch push stopped at %d/%d title=%s", index + 1, total, product.title
                    )
                    break

        items = [
            BatchItemResult(product=products[i], result=r)
            for i, r in enumerate(results)
            if r is not None
        ]
        succeeded = sum(1 for item in items if item.result.success)
        summary = BatchPushResult(
            total=total,
            succeeded=succeeded,
            failed=len(items) - succeeded,
            results=items,
        )
        logger.info(
            "batch push done total=%d succeeded=%d failed=%d",
            summary.total, summary.succeeded, summary.failed,
        )
        return summary

    async def _push_one(
        self,
        index: int,
        total: int,
        product: SourceProduct,
        store: ShopifyStore,
        options: Optional[PushOptions],
        on_product_progress: Optional[ProductProgressCallback],
    ) -> PushResult:
        logger.info("batch push %d/%d title=%s", index + 1, total, product.title)
        try:
            result = await self._orchestrator.push_product(product, store, options)
        except Exception as e:
            logger.exception("batch push %d/%d raised title=%s", index + 1, total, product.title)
            result = PushResult(success=False, errors=[str(e) or e.__class__.__name__])

        if on_product_progress is not None:
            try:
                on_product_progress(index + 1, total, product, result)
            except Exception as e:
                logger.warning("product progress callback failed index=%d error=%s", index + 1, e)
        return result
