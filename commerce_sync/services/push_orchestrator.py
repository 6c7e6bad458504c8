"""
Push orchestrator — the seven-step product push saga.

Pushes one catalog product to Shopify as a sequence of individually
committed remote operations:

    1. create product shell (draft) with options     fatal
    2. upload media and wait for processing          fatal only on transport failure
    3. create the variants Shopify did not create    fatal
    4. set prices/SKUs and attach images to variants non-fatal
    5. set inventory at the fulfillment location     fatal
    6. push full description and SEO fields          non-fatal
    7. activate (optional)                           fatal

Each step consumes identifiers produced by earlier steps, so the steps run
strictly in order and the saga stops at the first fatal failure. There is
no global rollback: a push that fails at step k leaves a real remote product
shaped by steps 1..k-1, and the PushResult always carries its identifiers
so the caller can retry, delete or finish it. Deletion happens here only
when the caller selects the "delete" partial-failure policy.
Version: 1.0.0
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from commerce_sync.clients.shopify_client import ShopifyClient
from commerce_sync.core.config import Settings
from commerce_sync.core.constants.push import (
    PARTIAL_FAILURE_DELETE,
    PARTIAL_FAILURE_LEAVE,
    STEP_ACTIVATE,
    STEP_ACTIVATION_SKIPPED,
    STEP_CREATE_PRODUCT,
    STEP_CREATE_VARIANTS,
    STEP_DONE_LABELS,
    STEP_NAMES,
    STEP_SET_INVENTORY,
    STEP_UPDATE_SEO,
    STEP_UPDATE_VARIANTS,
    STEP_UPLOAD_MEDIA,
)
from commerce_sync.core.exceptions import (
    CommerceSyncException,
    PushStepError,
    ShopifyUserError,
    ValidationError,
)
from commerce_sync.schemas.products import ProductOption, SourceProduct, VariantDescriptor
from commerce_sync.schemas.push import (
    MediaRecord,
    ProgressCallback,
    PushOptions,
    PushResult,
    ShopifyStore,
    StepResult,
    VariantInfo,
)
from commerce_sync.services.inventory_resolver import InventoryResolver
from commerce_sync.services.media_associator import associate_media
from commerce_sync.services.media_poller import MediaReadinessPoller, MediaUploadOutcome
from commerce_sync.services.variant_reconciler import (
    VariantPlan,
    merge_variant_infos,
    reconcile_variants,
)
from commerce_sync.utils.shopify_payload_builder import (
    build_activate_input,
    build_create_product_input,
    build_create_variants_input,
    build_seo_update_input,
    build_update_variants_input,
    collect_images,
    extract_errors,
    option_value_inputs,
    resolve_options,
)

logger = logging.getLogger("push_orchestrator")

T = TypeVar("T")
StepBody = Callable[[List[str]], Awaitable[T]]


@dataclass
class _PushState:
    """Mutable progress of one push; only ever grows."""

    steps: List[StepResult] = field(default_factory=list)
    product_id: Optional[str] = None
    handle: Optional[str] = None
    variant_ids: List[str] = field(default_factory=list)

    def result(self, success: bool, **extra: Any) -> PushResult:
        return PushResult(
            success=success,
            shopify_product_id=self.product_id,
            shopify_handle=self.handle,
            variant_ids=list(self.variant_ids),
            steps=list(self.steps),
            **extra,
        )


def _variant_info(node: Dict[str, Any]) -> VariantInfo:
    selected = node.get("selectedOptions") or []
    return VariantInfo(
        id=node["id"],
        title=node.get("title"),
        inventory_item_id=(node.get("inventoryItem") or {}).get("id") or "",
        option1=selected[0].get("value") if selected else None,
    )


class PushOrchestrator:
    """Runs the product push saga against one store."""

    def __init__(
        self,
        client: ShopifyClient,
        settings: Settings,
        inventory: Optional[InventoryResolver] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._inventory = inventory or InventoryResolver(client)
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def push_product(
        self,
        product: SourceProduct,
        store: ShopifyStore,
        options: Optional[PushOptions] = None,
    ) -> PushResult:
        """Push one product. Never raises; failures are reported in the result."""
        opts = options or PushOptions()
        on_progress = opts.on_progress
        default_inventory = (
            opts.default_inventory if opts.default_inventory is not None
            else self._settings.push_default_inventory
        )
        activate = (
            opts.activate_on_complete if opts.activate_on_complete is not None
            else self._settings.push_activate_on_complete
        )
        policy = opts.partial_failure_policy or self._settings.push_partial_failure_policy
        poller = MediaReadinessPoller(
            self._client,
            max_attempts=opts.media_poll_max_attempts or self._settings.media_poll_max_attempts,
            interval_seconds=(
                opts.media_poll_interval if opts.media_poll_interval is not None
                else self._settings.media_poll_interval_seconds
            ),
            sleep=self._sleep,
        )

        product_options = resolve_options(product)
        descriptors = list(product.variants or [])
        plan = reconcile_variants(descriptors, product_options)
        state = _PushState()
        logger.info(
            "push start title=%s variants=%d options=%d store=%s",
            product.title, len(descriptors), len(product_options), store.id or store.store_url,
        )

        try:
            product_id, handle, auto_variant = await self._run_step(
                state, STEP_CREATE_PRODUCT, on_progress,
                lambda w: self._create_product(product, product_options, store),
            )
            state.product_id, state.handle = product_id, handle
            state.variant_ids = [auto_variant.id]
            self._notify(on_progress, STEP_CREATE_PRODUCT, STEP_DONE_LABELS[STEP_CREATE_PRODUCT], f"ID: {product_id}")

            media: MediaUploadOutcome = await self._run_step(
                state, STEP_UPLOAD_MEDIA, on_progress,
                lambda w: self._upload_media(poller, product_id, product, store, w),
            )
            self._notify(on_progress, STEP_UPLOAD_MEDIA, STEP_DONE_LABELS[STEP_UPLOAD_MEDIA], f"{len(media.ready)} images")

            variants: List[VariantInfo] = await self._run_step(
                state, STEP_CREATE_VARIANTS, on_progress,
                lambda w: self._create_variants(product_id, plan, product_options, auto_variant, store),
            )
            state.variant_ids = [v.id for v in variants]
            self._notify(on_progress, STEP_CREATE_VARIANTS, STEP_DONE_LABELS[STEP_CREATE_VARIANTS], f"{len(variants)} variants")

            await self._run_step(
                state, STEP_UPDATE_VARIANTS, on_progress,
                lambda w: self._update_variants(
                    product_id, product, variants, descriptors, product_options, plan, media.ready, store, w,
                ),
            )
            self._notify(on_progress, STEP_UPDATE_VARIANTS, STEP_DONE_LABELS[STEP_UPDATE_VARIANTS])

            await self._run_step(
                state, STEP_SET_INVENTORY, on_progress,
                lambda w: self._inventory.set_quantities(variants, descriptors, store, default_inventory),
            )
            self._notify(on_progress, STEP_SET_INVENTORY, STEP_DONE_LABELS[STEP_SET_INVENTORY])

            await self._run_step(
                state, STEP_UPDATE_SEO, on_progress,
                lambda w: self._update_seo(product_id, product, store, w),
            )
            self._notify(on_progress, STEP_UPDATE_SEO, STEP_DONE_LABELS[STEP_UPDATE_SEO])

            if activate:
                await self._run_step(
                    state, STEP_ACTIVATE, on_progress,
                    lambda w: self._activate(product_id, store),
                )
                self._notify(on_progress, STEP_ACTIVATE, STEP_DONE_LABELS[STEP_ACTIVATE])
            else:
                state.steps.append(StepResult(
                    step=STEP_ACTIVATE, name=STEP_ACTIVATION_SKIPPED, success=True, duration_ms=0,
                ))
        except PushStepError as exc:
            cause = exc.__cause__
            message = (str(cause) if cause is not None else "") or str(exc)
            result = state.result(False, errors=[message], failed_step=exc.step)
            if policy == PARTIAL_FAILURE_DELETE and state.product_id:
                await self._delete_partial_product(result, store)
            elif state.product_id:
                logger.warning(
                    "push incomplete: product %s left at step %d (policy=%s)",
                    state.product_id, exc.step - 1, policy or PARTIAL_FAILURE_LEAVE,
                )
            return result

        logger.info(
            "push complete product_id=%s variants=%d warnings=%d",
            state.product_id, len(state.variant_ids), sum(len(s.warnings) for s in state.steps),
        )
        return state.result(True)

    # ------------------------------------------------------------------
    # Step wrapper
    # ------------------------------------------------------------------
    async def _run_step(
        self,
        state: _PushState,
        step: int,
        on_progress: Optional[ProgressCallback],
        body: StepBody,
    ) -> T:
        """Time the step, report progress, append its StepResult, stop the saga on failure."""
        name = STEP_NAMES[step]
        warnings: List[str] = []
        self._notify(on_progress, step, name)
        start = time.monotonic()
        try:
            value = await body(warnings)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            state.steps.append(StepResult(
                step=step, name=name, success=False,
                duration_ms=int((time.monotonic() - start) * 1000),
                error=message, warnings=warnings,
            ))
            logger.error("push step %d (%s) failed: %s", step, name, message)
            raise PushStepError(step, name, message) from exc

        duration_ms = int((time.monotonic() - start) * 1000)
        state.steps.append(StepResult(
            step=step, name=name, success=True, duration_ms=duration_ms, warnings=warnings,
        ))
        logger.info("push step %d (%s) ok in %dms warnings=%d", step, name, duration_ms, len(warnings))
        return value

    @staticmethod
    def _notify(
        on_progress: Optional[ProgressCallback], step: int, message: str, detail: Optional[str] = None
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(step, message, detail)
        except Exception as exc:
            logger.warning("progress callback failed step=%d error=%s", step, exc)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _create_product(
        self, product: SourceProduct, options: List[ProductOption], store: ShopifyStore
    ) -> Tuple[str, str, VariantInfo]:
        product_input = build_create_product_input(
            product,
            options,
            default_vendor=self._settings.push_default_vendor,
            default_product_type=self._settings.push_default_product_type,
        )
        payload = await self._client.execute("create_product", {"input": product_input}, store)
        errors = extract_errors(payload)
        if errors:
            raise ShopifyUserError("create_product", errors, prefix="Product creation failed")

        created = payload.get("product") or {}
        if not created.get("id"):
            raise ValidationError("Product creation returned no product")
        edges = (created.get("variants") or {}).get("edges") or []
        if not edges:
            raise ValidationError("No variant created with product")
        return created["id"], created.get("handle") or "", _variant_info(edges[0].get("node") or {})

    async def _upload_media(
        self,
        poller: MediaReadinessPoller,
        product_id: str,
        product: SourceProduct,
        store: ShopifyStore,
        warnings: List[str],
    ) -> MediaUploadOutcome:
        images = collect_images(product)
        outcome = await poller.upload_and_wait(product_id, images, store)
        warnings.extend(outcome.warnings)
        return outcome

    async def _create_variants(
        self,
        product_id: str,
        plan: VariantPlan,
        options: List[ProductOption],
        auto_variant: VariantInfo,
        store: ShopifyStore,
    ) -> List[VariantInfo]:
        to_create = plan.descriptors_to_create
        if not to_create:
            return merge_variant_infos(plan, auto_variant, [])

        payload = await self._client.execute(
            "bulk_create_variants",
            {"productId": product_id, "variants": build_create_variants_input(to_create, options)},
            store,
        )
        errors = extract_errors(payload)
        if errors:
            raise ShopifyUserError("bulk_create_variants", errors, prefix="Variant creation failed")

        created = [_variant_info(node) for node in payload.get("productVariants") or []]
        return merge_variant_infos(plan, auto_variant, created)

    async def _update_variants(
        self,
        product_id: str,
        product: SourceProduct,
        variants: List[VariantInfo],
        descriptors: Sequence[VariantDescriptor],
        options: List[ProductOption],
        plan: VariantPlan,
        ready_media: List[MediaRecord],
        store: ShopifyStore,
        warnings: List[str],
    ) -> None:
        if not variants:
            return
        if plan.rebind_options and plan.auto_index is not None and plan.auto_index < len(descriptors):
            variants = list(variants)
            bound = descriptors[plan.auto_index]
            variants[plan.auto_index] = variants[plan.auto_index].model_copy(
                update={"option1": bound.option1}
            )
        media_by_variant = associate_media(variants, ready_media)

        updates = []
        for index, info in enumerate(variants):
            descriptor = descriptors[index] if index < len(descriptors) else None
            sku = descriptor.sku if descriptor else None
            if not sku and len(variants) == 1:
                sku = product.sku
            # The auto-created variant carries the first-value combination
            # until its descriptor's own option values are written back
            rebind = descriptor is not None and plan.rebind_options and index == plan.auto_index
            updates.append({
                "id": info.id,
                "price": descriptor.price if descriptor else None,
                "compare_at_price": descriptor.compare_at_price if descriptor else None,
                "sku": sku,
                "media_id": media_by_variant.get(info.id),
                "option_values": option_value_inputs(descriptor, options) if rebind else None,
            })
        variants_input = build_update_variants_input(updates)

        try:
            payload = await self._client.execute(
                "bulk_update_variants", {"productId": product_id, "variants": variants_input}, store
            )
        except CommerceSyncException as exc:
            logger.warning("variant update failed product_id=%s error=%s", product_id, exc)
            warnings.append(f"Variant update failed: {exc}")
            return

        errors = extract_errors(payload)
        if errors:
            logger.warning("variant update warnings product_id=%s errors=%s", product_id, errors)
            warnings.extend(f"Variant update: {e}" for e in errors)

    async def _update_seo(
        self, product_id: str, product: SourceProduct, store: ShopifyStore, warnings: List[str]
    ) -> None:
        try:
            payload = await self._client.execute(
                "update_product", {"input": build_seo_update_input(product_id, product)}, store
            )
        except CommerceSyncException as exc:
            logger.warning("SEO update failed product_id=%s error=%s", product_id, exc)
            warnings.append(f"SEO update failed: {exc}")
            return

        errors = extract_errors(payload)
        if errors:
            logger.warning("SEO update warnings product_id=%s errors=%s", product_id, errors)
            warnings.extend(f"SEO update: {e}" for e in errors)

    async def _activate(self, product_id: str, store: ShopifyStore) -> None:
        payload = await self._client.execute(
            "update_product", {"input": build_activate_input(product_id)}, store
        )
        errors = extract_errors(payload)
        if errors:
            raise ShopifyUserError("update_product", errors, prefix="Product activation failed")

    # ------------------------------------------------------------------
    # Partial-failure policy
    # ------------------------------------------------------------------
    async def _delete_partial_product(self, result: PushResult, store: ShopifyStore) -> None:
        product_id = result.shopify_product_id
        try:
            deleted = await self._client.delete_product(product_id, store)
        except CommerceSyncException as exc:
            logger.error("cleanup of partial product %s failed: %s", product_id, exc)
            result.cleanup_error = str(exc)
            return
        result.cleanup_performed = deleted
        if not deleted:
            result.cleanup_error = "Shopify did not confirm deletion"
        logger.info("cleanup of partial product %s deleted=%s", product_id, deleted)
