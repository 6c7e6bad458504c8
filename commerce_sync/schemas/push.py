"""
Push schemas — store descriptor, saga projections, results, and API models.

Defines the internal projections threaded through the seven push steps
(VariantInfo, MediaRecord), the audit trail (StepResult), the aggregate
PushResult returned to callers, and the request/response models used by
the HTTP routes and Celery tasks.
Version: 1.0.0
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr, model_validator

from commerce_sync.schemas.products import SourceProduct


ProgressCallback = Callable[[int, str, Optional[str]], None]


class ShopifyStore(BaseModel):
    """Store connection descriptor, passed opaquely to the gateway."""

    id: Optional[str] = None
    store_url: str
    access_token: SecretStr


class VariantInfo(BaseModel):
    """Remote variant created implicitly by step 1 or explicitly by step 3."""

    id: str
    title: Optional[str] = None
    inventory_item_id: str
    # First option value; only used for reconciliation and media association
    option1: Optional[str] = None


class MediaRecord(BaseModel):
    id: str
    status: str
    alt: str = ""


class StepResult(BaseModel):
    model_config = {"frozen": True}

    step: int
    name: str
    success: bool
    duration_ms: int
    error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class PushResult(BaseModel):
    """
    Aggregate outcome of one product push.

    A failed push keeps every identifier obtained before the failing step:
    the remote product is left in the state produced by the successful steps.
    """

    success: bool
    shopify_product_id: Optional[str] = None
    shopify_handle: Optional[str] = None
    variant_ids: List[str] = Field(default_factory=list)
    errors: Optional[List[str]] = None
    steps: List[StepResult] = Field(default_factory=list)
    failed_step: Optional[int] = None
    cleanup_performed: bool = False
    cleanup_error: Optional[str] = None

    @model_validator(mode="after")
    def _created_product_is_reported(self) -> "PushResult":
        created = any(s.step == 1 and s.success for s in self.steps)
        if created and not self.shopify_product_id:
            raise ValueError("a push that created a remote product must report its id")
        return self

    @property
    def warnings(self) -> List[str]:
        """Non-fatal warnings across all steps, in step order."""
        return [w for s in self.steps for w in s.warnings]


@dataclass
class PushOptions:
    """Per-push overrides; ``None`` means use the configured default."""

    on_progress: Optional[ProgressCallback] = None
    default_inventory: Optional[int] = None
    activate_on_complete: Optional[bool] = None
    partial_failure_policy: Optional[str] = None
    media_poll_max_attempts: Optional[int] = None
    media_poll_interval: Optional[float] = None


class BatchItemResult(BaseModel):
    product: SourceProduct
    result: PushResult


class BatchPushResult(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: List[BatchItemResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# HTTP / task payloads
# ---------------------------------------------------------------------------

class PushOptionsPayload(BaseModel):
    default_inventory: Optional[int] = Field(None, ge=0)
    activate_on_complete: Optional[bool] = None
    partial_failure_policy: Optional[str] = Field(None, pattern="^(leave|delete)$")

    def to_options(self, on_progress: Optional[ProgressCallback] = None) -> PushOptions:
        return PushOptions(
            on_progress=on_progress,
            default_inventory=self.default_inventory,
            activate_on_complete=self.activate_on_complete,
            partial_failure_policy=self.partial_failure_policy,
        )


class PushRequest(BaseModel):
    product: SourceProduct
    store: ShopifyStore
    options: PushOptionsPayload = Field(default_factory=PushOptionsPayload)


class BatchPushRequest(BaseModel):
    product_ids: List[str] = Field(..., min_length=1)
    store_id: str
    options: PushOptionsPayload = Field(default_factory=PushOptionsPayload)
    continue_on_error: bool = True


class BatchPushResponse(BaseModel):
    task_id: str
    status: str
    total: int
    message: Optional[str] = None


class ProductVerification(BaseModel):
    product: Optional[Dict[str, Any]] = None
