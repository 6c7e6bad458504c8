"""
Constants package — re-exports from domain-specific modules.

Centralized business constants for Commerce Sync.

Usage:
    from commerce_sync.core.constants.push import STEP_NAMES
    # or import everything:
    from commerce_sync.core.constants import push
Version: 1.0.0
"""

from commerce_sync.core.constants import push
from commerce_sync.core.constants.push import (
    STEP_NAMES,
    STEP_DONE_LABELS,
    STEP_ACTIVATION_SKIPPED,
    MEDIA_STATUS_READY,
    MEDIA_STATUS_FAILED,
    MEDIA_TERMINAL_STATUSES,
    PRODUCT_STATUS_DRAFT,
    PRODUCT_STATUS_ACTIVE,
    MAX_OPTION_DIMENSIONS,
    SEO_DESCRIPTION_MAX_CHARS,
    PARTIAL_FAILURE_LEAVE,
    PARTIAL_FAILURE_DELETE,
)

__all__ = [
    "push",
    "STEP_NAMES",
    "STEP_DONE_LABELS",
    "STEP_ACTIVATION_SKIPPED",
    "MEDIA_STATUS_READY",
    "MEDIA_STATUS_FAILED",
    "MEDIA_TERMINAL_STATUSES",
    "PRODUCT_STATUS_DRAFT",
    "PRODUCT_STATUS_ACTIVE",
    "MAX_OPTION_DIMENSIONS",
    "SEO_DESCRIPTION_MAX_CHARS",
    "PARTIAL_FAILURE_LEAVE",
    "PARTIAL_FAILURE_DELETE",
]
