"""
Push constants — saga step labels, media statuses, payload limits.

Product push pipeline constants.
Version: 1.0.0
"""

# Saga steps in execution order: (step number, progress label)
STEP_CREATE_PRODUCT: int = 1
STEP_UPLOAD_MEDIA: int = 2
STEP_CREATE_VARIANTS: int = 3
STEP_UPDATE_VARIANTS: int = 4
STEP_SET_INVENTORY: int = 5
STEP_UPDATE_SEO: int = 6
STEP_ACTIVATE: int = 7

STEP_NAMES: dict[int, str] = {
    STEP_CREATE_PRODUCT: "Creating product with options",
    STEP_UPLOAD_MEDIA: "Uploading images",
    STEP_CREATE_VARIANTS: "Creating variants",
    STEP_UPDATE_VARIANTS: "Updating variant prices and images",
    STEP_SET_INVENTORY: "Setting inventory quantities",
    STEP_UPDATE_SEO: "Updating SEO and description",
    STEP_ACTIVATE: "Activating product",
}

STEP_ACTIVATION_SKIPPED: str = "Activation skipped"

# Completion labels sent through the progress callback after each step
STEP_DONE_LABELS: dict[int, str] = {
    STEP_CREATE_PRODUCT: "Product created",
    STEP_UPLOAD_MEDIA: "Images uploaded",
    STEP_CREATE_VARIANTS: "Variants created",
    STEP_UPDATE_VARIANTS: "Variants updated",
    STEP_SET_INVENTORY: "Inventory set",
    STEP_UPDATE_SEO: "SEO updated",
    STEP_ACTIVATE: "Product activated",
}

# Remote media processing states
MEDIA_STATUS_UPLOADED: str = "UPLOADED"
MEDIA_STATUS_PROCESSING: str = "PROCESSING"
MEDIA_STATUS_READY: str = "READY"
MEDIA_STATUS_FAILED: str = "FAILED"
MEDIA_TERMINAL_STATUSES: frozenset[str] = frozenset({MEDIA_STATUS_READY, MEDIA_STATUS_FAILED})

# Product status transitions
PRODUCT_STATUS_DRAFT: str = "DRAFT"
PRODUCT_STATUS_ACTIVE: str = "ACTIVE"

# Shopify supports at most three option dimensions per product
MAX_OPTION_DIMENSIONS: int = 3
INFERRED_OPTION_NAME: str = "Option"
VARIANT_ALT_FALLBACK: str = "Variant"

# Payload limits
CREATE_DESCRIPTION_PREVIEW_CHARS: int = 200
SEO_DESCRIPTION_MAX_CHARS: int = 155

# Inventory
OUT_OF_STOCK_STATUS: str = "outofstock"
INVENTORY_REASON: str = "correction"
INVENTORY_QUANTITY_NAME: str = "available"

# Catalog write-back
SYNC_STATUS_SYNCED: str = "synced"
SYNC_STATUS_ERROR: str = "error"
PLATFORM_KEY: str = "shopify"

# Partial-failure policies
PARTIAL_FAILURE_LEAVE: str = "leave"
PARTIAL_FAILURE_DELETE: str = "delete"
