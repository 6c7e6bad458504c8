"""
Shopify payload builder — pure transformation from catalog product to GraphQL inputs.

Kept apart from the gateway so that the client contains only transport and
every input shape can be unit-tested without network calls.
Version: 1.0.0
"""

import logging
import re
from typing import Any, Dict, List, Optional

from commerce_sync.core.constants.push import (
    CREATE_DESCRIPTION_PREVIEW_CHARS,
    INFERRED_OPTION_NAME,
    INVENTORY_QUANTITY_NAME,
    INVENTORY_REASON,
    MAX_OPTION_DIMENSIONS,
    PRODUCT_STATUS_ACTIVE,
    PRODUCT_STATUS_DRAFT,
    SEO_DESCRIPTION_MAX_CHARS,
    VARIANT_ALT_FALLBACK,
)
from commerce_sync.schemas.products import ProductOption, SourceProduct, VariantDescriptor

logger = logging.getLogger("shopify_payload_builder")

_TAG_RE = re.compile(r"<[^>]*>")


# ── Error normalisation ───────────────────────────────────────────

def extract_errors(payload: Optional[Dict[str, Any]], key: str = "userErrors") -> List[str]:
    """Normalise field-level errors to "field.path: message" strings."""
    if not payload:
        return []
    messages = []
    for err in payload.get(key) or []:
        field = err.get("field") or []
        if isinstance(field, str):
            field = [field]
        path = ".".join(str(part) for part in field)
        message = err.get("message") or "unknown error"
        messages.append(f"{path}: {message}" if path else message)
    return messages


# ── Options ───────────────────────────────────────────────────────

def resolve_options(product: SourceProduct) -> List[ProductOption]:
    """
    Options to declare on the remote product.

    Declared options win. Without them, a multi-variant product gets one
    dimension per populated slot, each holding that slot's distinct values in
    order of first appearance. A lone inferred dimension is named "Option";
    several are named "Option1", "Option2" and "Option3" by slot.
    """
    if product.options:
        return list(product.options)[:MAX_OPTION_DIMENSIONS]
    variants = product.variants or []
    if len(variants) <= 1:
        return []
    slots: List[List[str]] = [[] for _ in range(MAX_OPTION_DIMENSIONS)]
    for v in variants:
        for idx, value in enumerate(v.option_values[:MAX_OPTION_DIMENSIONS]):
            if value and value not in slots[idx]:
                slots[idx].append(value)
    # Slots are positional: stop at the first empty one
    populated = 0
    while populated < MAX_OPTION_DIMENSIONS and slots[populated]:
        populated += 1
    if not populated:
        return []
    if populated == 1:
        names = [INFERRED_OPTION_NAME]
    else:
        names = [f"{INFERRED_OPTION_NAME}{idx + 1}" for idx in range(populated)]
    options = [ProductOption(name=names[idx], values=slots[idx]) for idx in range(populated)]
    logger.info("inferred options %s for %s", [o.name for o in options], product.title)
    return options


def option_value_inputs(variant: VariantDescriptor, options: List[ProductOption]) -> List[Dict[str, str]]:
    """Pair each populated option slot with its option name."""
    pairs = []
    for idx, value in enumerate(variant.option_values):
        if value and idx < len(options):
            pairs.append({"optionName": options[idx].name, "name": value})
    return pairs


# ── Step 1: product shell ─────────────────────────────────────────

def build_create_product_input(
    product: SourceProduct,
    options: List[ProductOption],
    default_vendor: str,
    default_product_type: str,
) -> Dict[str, Any]:
    """ProductInput for the draft shell; the full description is pushed in step 6."""
    if product.description:
        preview = product.description[:CREATE_DESCRIPTION_PREVIEW_CHARS]
        description_html = f"<p>{preview}...</p>"
    else:
        description_html = "<p></p>"

    payload: Dict[str, Any] = {
        "title": product.title,
        "descriptionHtml": description_html,
        "vendor": product.vendor or default_vendor,
        "productType": product.category or default_product_type,
        "tags": list(product.tags or []),
        "status": PRODUCT_STATUS_DRAFT,
    }
    if options:
        payload["productOptions"] = [
            {"name": opt.name, "values": [{"name": v} for v in opt.values]}
            for opt in options
        ]
    return payload


# ── Step 2: media ─────────────────────────────────────────────────

def collect_images(product: SourceProduct) -> List[Dict[str, str]]:
    """Every distinct image source in upload order, with association alt text."""
    images: List[Dict[str, str]] = []
    seen: set[str] = set()

    def _add(src: Optional[str], alt: str) -> None:
        if src and src not in seen:
            seen.add(src)
            images.append({"src": src, "alt": alt})

    _add(product.image_url, product.title)
    for src in product.images or []:
        _add(src, product.title)
    for v in product.variants or []:
        _add(v.image_src, f"{product.title} - {v.option1 or VARIANT_ALT_FALLBACK}")
    return images


def build_media_input(images: List[Dict[str, str]]) -> List[Dict[str, str]]:
    return [
        {"originalSource": img["src"], "alt": img.get("alt") or "", "mediaContentType": "IMAGE"}
        for img in images
    ]


# ── Steps 3–4: variants ───────────────────────────────────────────

def build_create_variants_input(
    variants: List[VariantDescriptor], options: List[ProductOption]
) -> List[Dict[str, Any]]:
    payload = []
    for v in variants:
        item: Dict[str, Any] = {"optionValues": option_value_inputs(v, options)}
        if v.price is not None:
            item["price"] = v.price
        if v.compare_at_price:
            item["compareAtPrice"] = v.compare_at_price
        if v.sku:
            item["inventoryItem"] = {"sku": v.sku}
        payload.append(item)
    return payload


def build_update_variants_input(updates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """ProductVariantsBulkInput list; unset fields are omitted, not nulled."""
    payload = []
    for u in updates:
        item: Dict[str, Any] = {"id": u["id"]}
        if u.get("price") is not None:
            item["price"] = u["price"]
        if u.get("compare_at_price"):
            item["compareAtPrice"] = u["compare_at_price"]
        if u.get("sku"):
            item["inventoryItem"] = {"sku": u["sku"]}
        if u.get("media_id"):
            item["mediaId"] = u["media_id"]
        if u.get("option_values"):
            item["optionValues"] = u["option_values"]
        payload.append(item)
    return payload


# ── Step 5: inventory ─────────────────────────────────────────────

def build_inventory_input(quantities: List[Dict[str, Any]], location_id: str) -> Dict[str, Any]:
    """Absolute quantities; ignoreCompareQuantity lets the set overwrite without a compare."""
    return {
        "reason": INVENTORY_REASON,
        "name": INVENTORY_QUANTITY_NAME,
        "ignoreCompareQuantity": True,
        "quantities": [
            {
                "inventoryItemId": q["inventory_item_id"],
                "locationId": location_id,
                "quantity": int(q["quantity"]),
            }
            for q in quantities
        ],
    }


# ── Steps 6–7: product update ─────────────────────────────────────

def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text or "").strip()


def build_seo_update_input(product_id: str, product: SourceProduct) -> Dict[str, Any]:
    description = product.description or ""
    seo_title = f"{product.title} - {product.vendor}" if product.vendor else product.title
    return {
        "id": product_id,
        "descriptionHtml": description,
        "seo": {
            "title": seo_title,
            "description": strip_html(description)[:SEO_DESCRIPTION_MAX_CHARS],
        },
    }


def build_activate_input(product_id: str) -> Dict[str, str]:
    return {"id": product_id, "status": PRODUCT_STATUS_ACTIVE}
