"""
Inventory resolver — fulfillment location lookup and per-variant stock levels.

Resolves the store location from the first variant's inventory item, maps
each catalog stock representation to a non-negative quantity, and sets all
quantities in one absolute (overwrite) call so a retried push lands on the
same numbers.
Version: 1.0.0
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from commerce_sync.clients.shopify_client import ShopifyClient
from commerce_sync.core.constants.push import OUT_OF_STOCK_STATUS
from commerce_sync.core.exceptions import LocationNotFoundError, ShopifyUserError
from commerce_sync.schemas.products import VariantDescriptor
from commerce_sync.schemas.push import ShopifyStore, VariantInfo
from commerce_sync.utils.shopify_payload_builder import build_inventory_input, extract_errors

logger = logging.getLogger("inventory_resolver")


def compute_quantity(variant: Optional[VariantDescriptor], default: int) -> int:
    """
    Target stock for one variant.

    Out-of-stock wins over any numeric field; then stock_quantity, then
    inventory_quantity, then the default.
    """
    if variant is None:
        return max(0, int(default))
    if (variant.stock_status or "").strip().lower() == OUT_OF_STOCK_STATUS:
        return 0
    if variant.stock_quantity is not None:
        return max(0, int(variant.stock_quantity))
    if variant.inventory_quantity is not None:
        return max(0, int(variant.inventory_quantity))
    return max(0, int(default))


class InventoryResolver:
    """Location resolution and bulk quantity setting."""

    def __init__(self, client: ShopifyClient) -> None:
        self._client = client

    async def resolve_location(self, inventory_item_id: str, store: ShopifyStore) -> str:
        """Location id of the first inventory level of an inventory item."""
        item = await self._client.execute("get_inventory_item", {"id": inventory_item_id}, store)
        edges = ((item or {}).get("inventoryLevels") or {}).get("edges") or []
        for edge in edges:
            location_id = ((edge.get("node") or {}).get("location") or {}).get("id")
            if location_id:
                logger.info("inventory location resolved item=%s location=%s", inventory_item_id, location_id)
                return location_id
        raise LocationNotFoundError("Could not determine store location for inventory")

    async def set_quantities(
        self,
        variants: Sequence[VariantInfo],
        descriptors: Sequence[VariantDescriptor],
        store: ShopifyStore,
        default_inventory: int,
    ) -> Dict[str, Any]:
        """Set every variant's available quantity at the resolved location."""
        if not variants:
            return {"location_id": None, "quantities": []}

        location_id = await self.resolve_location(variants[0].inventory_item_id, store)

        quantities: List[Dict[str, Any]] = []
        for index, info in enumerate(variants):
            descriptor = descriptors[index] if index < len(descriptors) else None
            quantities.append({
                "inventory_item_id": info.inventory_item_id,
                "quantity": compute_quantity(descriptor, default_inventory),
            })

        payload = await self._client.execute(
            "set_inventory_quantities",
            {"input": build_inventory_input(quantities, location_id)},
            store,
        )
        errors = extract_errors(payload)
        if errors:
            raise ShopifyUserError("set_inventory_quantities", errors, prefix="Inventory update failed")

        logger.info(
            "inventory set location=%s variants=%d total=%d",
            location_id, len(quantities), sum(q["quantity"] for q in quantities),
        )
        return {"location_id": location_id, "quantities": quantities}
