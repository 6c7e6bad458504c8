"""
Pytest configuration and shared fixtures for Commerce Sync tests.

Provides settings, a scripted Shopify gateway, mocked stores, and sample
catalog products.
Version: 1.0.0
"""
import copy
from typing import Any, Callable, Dict, List, Optional

import pytest
from unittest.mock import AsyncMock, MagicMock

from commerce_sync.core.config import Settings
from commerce_sync.schemas.products import SourceProduct
from commerce_sync.schemas.push import ShopifyStore


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_settings():
    """Settings object with test defaults (no real credentials, no waiting)."""
    return Settings(
        shopify_api_version="2024-10",
        shopify_request_timeout=5.0,
        shopify_min_request_interval=0.0,
        shopify_max_retries=3,
        push_default_inventory=10,
        push_activate_on_complete=True,
        push_default_vendor="Commerce Hub",
        push_default_product_type="General",
        push_partial_failure_policy="leave",
        media_poll_max_attempts=10,
        media_poll_interval_seconds=0.0,
        batch_max_concurrency=1,
        supabase_url="https://test.supabase.co",
        supabase_service_role_key="test-supabase-key",
        catalog_products_table="products",
        catalog_stores_table="stores",
        auto_start_celery=False,
        shopify_base_url_override=None,
    )


# ---------------------------------------------------------------------------
# Scripted gateway
# ---------------------------------------------------------------------------

class ScriptedGateway:
    """
    Stand-in for ShopifyClient.execute backed by a tiny in-memory shop.

    Every operation has a default behaviour that mints stable ids
    (Product/1001, ProductVariant/2001.., InventoryItem/3001.., MediaImage/4001..).
    ``script(operation, *responses)`` queues overrides: a dict is returned,
    an exception is raised, a callable receives the variables. The last
    queued response repeats.
    """

    PRODUCT_ID = "gid://shopify/Product/1001"
    LOCATION_ID = "gid://shopify/Location/1"

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self._scripts: Dict[str, List[Any]] = {}
        self._next_variant = 2001
        self._next_media = 4001
        self.media: List[Dict[str, Any]] = []
        self.media_status = "READY"
        self.delete_product = AsyncMock(return_value=True)
        self.get_product = AsyncMock(return_value=None)

    # -- scripting -------------------------------------------------------
    def script(self, operation: str, *responses: Any) -> "ScriptedGateway":
        self._scripts.setdefault(operation, []).extend(responses)
        return self

    def ops(self) -> List[str]:
        return [op for op, _ in self.calls]

    def variables(self, operation: str) -> List[Dict[str, Any]]:
        return [v for op, v in self.calls if op == operation]

    # -- gateway contract ------------------------------------------------
    async def execute(self, operation: str, variables: Optional[Dict[str, Any]], store: ShopifyStore):
        self.calls.append((operation, copy.deepcopy(variables)))
        queue = self._scripts.get(operation)
        if queue:
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, BaseException):
                raise item
            if callable(item):
                return item(variables)
            return copy.deepcopy(item)
        return getattr(self, f"_default_{operation}")(variables or {})

    # -- defaults --------------------------------------------------------
    def _variant_node(self, selected: List[Dict[str, str]]) -> Dict[str, Any]:
        n = self._next_variant
        self._next_variant += 1
        return {
            "id": f"gid://shopify/ProductVariant/{n}",
            "title": " / ".join(s["value"] for s in selected) or "Default Title",
            "selectedOptions": selected,
            "inventoryItem": {"id": f"gid://shopify/InventoryItem/{n + 1000}"},
        }

    def _default_create_product(self, variables):
        product_input = variables["input"]
        selected = [
            {"name": opt["name"], "value": opt["values"][0]["name"]}
            for opt in product_input.get("productOptions") or []
        ]
        return {
            "product": {
                "id": self.PRODUCT_ID,
                "title": product_input["title"],
                "handle": product_input["title"].lower().replace(" ", "-"),
                "variants": {"edges": [{"node": self._variant_node(selected)}]},
            },
            "userErrors": [],
        }

    def _default_create_media(self, variables):
        created = []
        for item in variables["media"]:
            record = {
                "id": f"gid://shopify/MediaImage/{self._next_media}",
                "status": "UPLOADED",
                "alt": item["alt"],
            }
            self._next_media += 1
            self.media.append(record)
            created.append(record)
        return {"media": copy.deepcopy(created), "mediaUserErrors": []}

    def _default_get_product_media(self, variables):
        edges = [{"node": dict(m, status=self.media_status)} for m in self.media]
        return {"media": {"edges": edges}}

    def _default_bulk_create_variants(self, variables):
        nodes = [
            self._variant_node([{"name": o["optionName"], "value": o["name"]} for o in v["optionValues"]])
            for v in variables["variants"]
        ]
        return {"productVariants": nodes, "userErrors": []}

    def _default_bulk_update_variants(self, variables):
        return {"productVariants": [{"id": v["id"]} for v in variables["variants"]], "userErrors": []}

    def _default_get_inventory_item(self, variables):
        return {
            "id": variables["id"],
            "inventoryLevels": {"edges": [{"node": {"location": {"id": self.LOCATION_ID}}}]},
        }

    def _default_set_inventory_quantities(self, variables):
        return {"inventoryAdjustmentGroup": {"reason": "correction"}, "userErrors": []}

    def _default_update_product(self, variables):
        return {"product": {"id": variables["input"]["id"]}, "userErrors": []}

    def _default_delete_product(self, variables):
        return {"deletedProductId": variables["input"]["id"], "userErrors": []}


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def no_sleep():
    """Recording replacement for asyncio.sleep."""
    return AsyncMock(return_value=None)


# ---------------------------------------------------------------------------
# Clients / stores (mocked)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_shopify_client():
    """Mocked ShopifyClient (gateway contract only)."""
    client = MagicMock()
    client.execute = AsyncMock(return_value={})
    client.call_shopify_graphql = AsyncMock(return_value={})
    client.get_product = AsyncMock(return_value=None)
    client.delete_product = AsyncMock(return_value=True)
    client.to_gid = MagicMock(side_effect=lambda entity, val: f"gid://shopify/{entity}/{val}")
    return client


@pytest.fixture
def mock_supabase_client():
    """Mocked SupabaseClient."""
    client = MagicMock()
    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.update.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.in_.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])
    client.client.table.return_value = mock_table
    return client


@pytest.fixture
def mock_catalog_store():
    store = MagicMock()
    store.get_store = AsyncMock()
    store.get_products = AsyncMock(return_value=[])
    store.record_result = AsyncMock(return_value=None)
    return store


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_store():
    return ShopifyStore(id="store-1", store_url="test-shop.myshopify.com", access_token="shpat_test_token")


@pytest.fixture
def make_product() -> Callable[..., SourceProduct]:
    """Factory for SourceProduct with sensible defaults."""
    def _make(**overrides) -> SourceProduct:
        data: Dict[str, Any] = {
            "id": "prod-1",
            "title": "Cotton Tee",
            "description": "<p>Soft <b>cotton</b> tee.</p>",
            "vendor": "Acme",
            "category": "Shirts",
            "tags": ["cotton", "summer"],
            "image_url": "https://cdn.example.com/tee.jpg",
        }
        data.update(overrides)
        return SourceProduct.model_validate(data)
    return _make


@pytest.fixture
def sized_product(make_product):
    """Three sizes, one option dimension, one image per variant."""
    return make_product(
        options=[{"name": "Size", "values": ["Small", "Medium", "Large"]}],
        variants=[
            {"option1": "Small", "price": 20, "sku": "TEE-S", "stock_quantity": 5,
             "image_url": "https://cdn.example.com/tee-small.jpg"},
            {"option1": "Medium", "price": 20, "sku": "TEE-M", "stock_quantity": 3,
             "image_url": "https://cdn.example.com/tee-medium.jpg"},
            {"option1": "Large", "price": 22, "compare_at_price": 30, "sku": "TEE-L",
             "stock_status": "outofstock", "stock_quantity": 9},
        ],
    )
