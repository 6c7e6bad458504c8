"""
Integration tests for Celery task registration, configuration and the
batch push task body.

The task body runs against a mocked catalog store and a real batch
service over the scripted gateway; no broker is contacted.
Version: 1.0.0
"""
import pytest
from unittest.mock import AsyncMock, patch

from commerce_sync.core.exceptions import ExternalAPIError, StoreNotFoundError
from commerce_sync.services.batch_push_service import BatchPushService
from commerce_sync.services.push_orchestrator import PushOrchestrator


PUSH_TASK = "commerce_sync.celery_app.tasks.push.push_products"
TASKS = "commerce_sync.celery_app.tasks.push"


@pytest.fixture(scope="module")
def celery_app():
    from commerce_sync.celery_app.celery_config import celery_app
    # Celery's `include` only auto-imports when a worker boots
    celery_app.loader.import_default_modules()
    return celery_app


# ---------------------------------------------------------------------------
# Registration and configuration
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestCeleryConfiguration:
    """Tests for task registration, routing and rate limits."""

    def test_push_task_registered(self, celery_app):
        assert PUSH_TASK in celery_app.tasks

    def test_push_task_never_retries(self, celery_app):
        assert celery_app.tasks[PUSH_TASK].max_retries == 0

    def test_push_tasks_routed_to_push_queue(self, celery_app):
        routes = celery_app.conf.task_routes
        assert routes[f"{TASKS}.*"] == {"queue": "push"}
        assert {q.name for q in celery_app.conf.task_queues} == {"push", "default"}

    def test_push_task_rate_limited(self, celery_app):
        from commerce_sync.core.config import settings
        assert celery_app.conf.task_annotations[PUSH_TASK]["rate_limit"] == settings.shopify_api_rate_limit

    def test_json_only(self, celery_app):
        assert celery_app.conf.task_serializer == "json"
        assert celery_app.conf.accept_content == ["json"]

    def test_package_exports(self):
        from commerce_sync.celery_app import celery_app as exported
        from commerce_sync.celery_app.tasks import push_products
        assert push_products.name == PUSH_TASK
        assert exported.main == "commerce_sync"


# ---------------------------------------------------------------------------
# Task body
# ---------------------------------------------------------------------------

@pytest.fixture
def wired(gateway, mock_settings, no_sleep, mock_catalog_store, sample_store, make_product):
    """Patch the task's dependency helpers with test doubles."""
    mock_catalog_store.get_store.return_value = sample_store
    mock_catalog_store.get_products.return_value = [
        make_product(id="p1", title="First", sku="F-1"),
        make_product(id="p2", title="Second", sku="S-1"),
    ]
    service = BatchPushService(PushOrchestrator(gateway, mock_settings, sleep=no_sleep))
    with patch(f"{TASKS}.get_settings", return_value=mock_settings), \
            patch(f"{TASKS}.get_catalog_store", return_value=mock_catalog_store), \
            patch(f"{TASKS}.build_batch_service", return_value=service):
        yield mock_catalog_store


@pytest.mark.integration
class TestPushAndRecord:
    """Tests for the batch task body."""

    @pytest.mark.asyncio
    async def test_pushes_and_records_each_product(self, wired):
        from commerce_sync.celery_app.tasks.push import _push_and_record

        summary = await _push_and_record(["p1", "p2"], "store-1", None, True)

        assert (summary["total"], summary["succeeded"], summary["failed"]) == (2, 2, 0)
        assert summary["missing_product_ids"] == []
        assert summary["writeback_errors"] == []
        assert [c.args[0] for c in wired.record_result.await_args_list] == ["p1", "p2"]
        wired.get_store.assert_awaited_once_with("store-1")

    @pytest.mark.asyncio
    async def test_reports_missing_products(self, wired):
        from commerce_sync.celery_app.tasks.push import _push_and_record

        summary = await _push_and_record(["p1", "p2", "p9"], "store-1", None, True)

        assert summary["missing_product_ids"] == ["p9"]
        assert summary["total"] == 2

    @pytest.mark.asyncio
    async def test_writeback_failure_reported(self, wired):
        from commerce_sync.celery_app.tasks.push import _push_and_record
        wired.record_result.side_effect = [None, ExternalAPIError("Supabase", "down")]

        summary = await _push_and_record(["p1", "p2"], "store-1", None, True)

        assert summary["succeeded"] == 2
        assert summary["writeback_errors"] == [
            {"product_id": "p2", "error": "Supabase API error: down"},
        ]

    @pytest.mark.asyncio
    async def test_failed_push_recorded_as_failure(self, wired, gateway):
        from commerce_sync.celery_app.tasks.push import _push_and_record
        gateway.script("create_product", {"userErrors": [{"field": ["title"], "message": "taken"}]})

        summary = await _push_and_record(["p1", "p2"], "store-1", None, True)

        assert summary["failed"] == 2
        recorded = [c.args[1] for c in wired.record_result.await_args_list]
        assert all(r.failed_step == 1 for r in recorded)

    @pytest.mark.asyncio
    async def test_unknown_store_raises(self, wired):
        from commerce_sync.celery_app.tasks.push import _push_and_record
        wired.get_store.side_effect = StoreNotFoundError("Store x not found")

        with pytest.raises(StoreNotFoundError):
            await _push_and_record(["p1"], "x", None, True)


@pytest.mark.integration
class TestPushTask:
    """Tests for the synchronous task entry point."""

    def test_options_validated_and_forwarded(self):
        from commerce_sync.celery_app.tasks.push import push_products

        with patch(f"{TASKS}._push_and_record", new_callable=AsyncMock, return_value={"total": 1}) as body:
            result = push_products(["p1"], "store-1", {"default_inventory": 2, "partial_failure_policy": "delete"})

        assert result == {"total": 1}
        product_ids, store_id, options, continue_on_error = body.await_args.args
        assert (product_ids, store_id, continue_on_error) == (["p1"], "store-1", True)
        assert options.default_inventory == 2
        assert options.partial_failure_policy == "delete"
