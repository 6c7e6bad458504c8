"""
Base task class with common functionality.

Provides:
- Lazy dependency loading after fork
- Standardized failure/retry/success logging
- Event-loop bridging for the async push pipeline
"""
import asyncio
import logging
from celery import Task

logger = logging.getLogger(__name__)


class BaseTask(Task):
    """Base task with common functionality for all workers."""

    # Don't create abstract tasks
    abstract = True

    # Track task state
    track_started = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Called when task fails after all retries exhausted."""
        logger.error(f"Task {self.name}[{task_id}] failed: {exc}")

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        """Called when task is being retried."""
        logger.warning(f"Task {self.name}[{task_id}] retrying (attempt {self.request.retries}): {exc}")

    def on_success(self, retval, task_id, args, kwargs):
        """Called when task succeeds."""
        logger.info(f"Task {self.name}[{task_id}] succeeded")


# ============================================
# Async Helper
# ============================================
def run_async(coro):
    """
    Run async function in sync context.

    Use this to call async methods from Celery tasks.
    Each call creates a new event loop to avoid conflicts.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ============================================
# Dependency helpers (lazy loading)
# ============================================
_dependencies = None


def get_dependencies():
    """
    Lazy load dependencies.

    Called after fork so each worker gets own instances.
    This prevents connection sharing issues between workers.
    """
    global _dependencies
    if _dependencies is None:
        from commerce_sync.core.config import settings
        from commerce_sync.clients.supabase_client import SupabaseClient
        from commerce_sync.db.catalog_store import CatalogStore

        _dependencies = {
            "settings": settings,
            "catalog_store": CatalogStore(SupabaseClient(settings), settings),
        }
    return _dependencies


def get_settings():
    return get_dependencies()["settings"]


def get_catalog_store():
    """Get catalog store instance."""
    return get_dependencies()["catalog_store"]


def build_batch_service(settings):
    """
    Fresh gateway, orchestrator and batch runner for one task run.

    The gateway's throttle lock belongs to the event loop that first uses
    it, and run_async opens a new loop per call.
    """
    from commerce_sync.clients.shopify_client import ShopifyClient
    from commerce_sync.services.batch_push_service import BatchPushService
    from commerce_sync.services.push_orchestrator import PushOrchestrator

    orchestrator = PushOrchestrator(ShopifyClient(settings), settings)
    return BatchPushService(orchestrator)
