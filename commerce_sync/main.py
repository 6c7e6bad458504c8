import logging
import os
import platform
import subprocess
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI

from commerce_sync.container import get_catalog_store, get_push_orchestrator, get_shopify_client
from commerce_sync.core.config import settings
from commerce_sync.core.middleware import apply_cors
from commerce_sync.routes import build_push_router, health_router

logger = logging.getLogger(__name__)

# Track Celery subprocesses for cleanup
_celery_processes: List[subprocess.Popen] = []


def _start_celery_worker() -> Optional[subprocess.Popen]:
    """Start Celery worker as a subprocess."""
    is_windows = platform.system() == "Windows"
    pool_type = "solo" if is_windows else "prefork"

    # Project root (parent of commerce_sync/)
    root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    cmd = [
        sys.executable, "-m", "celery",
        "-A", "commerce_sync.celery_app",
        "worker",
        f"--pool={pool_type}",
        "-Q", "push,default",
        "-l", "info",
        "--concurrency=2",
    ]

    try:
        # Use CREATE_NEW_PROCESS_GROUP on Windows to allow proper termination
        kwargs = {"cwd": root_dir}
        if is_windows:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            **kwargs
        )
        logger.info(f"Celery worker started (PID: {process.pid})")
        return process
    except OSError as e:
        logger.error(f"Failed to start Celery worker: {e}")
        return None


def _stop_celery_processes():
    """Stop all Celery subprocesses."""
    import signal

    for process in _celery_processes:
        if process and process.poll() is None:  # Still running
            try:
                logger.info(f"Stopping Celery process (PID: {process.pid})...")
                if platform.system() == "Windows":
                    process.terminate()
                else:
                    process.send_signal(signal.SIGTERM)
                process.wait(timeout=10)
                logger.info(f"Celery process {process.pid} stopped")
            except subprocess.TimeoutExpired:
                logger.warning(f"Force killing Celery process {process.pid}")
                process.kill()

    _celery_processes.clear()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler.

    On startup: start a Celery worker subprocess unless AUTO_START_CELERY=false.
    On shutdown: stop it.
    """
    logger.info("=== Commerce Sync Starting ===")

    if settings.auto_start_celery:
        worker_process = _start_celery_worker()
        if worker_process:
            _celery_processes.append(worker_process)
        logger.info(f"Started {len(_celery_processes)} Celery processes")
    else:
        logger.info("Celery auto-start disabled (AUTO_START_CELERY=false)")

    logger.info(
        f"Shopify API {settings.shopify_api_version}, "
        f"activate_on_complete={settings.push_activate_on_complete}, "
        f"partial_failure_policy={settings.push_partial_failure_policy}"
    )
    logger.info("=== Commerce Sync Ready ===")

    yield

    logger.info("=== Commerce Sync Shutting Down ===")
    if _celery_processes:
        _stop_celery_processes()
    logger.info("Shutdown complete")


app = FastAPI(title="Commerce Sync Backend", lifespan=lifespan)
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")

apply_cors(app, settings)

app.include_router(health_router)
app.include_router(
    build_push_router(get_push_orchestrator(), get_shopify_client(), get_catalog_store)
)
