"""
Route aggregation module.

Health is mounted as a plain router; the push router is built with its
dependencies in main.py.
Version: 1.0.0
"""
from commerce_sync.routes.health import router as health_router
from commerce_sync.routes.push import build_push_router

__all__ = ["health_router", "build_push_router"]
