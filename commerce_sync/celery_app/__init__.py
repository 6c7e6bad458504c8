"""
Celery application package.
Exports the main Celery app instance.
"""
from commerce_sync.celery_app.celery_config import celery_app

__all__ = ["celery_app"]
