"""
Celery tasks package.
Exports all tasks for convenient imports.
"""
from commerce_sync.celery_app.tasks.push import push_products

__all__ = [
    "push_products",
]
