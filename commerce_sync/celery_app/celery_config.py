"""
Celery application configuration.
Configures the Redis broker, the push queue and the push rate limit.

Note: On Windows, Celery's prefork pool doesn't work properly.
Use --pool=solo or --pool=threads on Windows.

=============================================================================
RUNNING A WORKER
=============================================================================
    celery -A commerce_sync.celery_app worker --pool=solo -Q push,default -l info -n push@%h

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================
    CELERY_BROKER_URL / CELERY_RESULT_BACKEND: default REDIS_URL
    SHOPIFY_API_RATE_LIMIT: push tasks per minute (default: 30/m)
"""
import logging
import platform

from celery import Celery
from kombu import Queue

from commerce_sync.core.config import settings

logger = logging.getLogger(__name__)

# Detect Windows platform for pool configuration
IS_WINDOWS = platform.system() == "Windows"

PUSH_TASK = "commerce_sync.celery_app.tasks.push.push_products"

celery_app = Celery(
    "commerce_sync",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "commerce_sync.celery_app.tasks.push",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    task_queues=(
        Queue("push"),
        Queue("default"),
    ),
    task_routes={
        "commerce_sync.celery_app.tasks.push.*": {"queue": "push"},
    },

    # Rate limiting (configurable via env)
    task_annotations={
        PUSH_TASK: {
            "rate_limit": settings.shopify_api_rate_limit,
        },
    },

    # Result expiration
    result_expires=3600,  # 1 hour

    # Worker pool configuration for Windows compatibility
    worker_pool="solo" if IS_WINDOWS else "prefork",

    # Visibility timeout (how long before unacknowledged task is redelivered)
    broker_transport_options={"visibility_timeout": 3600},

    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s] [%(task_name)s] %(message)s",
)
