"""Celery application for background media processing."""

from celery import Celery
from ..config import settings

celery_app = Celery(
    "sharedrop",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["src.tasks.compression"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=24 * 3600,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)
