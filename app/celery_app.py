from celery import Celery

from app.config import settings

celery_app = Celery(
    "office_correspondence",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.retention"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "check-archive-retention": {
            "task": "app.tasks.retention.check_archive_retention",
            "schedule": float(settings.archive_retention_check_seconds),
        },
    },
)
