import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.retention.check_archive_retention", ignore_result=True)
def check_archive_retention() -> None:
    """Periodic task that marks archives past their retention date as expired."""
    from app.db import SessionLocal
    from app.services.archive import archives

    db = SessionLocal()
    try:
        count = archives.mark_expired(db)
        logger.info("Archive retention check expired %d archives", count)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to check archive retention: %s", e)
    finally:
        db.close()
