"""
Background scheduler: runs periodic jobs inside the FastAPI process.

Jobs:
  - Insight generation for every account (06:00 UTC daily)
  - Insight expiry (hourly)
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def generate_insights_for_all(db) -> int:
    """Generate insights account by account; one failure does not stop the rest."""
    from app.application.insights import InsightGenerationService
    from app.infrastructure.db.models import User

    service = InsightGenerationService(db)
    generated = 0
    for (account_id,) in db.query(User.id).order_by(User.id).all():
        try:
            generated += len(service.generate(account_id))
        except Exception:
            db.rollback()
            logger.exception("Insight generation failed for account %s", account_id)
    return generated


def _run_insight_generation():
    from app.infrastructure.db.session import session_scope

    try:
        with session_scope() as db:
            count = generate_insights_for_all(db)
        logger.info("Insight generation job created %s insights", count)
    except Exception:
        logger.exception("Insight generation job failed")


def _run_insight_expiry():
    from app.infrastructure.db.session import session_scope
    from app.application.insights import ExpireInsightsUseCase

    try:
        with session_scope() as db:
            count = ExpireInsightsUseCase(db).execute()
        if count:
            logger.info("Expired %s insights", count)
    except Exception:
        logger.exception("Insight expiry job failed")


def start_scheduler():
    """Start the background scheduler with all periodic jobs."""
    scheduler.add_job(
        _run_insight_generation,
        CronTrigger(hour=6, minute=0),
        id="insight_generation",
        replace_existing=True,
    )

    scheduler.add_job(
        _run_insight_expiry,
        "interval",
        hours=1,
        id="insight_expiry",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Background scheduler started")


def shutdown_scheduler():
    """Gracefully shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
