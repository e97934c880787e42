"""Background scheduler for periodic cleanup of expired challenges and sessions."""

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from signin_api.config import settings
from signin_api.database import SessionLocal
from signin_api.services.alert_service import send_error_alert_sync
from signin_api.services.challenge_store import ChallengeStore
from signin_api.services.credential_issuer import CredentialIssuer

logger = structlog.get_logger()

scheduler = BackgroundScheduler()


def cleanup_job() -> None:
    """Delete challenge commitments past retention and expired session tokens."""
    db = SessionLocal()
    try:
        challenges = ChallengeStore(db).cleanup_expired()
        sessions = CredentialIssuer(db, settings).cleanup_expired()
        if challenges or sessions:
            logger.info("cleanup_completed", challenges_deleted=challenges, sessions_deleted=sessions)
    except Exception as e:
        logger.error("cleanup_failed", error=str(e), exc_info=True)
        send_error_alert_sync(type(e).__name__, str(e), context={"job": "cleanup"})
    finally:
        db.close()


def start_scheduler() -> None:
    """Start the background scheduler."""
    scheduler.add_job(
        cleanup_job,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="cleanup_expired_signin_state",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("scheduler_started", interval_minutes=settings.cleanup_interval_minutes)


def shutdown_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    scheduler.shutdown()
    logger.info("scheduler_stopped")
