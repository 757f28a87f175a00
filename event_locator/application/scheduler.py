"""
Background scheduler - runs periodic jobs inside the FastAPI process.

Jobs:
  - Reminder sweep (every REMINDER_SWEEP_SECONDS)
  - Event completion sweep (every EVENT_COMPLETION_SWEEP_SECONDS)

Both are safe to run on several instances at once: reminders are claimed with
a conditional update and completion is a conditional status transition.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def run_reminder_sweep(container) -> int:
    from event_locator.application.reminder_dispatcher import dispatch_due_reminders

    db = container.session_factory()()
    try:
        return dispatch_due_reminders(db, container.pipeline())
    except Exception:
        logger.exception("Reminder sweep job failed")
        return 0
    finally:
        db.close()


def run_completion_sweep(container) -> int:
    from event_locator.application.events import EventService

    db = container.session_factory()()
    try:
        service = EventService(db, container.cache(), container.pipeline(), container.settings())
        return service.complete_finished_events()
    except Exception:
        logger.exception("Event completion job failed")
        return 0
    finally:
        db.close()


def start_scheduler(container) -> None:
    """Start the background scheduler with all periodic jobs."""
    settings = container.settings()

    scheduler.add_job(
        run_reminder_sweep,
        "interval",
        seconds=settings.REMINDER_SWEEP_SECONDS,
        args=[container],
        id="reminder_sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.add_job(
        run_completion_sweep,
        "interval",
        seconds=settings.EVENT_COMPLETION_SWEEP_SECONDS,
        args=[container],
        id="event_completion",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        "Scheduler started: reminder_sweep (every %ss), event_completion (every %ss)",
        settings.REMINDER_SWEEP_SECONDS,
        settings.EVENT_COMPLETION_SWEEP_SECONDS,
    )


def shutdown_scheduler() -> None:
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
