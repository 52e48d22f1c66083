"""Background scheduler for periodic maintenance jobs."""

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mentorlink.core import config
from mentorlink.database import SessionLocal
from mentorlink.services.mentorships import check_and_update_mentorship_status

logger = logging.getLogger(__name__)

MENTORSHIP_SWEEP_JOB_ID = 'mentorship_status_sweep'

scheduler = BackgroundScheduler(
    timezone='UTC',
    job_defaults={
        'coalesce': True,
        'max_instances': 1,
        'misfire_grace_time': 600,
    },
)


def scheduler_listener(event) -> None:
    if event.exception:
        logger.error("Job '%s' failed: %s", event.job_id, event.exception)
    else:
        logger.debug("Job '%s' executed", event.job_id)


scheduler.add_listener(scheduler_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)


def run_mentorship_sweep(session_factory=SessionLocal) -> int:
    db = session_factory()
    try:
        return check_and_update_mentorship_status(db)
    finally:
        db.close()


def start_scheduler() -> None:
    if not config.MENTORSHIP_SWEEP_ENABLED:
        logger.info('Mentorship sweep disabled')
        return
    if scheduler.running:
        return

    scheduler.add_job(
        run_mentorship_sweep,
        trigger=IntervalTrigger(minutes=config.MENTORSHIP_SWEEP_INTERVAL_MINUTES),
        id=MENTORSHIP_SWEEP_JOB_ID,
        name='Complete expired mentorships',
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        'Scheduler started; mentorship sweep every %d minutes',
        config.MENTORSHIP_SWEEP_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info('Scheduler stopped')
