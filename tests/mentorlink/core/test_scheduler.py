import asyncio
import json
from datetime import datetime

from mentorlink.core import config, scheduler
from mentorlink.core.errors import NotFoundError, UnauthorizedError
from mentorlink.main import service_error_handler
from mentorlink.models.mentorship import Mentorship, MentorshipDuration, MentorshipStatus


def test_run_mentorship_sweep_completes_expired_rows_and_closes_session(
    session_factory, db, make_student, make_mentor
) -> None:
    db.add(
        Mentorship(
            mentor_id=make_mentor().id,
            student_id=make_student().id,
            status=MentorshipStatus.ACTIVE,
            duration=MentorshipDuration.ONE_MONTH,
            start_date=datetime(2020, 1, 1),
            end_date=datetime(2020, 2, 1),
            created_at=datetime(2020, 1, 1),
        )
    )
    db.commit()
    opened = []

    def tracking_factory():
        session = session_factory()
        opened.append(session)
        return session

    updated = scheduler.run_mentorship_sweep(tracking_factory)

    assert updated == 1
    assert len(opened) == 1
    assert not opened[0].in_transaction()
    db.expire_all()
    assert db.query(Mentorship).one().status == MentorshipStatus.COMPLETED


def test_start_scheduler_is_noop_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(config, 'MENTORSHIP_SWEEP_ENABLED', False)

    scheduler.start_scheduler()

    assert not scheduler.scheduler.running
    assert scheduler.scheduler.get_job(scheduler.MENTORSHIP_SWEEP_JOB_ID) is None


def test_service_error_handler_reports_kind() -> None:
    response = asyncio.run(service_error_handler(None, NotFoundError('Mentorship not found')))

    assert response.status_code == 404
    assert json.loads(response.body) == {'detail': 'Mentorship not found', 'kind': 'not_found'}


def test_service_error_handler_keeps_auth_header() -> None:
    response = asyncio.run(service_error_handler(None, UnauthorizedError('Invalid token')))

    assert response.status_code == 401
    assert response.headers['www-authenticate'] == 'Bearer'
