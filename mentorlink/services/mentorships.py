"""Mentorship lifecycle: request, respond, cancel, complete and the expiry sweep.

State machine::

    (none) --request--> pending --accept--> active --complete/sweep--> completed
                           |                  |
                           | reject           | cancel (either party)
                           v                  v
                       (deleted)          cancelled

A pending request may also be cancelled by either party. ``completed`` and
``cancelled`` are terminal.

Many students may hold pending requests to the same mentor, and one student may
hold pending requests to many mentors. Exclusivity is enforced on ``active``
rows only: a request is refused while either party is active, and accepting a
request deletes every other pending request of that student in the same
transaction.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from dateutil.relativedelta import relativedelta
from sqlalchemy import update
from sqlalchemy.orm import Session

from mentorlink.core.errors import BadRequestError, ForbiddenError, NotFoundError
from mentorlink.database import atomic
from mentorlink.models.mentorship import OPEN_STATUSES, Mentorship, MentorshipDuration, MentorshipStatus
from mentorlink.models.user import User, UserRole, utcnow
from mentorlink.services.identity import find_users_by_role, get_user

logger = logging.getLogger(__name__)

DURATION_MONTHS = {
    MentorshipDuration.ONE_MONTH: 1,
    MentorshipDuration.TWO_MONTHS: 2,
    MentorshipDuration.THREE_MONTHS: 3,
}
MAX_MESSAGE_LENGTH = 500
ACTIVE_CONFLICT_MESSAGE = 'Mentor or student is already in an active mentorship'


def parse_duration(duration) -> MentorshipDuration:
    try:
        return MentorshipDuration(duration)
    except ValueError as exc:
        raise BadRequestError('Invalid duration') from exc


def calculate_end_date(start_date: datetime, duration) -> datetime:
    """Add the duration in calendar months, clamping to the end of shorter months."""
    return start_date + relativedelta(months=DURATION_MONTHS[parse_duration(duration)])


def _lock_participants(db: Session, user_ids: Iterable[int]) -> None:
    # Always taken before any mentorship row lock, in id order. SQLite has no row locks.
    (
        db.query(User.id)
        .filter(User.id.in_(set(user_ids)))
        .order_by(User.id)
        .with_for_update()
        .all()
    )


def _get_user_with_role(db: Session, user_id: int, role: UserRole, message: str) -> User:
    user = db.query(User).filter(User.id == user_id, User.role == role).first()
    if user is None:
        raise NotFoundError(message)
    return user


def _has_active_mentorship(db: Session, *, mentor_id: int | None = None, student_id: int | None = None) -> bool:
    query = db.query(Mentorship.id).filter(Mentorship.status == MentorshipStatus.ACTIVE)
    if mentor_id is not None:
        query = query.filter(Mentorship.mentor_id == mentor_id)
    if student_id is not None:
        query = query.filter(Mentorship.student_id == student_id)
    return query.first() is not None


def _ensure_participants_available(db: Session, mentor_id: int, student_id: int) -> None:
    if _has_active_mentorship(db, mentor_id=mentor_id):
        raise BadRequestError('Mentor is currently in an active mentorship')
    if _has_active_mentorship(db, student_id=student_id):
        raise BadRequestError('Student is currently in an active mentorship')


def _get_mentorship_for_update(db: Session, mentorship_id: int) -> Mentorship:
    mentorship = (
        db.query(Mentorship)
        .filter(Mentorship.id == mentorship_id)
        .with_for_update(of=Mentorship)
        .first()
    )
    if mentorship is None:
        raise NotFoundError('Mentorship not found')
    return mentorship


def _get_pending_request(db: Session, mentor_id: int, mentorship_id: int, for_update: bool = False) -> Mentorship:
    query = db.query(Mentorship).filter(Mentorship.id == mentorship_id, Mentorship.mentor_id == mentor_id)
    if for_update:
        query = query.populate_existing().with_for_update(of=Mentorship)
    mentorship = query.first()
    if mentorship is None:
        raise NotFoundError('Mentorship request not found')
    if mentorship.status != MentorshipStatus.PENDING:
        raise BadRequestError('Mentorship is not in pending status')
    return mentorship


def _find_pair(db: Session, mentor_id: int, student_id: int):
    return db.query(Mentorship.id).filter(
        Mentorship.mentor_id == mentor_id,
        Mentorship.student_id == student_id,
    ).first()


def _ensure_party(mentorship: Mentorship, actor_id: int, message: str) -> None:
    if actor_id not in (mentorship.mentor_id, mentorship.student_id):
        raise ForbiddenError(message)


def request_mentorship(
    db: Session,
    student_id: int,
    mentor_id: int,
    duration,
    message: str | None = None,
    now: datetime | None = None,
) -> Mentorship:
    duration = parse_duration(duration)
    if message is not None:
        message = message.strip() or None
    if message and len(message) > MAX_MESSAGE_LENGTH:
        raise BadRequestError(f'Message must be {MAX_MESSAGE_LENGTH} characters or fewer.')

    start_date = now or utcnow()

    with atomic(db, conflict_message='A mentorship between this mentor and student already exists'):
        _lock_participants(db, [mentor_id, student_id])

        _get_user_with_role(db, mentor_id, UserRole.MENTOR, 'Mentor not found')
        _get_user_with_role(db, student_id, UserRole.STUDENT, 'Student not found')
        _ensure_participants_available(db, mentor_id, student_id)

        if _find_pair(db, mentor_id, student_id) is not None:
            raise BadRequestError('A mentorship between this mentor and student already exists')

        mentorship = Mentorship(
            mentor_id=mentor_id,
            student_id=student_id,
            status=MentorshipStatus.PENDING,
            duration=duration,
            start_date=start_date,
            end_date=calculate_end_date(start_date, duration),
            message=message,
            created_at=start_date,
        )
        db.add(mentorship)

    db.refresh(mentorship)
    logger.info('Student %s requested mentorship %s with mentor %s', student_id, mentorship.id, mentor_id)
    return mentorship


def respond_to_mentorship_request(
    db: Session,
    mentor_id: int,
    mentorship_id: int,
    accept: bool,
    now: datetime | None = None,
) -> Mentorship | None:
    """Accept or reject a pending request addressed to ``mentor_id``.

    Accepting deletes every other pending request of the same student, then
    activates this one with dates recomputed from the acceptance instant; both
    steps commit together. Rejecting deletes the row and returns ``None``.
    """
    accepted_at = now or utcnow()

    with atomic(db, conflict_message=ACTIVE_CONFLICT_MESSAGE):
        request = _get_pending_request(db, mentor_id, mentorship_id)
        _lock_participants(db, [request.mentor_id, request.student_id])

        # Re-read under lock; a concurrent accept may have removed or changed it.
        mentorship = _get_pending_request(db, mentor_id, mentorship_id, for_update=True)

        if not accept:
            db.delete(mentorship)
            result = None
        else:
            _ensure_participants_available(db, mentorship.mentor_id, mentorship.student_id)

            competing_requests = db.query(Mentorship).filter(
                Mentorship.student_id == mentorship.student_id,
                Mentorship.id != mentorship.id,
                Mentorship.status == MentorshipStatus.PENDING,
            ).all()
            for competing in competing_requests:
                db.delete(competing)
            db.flush()

            mentorship.status = MentorshipStatus.ACTIVE
            mentorship.start_date = accepted_at
            mentorship.end_date = calculate_end_date(accepted_at, mentorship.duration)
            result = mentorship

    if result is None:
        logger.info('Mentor %s rejected mentorship request %s', mentor_id, mentorship_id)
        return None

    db.refresh(result)
    logger.info(
        'Mentor %s accepted mentorship %s; removed %d competing requests',
        mentor_id,
        mentorship_id,
        len(competing_requests),
    )
    return result


def cancel_mentorship(db: Session, actor_id: int, mentorship_id: int, now: datetime | None = None) -> Mentorship:
    with atomic(db):
        mentorship = _get_mentorship_for_update(db, mentorship_id)
        _ensure_party(mentorship, actor_id, 'You can only cancel mentorships you are part of')

        if mentorship.status not in OPEN_STATUSES:
            raise BadRequestError(f'Cannot cancel mentorship in {mentorship.status.value} status')

        mentorship.status = MentorshipStatus.CANCELLED
        mentorship.end_date = now or utcnow()

    db.refresh(mentorship)
    logger.info('User %s cancelled mentorship %s', actor_id, mentorship_id)
    return mentorship


def complete_mentorship(db: Session, actor_id: int, mentorship_id: int, now: datetime | None = None) -> Mentorship:
    with atomic(db):
        mentorship = _get_mentorship_for_update(db, mentorship_id)
        _ensure_party(mentorship, actor_id, 'You can only complete mentorships you are part of')

        if mentorship.status != MentorshipStatus.ACTIVE:
            raise BadRequestError(f'Cannot complete mentorship in {mentorship.status.value} status')

        mentorship.status = MentorshipStatus.COMPLETED
        mentorship.end_date = now or utcnow()

    db.refresh(mentorship)
    logger.info('User %s completed mentorship %s', actor_id, mentorship_id)
    return mentorship


def check_and_update_mentorship_status(db: Session, now: datetime | None = None) -> int:
    """Complete every active mentorship whose end date has passed. Returns the number moved."""
    cutoff = now or utcnow()

    with atomic(db):
        result = db.execute(
            update(Mentorship)
            .where(Mentorship.status == MentorshipStatus.ACTIVE, Mentorship.end_date <= cutoff)
            .values(status=MentorshipStatus.COMPLETED)
            .execution_options(synchronize_session=False)
        )
        completed = result.rowcount

    if completed:
        logger.info('Completed %d expired mentorships', completed)
    return completed


def list_mentors(db: Session) -> list[User]:
    return find_users_by_role(db, UserRole.MENTOR)


def get_current_mentorships(db: Session, user_id: int) -> list[Mentorship]:
    user = get_user(db, user_id)
    query = db.query(Mentorship)
    if user.role == UserRole.MENTOR:
        query = query.filter(Mentorship.mentor_id == user.id)
    else:
        query = query.filter(Mentorship.student_id == user.id)
    return query.order_by(Mentorship.created_at.desc(), Mentorship.id.desc()).all()


def get_pending_requests(db: Session, mentor_id: int) -> list[Mentorship]:
    return db.query(Mentorship).filter(
        Mentorship.mentor_id == mentor_id,
        Mentorship.status == MentorshipStatus.PENDING,
    ).order_by(Mentorship.created_at.asc(), Mentorship.id.asc()).all()


def get_student_pending_requests(db: Session, student_id: int) -> list[Mentorship]:
    return db.query(Mentorship).filter(
        Mentorship.student_id == student_id,
        Mentorship.status == MentorshipStatus.PENDING,
    ).order_by(Mentorship.created_at.asc(), Mentorship.id.asc()).all()
