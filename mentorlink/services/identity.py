"""Identity store: registration, credential checks and user lookups."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mentorlink.auth import jwt_handler
from mentorlink.auth.passwords import hash_password, verify_password
from mentorlink.core.errors import BadRequestError, NotFoundError, UnauthorizedError
from mentorlink.models.user import User, UserRole
from mentorlink.services.catalog import resolve_job_title, resolve_skills

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = 'The email or password you entered is incorrect'


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(
    role: UserRole,
    skill_ids: list[int],
    learning_skill_ids: list[int] | None,
    job_title_id: int | None,
) -> None:
    if job_title_id is None:
        raise BadRequestError('A job title is required.')

    if role == UserRole.STUDENT:
        if not learning_skill_ids:
            raise BadRequestError('Students must specify skills they want to learn')
    elif role == UserRole.MENTOR:
        if learning_skill_ids:
            raise BadRequestError('Mentors should not specify skills to learn')
        if not skill_ids:
            raise BadRequestError('Mentors must specify the skills they have')
    else:
        raise BadRequestError('Invalid role.')


def register_user(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: UserRole,
    skill_ids: list[int],
    learning_skill_ids: list[int] | None = None,
    job_title_id: int | None = None,
    bio: str | None = None,
    profile_image_url: str | None = None,
) -> tuple[User, str]:
    normalized_email = normalize_email(email)
    if find_user_by_email(db, normalized_email) is not None:
        raise BadRequestError('Email already registered')

    validate_registration(role, skill_ids, learning_skill_ids, job_title_id)

    user = User(
        email=normalized_email,
        hashed_password=hash_password(password),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        role=role,
        bio=bio,
        profile_image_url=profile_image_url,
        job_title=resolve_job_title(db, job_title_id),
        skills=resolve_skills(db, skill_ids),
        learning_skills=resolve_skills(db, learning_skill_ids or []),
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise BadRequestError('Email already registered') from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info('Registered %s %s', role.value, user.id)
    return user, jwt_handler.create_access_token(user)


def authenticate(db: Session, email: str, password: str) -> tuple[User, str]:
    user = find_user_by_email(db, normalize_email(email))
    if user is None or not verify_password(password, user.hashed_password):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    return user, jwt_handler.create_access_token(user)


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def find_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user(db: Session, user_id: int) -> User:
    user = find_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError('User not found')
    return user


def find_users_by_role(db: Session, role: UserRole) -> list[User]:
    return db.query(User).filter(User.role == role).order_by(User.id.asc()).all()
