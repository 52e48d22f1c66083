from datetime import timedelta

import pytest

from mentorlink.auth import jwt_handler
from mentorlink.core.errors import BadRequestError, UnauthorizedError
from mentorlink.models.catalog import JobTitle, Skill
from mentorlink.models.user import UserRole
from mentorlink.services.identity import authenticate, find_users_by_role, register_user


def _ids(db, model, *names):
    return [db.query(model).filter(model.name == name).one().id for name in names]


def _register(db, **overrides):
    payload = {
        'email': 'Student@Example.edu',
        'password': 'correct horse battery',
        'first_name': 'Ada',
        'last_name': 'Lovelace',
        'role': UserRole.STUDENT,
        'skill_ids': [],
        'learning_skill_ids': _ids(db, Skill, 'Python'),
        'job_title_id': _ids(db, JobTitle, 'Data Analyst')[0],
    }
    payload.update(overrides)
    return register_user(db, **payload)


def test_register_student_stores_normalized_email_and_skills(db) -> None:
    user, token = _register(db)

    assert user.email == 'student@example.edu'
    assert user.hashed_password != 'correct horse battery'
    assert [skill.name for skill in user.learning_skills] == ['Python']
    assert user.job_title.name == 'Data Analyst'
    assert token


def test_register_student_requires_learning_skills(db) -> None:
    with pytest.raises(BadRequestError) as exception_info:
        _register(db, learning_skill_ids=[])

    assert exception_info.value.detail == 'Students must specify skills they want to learn'


def test_register_mentor_rejects_learning_skills(db) -> None:
    with pytest.raises(BadRequestError) as exception_info:
        _register(
            db,
            role=UserRole.MENTOR,
            email='mentor@example.edu',
            skill_ids=_ids(db, Skill, 'Go'),
            learning_skill_ids=_ids(db, Skill, 'Rust'),
        )

    assert exception_info.value.detail == 'Mentors should not specify skills to learn'


def test_register_mentor_requires_skills(db) -> None:
    with pytest.raises(BadRequestError) as exception_info:
        _register(db, role=UserRole.MENTOR, email='mentor@example.edu', skill_ids=[], learning_skill_ids=None)

    assert exception_info.value.detail == 'Mentors must specify the skills they have'


def test_register_mentor_has_empty_learning_set(db) -> None:
    mentor, _ = _register(
        db,
        role=UserRole.MENTOR,
        email='mentor@example.edu',
        skill_ids=_ids(db, Skill, 'Go', 'Docker'),
        learning_skill_ids=None,
    )

    assert mentor.learning_skills == []
    assert [user.id for user in find_users_by_role(db, UserRole.MENTOR)] == [mentor.id]


def test_register_requires_job_title(db) -> None:
    with pytest.raises(BadRequestError):
        _register(db, job_title_id=None)


def test_register_rejects_unknown_catalog_ids(db) -> None:
    with pytest.raises(BadRequestError):
        _register(db, learning_skill_ids=[99999])

    with pytest.raises(BadRequestError):
        _register(db, job_title_id=99999)


def test_register_rejects_duplicate_email_case_insensitively(db) -> None:
    _register(db)

    with pytest.raises(BadRequestError) as exception_info:
        _register(db, email='STUDENT@example.edu')

    assert exception_info.value.detail == 'Email already registered'


def test_authenticate_returns_token_with_identity_claims(db) -> None:
    user, _ = _register(db)

    authenticated, token = authenticate(db, ' student@EXAMPLE.edu ', 'correct horse battery')
    claims = jwt_handler.decode_access_token(token)

    assert authenticated.id == user.id
    assert claims['sub'] == str(user.id)
    assert claims['email'] == 'student@example.edu'
    assert claims['role'] == 'student'
    assert claims['exp'] - claims['iat'] == int(timedelta(hours=24).total_seconds())


@pytest.mark.parametrize(
    ('email', 'password'),
    [('student@example.edu', 'wrong password'), ('nobody@example.edu', 'correct horse battery')],
)
def test_authenticate_rejects_bad_credentials(db, email, password) -> None:
    _register(db)

    with pytest.raises(UnauthorizedError) as exception_info:
        authenticate(db, email, password)

    assert exception_info.value.detail == 'The email or password you entered is incorrect'
