import itertools
import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('MENTORSHIP_SWEEP_ENABLED', 'false')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from mentorlink.database import Base  # noqa: E402
from mentorlink.models import group, mentorship  # noqa: E402,F401
from mentorlink.models.catalog import JobTitle, Skill  # noqa: E402
from mentorlink.models.user import User, UserRole  # noqa: E402
from mentorlink.services.catalog import seed_catalog  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_catalog(session)
    try:
        yield session
    finally:
        session.close()


def skill_named(db, name: str) -> Skill:
    return db.query(Skill).filter(Skill.name == name).one()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make_user(
        role: UserRole,
        *,
        skills=(),
        learning=(),
        first_name: str | None = None,
        last_name: str | None = None,
        job_title: str = 'Software Engineer',
    ) -> User:
        number = next(counter)
        user = User(
            email=f'{role.value}{number}@example.edu',
            hashed_password='not-a-real-hash',
            first_name=first_name or role.value.title(),
            last_name=last_name or str(number),
            role=role,
            job_title=db.query(JobTitle).filter(JobTitle.name == job_title).one(),
            skills=[skill_named(db, name) for name in skills],
            learning_skills=[skill_named(db, name) for name in learning],
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_student(make_user):
    def _make_student(learning=('Python',), **kwargs) -> User:
        return make_user(UserRole.STUDENT, learning=learning, **kwargs)

    return _make_student


@pytest.fixture
def make_mentor(make_user):
    def _make_mentor(skills=('Python',), **kwargs) -> User:
        return make_user(UserRole.MENTOR, skills=skills, **kwargs)

    return _make_mentor
