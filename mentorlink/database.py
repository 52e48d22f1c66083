from contextlib import contextmanager
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from mentorlink.core import config
from mentorlink.core.errors import BadRequestError


def _connect_args(database_url: str) -> dict:
    # FastAPI runs sync endpoints in a threadpool.
    if database_url.startswith('sqlite'):
        return {'check_same_thread': False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_mentorship_schema_checked = False

ACTIVE_MENTORSHIP_INDEXES = [
    (
        'uq_mentorships_active_mentor',
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_mentorships_active_mentor "
        "ON mentorships(mentor_id) WHERE status = 'active'",
    ),
    (
        'uq_mentorships_active_student',
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_mentorships_active_student "
        "ON mentorships(student_id) WHERE status = 'active'",
    ),
]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, conflict_message: str | None = None):
    """Commit everything done in the block as one transaction, or roll it all back."""
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict_message is None:
            raise
        raise BadRequestError(conflict_message) from exc
    except Exception:
        db.rollback()
        raise


def ensure_mentorship_schema(bind=None) -> None:
    """Make sure a pre-existing mentorships table carries the active-exclusivity indexes."""
    global _mentorship_schema_checked

    if _mentorship_schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _mentorship_schema_checked:
            return

        inspector = inspect(bind)

        if 'mentorships' not in inspector.get_table_names():
            _mentorship_schema_checked = True
            return

        existing_indexes = {index['name'] for index in inspector.get_indexes('mentorships')}

        with bind.begin() as connection:
            for index_name, statement in ACTIVE_MENTORSHIP_INDEXES:
                if index_name not in existing_indexes:
                    connection.execute(text(statement))

        _mentorship_schema_checked = True
