"""Mentorship model definitions."""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import relationship

from mentorlink.database import Base
from mentorlink.models.user import User, utcnow


class MentorshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MentorshipDuration(str, enum.Enum):
    ONE_MONTH = "one_month"
    TWO_MONTHS = "two_months"
    THREE_MONTHS = "three_months"


OPEN_STATUSES = (MentorshipStatus.PENDING, MentorshipStatus.ACTIVE)


def _enum_values(members):
    return [member.value for member in members]


class Mentorship(Base):
    """A mentor/student relationship and its lifecycle state."""
    __tablename__ = "mentorships"
    __table_args__ = (
        UniqueConstraint("mentor_id", "student_id", name="uq_mentorships_mentor_student"),
        Index(
            "uq_mentorships_active_mentor",
            "mentor_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index(
            "uq_mentorships_active_student",
            "student_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    mentor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(MentorshipStatus, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
        default=MentorshipStatus.PENDING,
    )
    duration = Column(
        Enum(MentorshipDuration, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
    )
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    message = Column(String)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    mentor = relationship(User, foreign_keys=[mentor_id], lazy="joined")
    student = relationship(User, foreign_keys=[student_id], lazy="joined")
