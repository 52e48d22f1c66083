"""User model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from mentorlink.database import Base
from mentorlink.models.catalog import JobTitle, Skill, user_learning_skills, user_skills


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    STUDENT = "student"
    MENTOR = "mentor"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(
        Enum(UserRole, native_enum=False, values_callable=lambda roles: [role.value for role in roles], length=16),
        nullable=False,
    )
    bio = Column(String)
    profile_image_url = Column(String)
    job_title_id = Column(Integer, ForeignKey("job_titles.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    job_title = relationship(JobTitle, lazy="joined")
    skills = relationship(Skill, secondary=user_skills, order_by=Skill.id)
    learning_skills = relationship(Skill, secondary=user_learning_skills, order_by=Skill.id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
