"""Study group model definitions."""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from mentorlink.database import Base
from mentorlink.models.user import User, utcnow


class MembershipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Group(Base):
    """A community created by a student."""
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    creator = relationship(User, lazy="joined")
    members = relationship("GroupMember", back_populates="group", order_by="GroupMember.user_id")


class GroupMember(Base):
    """A user's join request or membership in a group."""
    __tablename__ = "group_members"

    group_id = Column(Integer, ForeignKey("groups.id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    status = Column(
        Enum(
            MembershipStatus,
            native_enum=False,
            values_callable=lambda statuses: [item.value for item in statuses],
            length=16,
        ),
        nullable=False,
        default=MembershipStatus.PENDING,
    )

    group = relationship(Group, back_populates="members")
    user = relationship(User, lazy="joined")
