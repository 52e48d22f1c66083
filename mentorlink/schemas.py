"""Response models shared by several routers."""

from datetime import datetime

from pydantic import BaseModel

from mentorlink.models.group import MembershipStatus
from mentorlink.models.mentorship import MentorshipDuration, MentorshipStatus
from mentorlink.models.user import UserRole


class SkillResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class JobTitleResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserSummaryResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    bio: str | None = None
    profile_image_url: str | None = None

    class Config:
        from_attributes = True


class UserResponse(UserSummaryResponse):
    skills: list[SkillResponse] = []
    learning_skills: list[SkillResponse] = []
    job_title: JobTitleResponse | None = None


class MentorshipResponse(BaseModel):
    id: int
    mentor: UserSummaryResponse
    student: UserSummaryResponse
    status: MentorshipStatus
    duration: MentorshipDuration
    start_date: datetime
    end_date: datetime
    message: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class GroupMemberResponse(BaseModel):
    user_id: int
    user: UserSummaryResponse
    status: MembershipStatus

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: int
    name: str
    description: str
    creator_id: int
    creator: UserSummaryResponse
    members: list[GroupMemberResponse]
    created_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
