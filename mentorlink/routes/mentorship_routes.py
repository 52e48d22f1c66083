from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorlink.auth.dependencies import get_current_mentor, get_current_student, get_current_user
from mentorlink.database import get_db
from mentorlink.models.user import User
from mentorlink.routes.common import database_unavailable, ensure_database_ready
from mentorlink.schemas import MentorshipResponse, MessageResponse, UserResponse
from mentorlink.services import mentorships
from mentorlink.services.recommendations import MentorRecommender

router = APIRouter(tags=['mentorships'])


class MentorshipRequestBody(BaseModel):
    mentor_id: int
    duration: str
    message: str | None = None

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > mentorships.MAX_MESSAGE_LENGTH:
            raise ValueError(f'Message must be {mentorships.MAX_MESSAGE_LENGTH} characters or fewer.')

        return normalized


class RespondRequestBody(BaseModel):
    accept: bool


class MentorRecommendationResponse(BaseModel):
    mentor: UserResponse
    match_score: float
    recommendation_reason: str
    matching_skills: list[str]
    additional_skills: list[str]


def get_recommender(request: Request) -> MentorRecommender:
    return request.app.state.recommender


@router.get('/mentors', response_model=list[UserResponse])
def list_mentors(db: Session = Depends(get_db)):
    try:
        return mentorships.list_mentors(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/recommendations', response_model=list[MentorRecommendationResponse])
def get_recommendations(
    current_user: User = Depends(get_current_student),
    db: Session = Depends(get_db),
    recommender: MentorRecommender = Depends(get_recommender),
):
    try:
        recommendations = recommender.recommend(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [
        MentorRecommendationResponse(
            mentor=UserResponse.model_validate(item.mentor),
            match_score=item.match_score,
            recommendation_reason=item.recommendation_reason,
            matching_skills=item.matching_skill_names,
            additional_skills=item.additional_skill_names,
        )
        for item in recommendations
    ]


@router.post('/request', response_model=MentorshipResponse, status_code=status.HTTP_201_CREATED)
def request_mentorship(
    data: MentorshipRequestBody,
    current_user: User = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return mentorships.request_mentorship(
            db,
            student_id=current_user.id,
            mentor_id=data.mentor_id,
            duration=data.duration,
            message=data.message,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{mentorship_id}/respond', response_model=MentorshipResponse | MessageResponse)
def respond_to_request(
    mentorship_id: int,
    data: RespondRequestBody,
    current_user: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        mentorship = mentorships.respond_to_mentorship_request(
            db,
            mentor_id=current_user.id,
            mentorship_id=mentorship_id,
            accept=data.accept,
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if mentorship is None:
        return MessageResponse(message='Mentorship request rejected')
    return MentorshipResponse.model_validate(mentorship)


@router.post('/{mentorship_id}/cancel', response_model=MentorshipResponse)
def cancel_mentorship(
    mentorship_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return mentorships.cancel_mentorship(db, actor_id=current_user.id, mentorship_id=mentorship_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{mentorship_id}/complete', response_model=MentorshipResponse)
def complete_mentorship(
    mentorship_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return mentorships.complete_mentorship(db, actor_id=current_user.id, mentorship_id=mentorship_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/current', response_model=list[MentorshipResponse])
def list_current_mentorships(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return mentorships.get_current_mentorships(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/pending', response_model=list[MentorshipResponse])
def list_pending_requests(
    current_user: User = Depends(get_current_mentor),
    db: Session = Depends(get_db),
):
    try:
        return mentorships.get_pending_requests(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/sent', response_model=list[MentorshipResponse])
def list_sent_requests(
    current_user: User = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    try:
        return mentorships.get_student_pending_requests(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
