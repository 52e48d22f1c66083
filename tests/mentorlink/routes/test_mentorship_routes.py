import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from mentorlink.core.errors import BadRequestError
from mentorlink.models.mentorship import Mentorship, MentorshipStatus
from mentorlink.routes import mentorship_routes
from mentorlink.routes.mentorship_routes import (
    MentorshipRequestBody,
    RespondRequestBody,
    get_recommendations,
    list_current_mentorships,
    list_mentors,
    list_pending_requests,
    list_sent_requests,
    request_mentorship,
    respond_to_request,
)
from mentorlink.schemas import MentorshipResponse, MessageResponse
from mentorlink.services.recommendations import MentorRecommendation


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch):
    monkeypatch.setattr(mentorship_routes, 'ensure_database_ready', lambda: None)


class StubRecommender:
    def __init__(self, recommendations):
        self.recommendations = recommendations
        self.calls = []

    def recommend(self, db, student_id):
        self.calls.append(student_id)
        return self.recommendations


def test_request_body_keeps_duration_and_trims_message() -> None:
    body = MentorshipRequestBody(mentor_id=1, duration='two_months', message='  hello  ')

    assert body.duration == 'two_months'
    assert body.message == 'hello'
    assert MentorshipRequestBody(mentor_id=1, duration='one_month', message='   ').message is None


def test_request_body_rejects_long_message() -> None:
    with pytest.raises(ValidationError):
        MentorshipRequestBody(mentor_id=1, duration='one_month', message='x' * 501)


def test_request_rejects_unknown_duration_as_bad_request(db, make_student, make_mentor) -> None:
    student = make_student()
    mentor = make_mentor()

    with pytest.raises(BadRequestError) as exception_info:
        request_mentorship(
            MentorshipRequestBody(mentor_id=mentor.id, duration='six_months'),
            current_user=student,
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Invalid duration'
    assert db.query(Mentorship).count() == 0


def test_request_then_accept_through_routes(db, make_student, make_mentor) -> None:
    student = make_student()
    mentor = make_mentor()

    created = request_mentorship(
        MentorshipRequestBody(mentor_id=mentor.id, duration='one_month', message='Hi'),
        current_user=student,
        db=db,
    )

    assert [item.id for item in list_sent_requests(current_user=student, db=db)] == [created.id]
    assert [item.id for item in list_pending_requests(current_user=mentor, db=db)] == [created.id]

    response = respond_to_request(created.id, RespondRequestBody(accept=True), current_user=mentor, db=db)

    assert isinstance(response, MentorshipResponse)
    assert response.status == MentorshipStatus.ACTIVE
    assert [item.id for item in list_current_mentorships(current_user=student, db=db)] == [created.id]


def test_reject_returns_message(db, make_student, make_mentor) -> None:
    student = make_student()
    mentor = make_mentor()
    created = request_mentorship(
        MentorshipRequestBody(mentor_id=mentor.id, duration='one_month'),
        current_user=student,
        db=db,
    )
    mentorship_id = created.id

    response = respond_to_request(mentorship_id, RespondRequestBody(accept=False), current_user=mentor, db=db)

    assert response == MessageResponse(message='Mentorship request rejected')
    assert db.get(Mentorship, mentorship_id) is None


def test_request_surfaces_domain_errors(db, make_student, make_mentor) -> None:
    student = make_student()
    mentor = make_mentor()
    body = MentorshipRequestBody(mentor_id=mentor.id, duration='one_month')
    request_mentorship(body, current_user=student, db=db)

    with pytest.raises(BadRequestError) as exception_info:
        request_mentorship(body, current_user=student, db=db)

    assert exception_info.value.status_code == 400


def test_database_errors_map_to_service_unavailable(monkeypatch, db, make_student) -> None:
    def broken(_db):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    monkeypatch.setattr(mentorship_routes.mentorships, 'list_mentors', broken)

    with pytest.raises(HTTPException) as exception_info:
        list_mentors(db=db)

    assert exception_info.value.status_code == 503


def test_recommendations_serialize_skill_names(db, make_student, make_mentor) -> None:
    student = make_student(learning=('Python', 'Docker'))
    mentor = make_mentor(skills=('Python', 'Go'))
    python, go = mentor.skills
    recommender = StubRecommender(
        [
            MentorRecommendation(
                mentor=mentor,
                match_score=0.1,
                matching_skills=[python],
                additional_skills=[go],
                recommendation_reason='Strong Python background.',
            )
        ]
    )

    response = get_recommendations(current_user=student, db=db, recommender=recommender)

    assert recommender.calls == [student.id]
    assert len(response) == 1
    assert response[0].mentor.id == mentor.id
    assert response[0].matching_skills == ['Python']
    assert response[0].additional_skills == ['Go']
    assert response[0].recommendation_reason == 'Strong Python background.'
