"""Skill-overlap mentor recommendations with generated explanations."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.orm import Session

from mentorlink.core.errors import NotFoundError
from mentorlink.models.catalog import Skill
from mentorlink.models.user import User, UserRole
from mentorlink.services.identity import find_users_by_role

logger = logging.getLogger(__name__)

MATCHING_SKILL_WEIGHT = 0.7
ADDITIONAL_SKILL_WEIGHT = 0.3
SCORE_NORMALIZER = 10
FALLBACK_EXPLANATION = 'Unable to generate recommendation at this time.'

EXPLANATION_PROMPT = (
    'Act as a mentorship matching expert. Generate a personalized recommendation '
    'explaining why {mentor_name} would be a good mentor for {student_name}.\n'
    'Consider these matching skills: {matching_skills}\n'
    'Additional skills they could learn: {additional_skills}\n'
    "Mentor's current job: {mentor_job_title}\n"
    'Keep the response concise but persuasive, focusing on the value of this potential mentorship.'
)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


@dataclass
class MentorRecommendation:
    mentor: User
    match_score: float
    matching_skills: list[Skill]
    additional_skills: list[Skill]
    recommendation_reason: str = FALLBACK_EXPLANATION
    matching_skill_names: list[str] = field(init=False)
    additional_skill_names: list[str] = field(init=False)

    def __post_init__(self) -> None:
        self.matching_skill_names = [skill.name for skill in self.matching_skills]
        self.additional_skill_names = [skill.name for skill in self.additional_skills]


def calculate_match_score(matching_count: int, additional_count: int) -> float:
    raw_score = matching_count * MATCHING_SKILL_WEIGHT + additional_count * ADDITIONAL_SKILL_WEIGHT
    return min(raw_score / SCORE_NORMALIZER, 1.0)


def split_skills(mentor: User, student: User) -> tuple[list[Skill], list[Skill]]:
    """Split a mentor's skills into those the student wants to learn and the rest, by skill id."""
    wanted_ids = {skill.id for skill in student.learning_skills}
    matching = [skill for skill in mentor.skills if skill.id in wanted_ids]
    additional = [skill for skill in mentor.skills if skill.id not in wanted_ids]
    return matching, additional


def build_explanation_prompt(student: User, mentor: User, matching: list[Skill], additional: list[Skill]) -> str:
    return EXPLANATION_PROMPT.format(
        mentor_name=mentor.full_name,
        student_name=student.full_name,
        matching_skills=', '.join(skill.name for skill in matching),
        additional_skills=', '.join(skill.name for skill in additional),
        mentor_job_title=mentor.job_title.name if mentor.job_title else 'Not specified',
    )


class MentorRecommender:
    """Ranks mentors for a student and asks ``text_generator`` to explain each match."""

    def __init__(self, text_generator: TextGenerator, max_workers: int = 4):
        self.text_generator = text_generator
        self.max_workers = max(1, max_workers)

    def recommend(self, db: Session, student_id: int) -> list[MentorRecommendation]:
        student = db.query(User).filter(User.id == student_id, User.role == UserRole.STUDENT).first()
        if student is None:
            raise NotFoundError('Student not found')

        recommendations = []
        for mentor in find_users_by_role(db, UserRole.MENTOR):
            matching, additional = split_skills(mentor, student)
            if not matching:
                continue
            recommendations.append(
                MentorRecommendation(
                    mentor=mentor,
                    match_score=calculate_match_score(len(matching), len(additional)),
                    matching_skills=matching,
                    additional_skills=additional,
                )
            )

        # sorted() is stable: equal scores keep mentor order
        recommendations = sorted(recommendations, key=lambda item: item.match_score, reverse=True)

        prompts = [
            build_explanation_prompt(student, item.mentor, item.matching_skills, item.additional_skills)
            for item in recommendations
        ]
        if prompts:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(prompts))) as executor:
                reasons = list(executor.map(self.explain, prompts))
            for item, reason in zip(recommendations, reasons):
                item.recommendation_reason = reason

        return recommendations

    def explain(self, prompt: str) -> str:
        try:
            text = self.text_generator.generate(prompt)
        except Exception as exc:
            logger.warning('Falling back to default recommendation text: %s', exc)
            return FALLBACK_EXPLANATION

        if not isinstance(text, str) or not text.strip():
            logger.warning('Text generation returned no usable text; using fallback')
            return FALLBACK_EXPLANATION
        return text.strip()
