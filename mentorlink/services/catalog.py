"""Skill and job-title catalog: seeding and lookups."""

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from mentorlink.core.errors import BadRequestError
from mentorlink.models.catalog import JobTitle, Skill

logger = logging.getLogger(__name__)

DEFAULT_JOB_TITLES = [
    'Software Engineer',
    'Frontend Developer',
    'Backend Developer',
    'Mobile Developer',
    'Full Stack Developer',
    'DevOps Engineer',
    'Database Administrator',
    'Security Analyst',
    'Data Engineer',
    'Cloud Engineer',
    'IT Support',
    'Business Analyst',
    'UX Designer',
    'Machine Learning Engineer',
    'Cybersecurity Specialist',
    'AI Engineer',
    'Data Analyst',
    'Software Tester',
]

DEFAULT_SKILLS = [
    'Java', 'Python', 'C#', 'JavaScript', 'TypeScript', 'SQL', 'Go', 'R', 'Rust', 'Kotlin',
    'Swift', 'HTML', 'CSS', 'React', 'Angular', 'Vue', 'Next.js', 'Tailwind CSS', 'Bootstrap',
    'Node.js', '.NET', 'Spring Boot', 'Django', 'Flask', 'Laravel', 'GraphQL', 'RESTful API',
    'PostgreSQL', 'MySQL', 'MongoDB', 'SQL Server', 'Oracle', 'Firebase', 'Cosmos DB', 'AWS',
    'Azure', 'Google Cloud', 'Docker', 'Kubernetes', 'Terraform', 'CI/CD', 'Jenkins',
    'GitHub Actions', 'Machine Learning', 'TensorFlow', 'PyTorch', 'Pandas', 'NumPy', 'Tableau',
    'Power BI', 'Selenium', 'Cypress', 'JUnit', 'NUnit', 'Postman', 'JMeter', 'Agile', 'Scrum',
    'Kanban', 'Jira',
]


def seed_catalog(db: Session) -> None:
    """Insert the default job titles and skills into empty catalog tables."""
    try:
        if db.query(JobTitle.id).first() is None:
            db.add_all(JobTitle(name=name) for name in DEFAULT_JOB_TITLES)
            logger.info('Seeded %d job titles', len(DEFAULT_JOB_TITLES))

        if db.query(Skill.id).first() is None:
            db.add_all(Skill(name=name) for name in DEFAULT_SKILLS)
            logger.info('Seeded %d skills', len(DEFAULT_SKILLS))

        db.commit()
    except Exception:
        db.rollback()
        raise


def list_job_titles(db: Session) -> list[JobTitle]:
    return db.query(JobTitle).order_by(JobTitle.name.asc()).all()


def list_skills(db: Session) -> list[Skill]:
    return db.query(Skill).order_by(Skill.name.asc()).all()


def resolve_skills(db: Session, skill_ids: Iterable[int]) -> list[Skill]:
    wanted = set(skill_ids)
    if not wanted:
        return []

    skills = db.query(Skill).filter(Skill.id.in_(wanted)).order_by(Skill.id.asc()).all()
    missing = wanted - {skill.id for skill in skills}
    if missing:
        raise BadRequestError(f'Unknown skill ids: {sorted(missing)}')
    return skills


def resolve_job_title(db: Session, job_title_id: int | None) -> JobTitle:
    if job_title_id is None:
        raise BadRequestError('A job title is required.')

    job_title = db.get(JobTitle, job_title_id)
    if job_title is None:
        raise BadRequestError(f'Unknown job title id: {job_title_id}')
    return job_title
