from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorlink.database import get_db
from mentorlink.routes.common import database_unavailable
from mentorlink.schemas import JobTitleResponse, SkillResponse
from mentorlink.services import catalog

router = APIRouter(tags=['catalog'])


@router.get('/job-titles', response_model=list[JobTitleResponse])
def list_job_titles(db: Session = Depends(get_db)):
    try:
        return catalog.list_job_titles(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/tech-skills', response_model=list[SkillResponse])
def list_tech_skills(db: Session = Depends(get_db)):
    try:
        return catalog.list_skills(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
