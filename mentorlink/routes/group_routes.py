from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorlink.auth.dependencies import get_current_user
from mentorlink.database import get_db
from mentorlink.models.user import User
from mentorlink.routes.common import database_unavailable
from mentorlink.schemas import GroupMemberResponse, GroupResponse
from mentorlink.services import groups

router = APIRouter(tags=['groups'])

MAX_GROUP_NAME_LENGTH = 100
MAX_GROUP_DESCRIPTION_LENGTH = 1000


class CreateGroupRequest(BaseModel):
    name: str
    description: str = ''

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Group name is required.')
        if len(normalized) > MAX_GROUP_NAME_LENGTH:
            raise ValueError(f'Group name must be {MAX_GROUP_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) > MAX_GROUP_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_GROUP_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized


@router.post('', response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    data: CreateGroupRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return groups.create_group(db, current_user.id, data.name, data.description)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('', response_model=list[GroupResponse])
def list_groups(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    try:
        return groups.list_groups(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/my', response_model=list[GroupResponse])
def list_my_groups(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return groups.get_user_groups(db, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{group_id}', response_model=GroupResponse)
def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    try:
        return groups.get_group(db, group_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{group_id}/join', response_model=GroupMemberResponse, status_code=status.HTTP_201_CREATED)
def join_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return groups.join_group(db, current_user.id, group_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{group_id}/members/{user_id}', response_model=GroupMemberResponse)
def respond_to_join_request(
    group_id: int,
    user_id: int,
    accept: bool = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        groups.ensure_group_creator(
            db,
            group_id,
            current_user.id,
            'Only the group creator can respond to join requests',
        )
        return groups.respond_to_join_request(db, group_id, user_id, accept)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/{group_id}/leave', status_code=status.HTTP_204_NO_CONTENT)
def leave_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        groups.leave_group(db, current_user.id, group_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete('/{group_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        groups.delete_group(db, current_user.id, group_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
