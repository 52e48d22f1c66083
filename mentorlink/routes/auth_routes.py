from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mentorlink.auth.dependencies import get_current_user
from mentorlink.database import get_db
from mentorlink.models.user import User, UserRole
from mentorlink.routes.common import database_unavailable
from mentorlink.schemas import UserResponse
from mentorlink.services import identity

router = APIRouter(tags=['auth'])

MIN_PASSWORD_LENGTH = 8


class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole
    bio: str | None = None
    profile_image_url: str | None = None
    skill_ids: list[int] = []
    willing_to_learn_skill_ids: list[int] | None = None
    job_title_id: int | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    token: str
    token_type: str = 'bearer'
    user: UserResponse


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user, token = identity.register_user(
            db,
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            skill_ids=data.skill_ids,
            learning_skill_ids=data.willing_to_learn_skill_ids,
            job_title_id=data.job_title_id,
            bio=data.bio,
            profile_image_url=data.profile_image_url,
        )
        return AuthResponse(token=token, user=UserResponse.model_validate(user))
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user, token = identity.authenticate(db, data.email, data.password)
        return AuthResponse(token=token, user=UserResponse.model_validate(user))
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
