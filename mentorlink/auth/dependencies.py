from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mentorlink.auth import jwt_handler
from mentorlink.core.errors import ForbiddenError, UnauthorizedError
from mentorlink.database import get_db
from mentorlink.models.user import User, UserRole

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise UnauthorizedError("Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise UnauthorizedError("Invalid token subject")

    user = db.get(User, int(subject))
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def require_role(role: UserRole):
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise ForbiddenError(f"Only {role.value}s can perform this action.")
        return current_user

    return role_checker


get_current_student = require_role(UserRole.STUDENT)
get_current_mentor = require_role(UserRole.MENTOR)
