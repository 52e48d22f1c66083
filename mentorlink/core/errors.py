"""Service-level failures raised by the mentorship, group and identity engines."""

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    """A structured failure carrying a kind and a human-readable message."""

    kind = 'error'
    status_code_for_kind = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code_for_kind, detail=detail)


class NotFoundError(ServiceError):
    kind = 'not_found'
    status_code_for_kind = status.HTTP_404_NOT_FOUND


class BadRequestError(ServiceError):
    kind = 'bad_request'
    status_code_for_kind = status.HTTP_400_BAD_REQUEST


class ForbiddenError(ServiceError):
    kind = 'forbidden'
    status_code_for_kind = status.HTTP_403_FORBIDDEN


class UnauthorizedError(ServiceError):
    kind = 'unauthorized'
    status_code_for_kind = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.headers = {'WWW-Authenticate': 'Bearer'}
