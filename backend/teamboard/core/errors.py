# teamboard/core/errors.py
"""
Error taxonomy shared by the REST routers and services.

Every error is an HTTPException carrying a `{"code", "message"}` detail so
that the application exception handler can render it as
`{"success": false, "error": {...}}`.
"""
from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVER_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": message},
        )


class ValidationError(ApiError):
    """Malformed or missing fields. Carries one message per problem."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"

    def __init__(self, messages: list[str] | str, code: str | None = None):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages), code)
        self.detail["messages"] = self.messages


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"


class AuthorizationError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
