"""
Error taxonomy shared by services and routes.

Services raise these; todo_app/main.py turns them into `{"error": "..."}` responses.
"""
from fastapi import status


class TodoAppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(TodoAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(TodoAppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(TodoAppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class QuotaExceeded(TodoAppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Free users can only create up to 3 todos. Please subscribe for more."


class ValidationError(TodoAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class PersistenceError(TodoAppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"


class IdentityProviderUnavailable(TodoAppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Authentication service temporarily unavailable. Please try again in a moment."
