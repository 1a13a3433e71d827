"""Error types raised by the student handlers and their HTTP translation."""
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class StudentError(Exception):
    """Base class for errors translated into a JSON `{message[, error]}` body."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationError(StudentError):
    """400: a required field is missing or empty."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "student_code and full_name are required"


class NotFound(StudentError):
    """404: no row matches the id."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(StudentError):
    """409: student_code already used by another row."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "student_code already exists"


class ServerError(StudentError):
    """500: any other persistence failure."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServerError":
        return cls(error=str(exc))


async def student_error_handler(request: Request, exc: StudentError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed JSON or wrong field types are client errors like missing fields
    details = "; ".join(
        ".".join(str(x) for x in err["loc"] if x != "body") + ": " + err["msg"]
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "error": details},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StudentError, student_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
