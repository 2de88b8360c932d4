from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int
    errors: dict[str, list[str]] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed command input. ``errors`` maps each field to its problems."""

    def __init__(self, errors: dict[str, list[str]], message: str = "Leave request validation failed") -> None:
        self.errors = errors
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class InvalidTransition(AppError):
    """The command is not legal for the request's current status."""

    def __init__(self, command: str, current_status: str) -> None:
        self.command = command
        self.current_status = current_status
        super().__init__(
            f"Command '{command}' is not allowed while the request is '{current_status}'",
            status_code=status.HTTP_409_CONFLICT,
        )


class NotAuthorized(AppError):
    """The actor is not the CSP responsible for the request."""

    def __init__(self, message: str = "Not authorized to act on this leave request") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class MissingJustification(AppError):
    """A rejection or denial was issued without a note."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(
            f"A note is required to {command.replace('-', ' ')}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class ConcurrentModification(AppError):
    """The caller observed a version that is no longer current."""

    def __init__(self, expected_version: int, current_version: int) -> None:
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Leave request was modified concurrently (expected version {expected_version}, "
            f"current version {current_version}); refetch and retry",
            status_code=status.HTTP_409_CONFLICT,
        )


class RequestNotFound(AppError):
    """No leave request exists with the given id."""

    def __init__(self) -> None:
        super().__init__("Leave request not found", status_code=status.HTTP_404_NOT_FOUND)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
            errors=getattr(exc, "errors", None),
        ).model_dump(),
    )


def field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Group FastAPI validation problems by the field they concern."""
    errors: dict[str, list[str]] = {}
    for problem in exc.errors():
        loc = problem.get("loc") or ("body",)
        errors.setdefault(str(loc[-1]), []).append(problem.get("msg", "Invalid value"))
    return errors


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail="Request validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            errors=field_errors(exc),
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
