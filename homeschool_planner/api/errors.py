"""
Translate domain errors into HTTP responses.
"""

from fastapi import HTTPException, status

from homeschool_planner.core.exceptions import (
    CapacityExceededError,
    ConcurrencyConflictError,
    ConflictError,
    NotFoundError,
    PlannerError,
    ValidationError,
)

_STATUS_BY_ERROR: list[tuple[type[PlannerError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (CapacityExceededError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
]


def to_http_exception(exc: PlannerError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: dict = {"message": exc.message, "error": type(exc).__name__}
    if exc.details is not None:
        detail["details"] = exc.details
    return HTTPException(status_code=status_code, detail=detail)
