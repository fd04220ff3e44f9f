from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from salon.database import ensure_appointment_schema, ensure_user_schema
from salon.scheduling.errors import (
    BookingError,
    DuplicateName,
    Forbidden,
    InvalidFormat,
    InvalidTransition,
    NotFound,
    ReferenceInUse,
    SchedulingError,
    ServiceInactive,
    StorageConflict,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

# Checked in order; the first matching class wins.
ERROR_STATUS_CODES = (
    (InvalidFormat, status.HTTP_400_BAD_REQUEST),
    (ServiceInactive, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (BookingError, status.HTTP_409_CONFLICT),
    (ReferenceInUse, status.HTTP_409_CONFLICT),
    (DuplicateName, status.HTTP_409_CONFLICT),
)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, mapped_status in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            status_code = mapped_status
            break
    return HTTPException(status_code=status_code, detail={'error': exc.kind, 'message': exc.message})


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_user_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def storage_conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={'error': 'StorageConflict', 'message': 'The record changed concurrently. Please retry.'},
    )
