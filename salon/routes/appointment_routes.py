from datetime import date as Date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_active_user, require_role
from salon.core import config
from salon.database import get_db
from salon.models.appointment import AppointmentStatus
from salon.models.user import User, UserRole
from salon.record_store import RecordStore
from salon.routes.common import database_unavailable, ensure_database_ready, storage_conflict, to_http_exception
from salon.scheduling.booking import book_appointment
from salon.scheduling.errors import InvalidFormat, SchedulingError, StorageConflict
from salon.scheduling.lifecycle import assign_staff, transition_appointment, update_appointment_details
from salon.scheduling.time_window import normalize_clock

router = APIRouter(tags=['appointments'])


def _validate_clock(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return normalize_clock(value)
    except InvalidFormat as exc:
        raise ValueError(exc.message) from exc


def _validate_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    service_id: int
    staff_id: int | None = None
    date: Date
    start_time: str
    notes: str | None = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        return _validate_clock(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)


class UpdateAppointmentRequest(BaseModel):
    date: Date | None = None
    start_time: str | None = None
    notes: str | None = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str | None) -> str | None:
        return _validate_clock(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _validate_notes(value)


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus


class AssignStaffRequest(BaseModel):
    staff_id: int | None = None


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    staff_id: int | None = None
    service_id: int
    date: Date
    start_time: str
    end_time: str
    status: AppointmentStatus
    notes: str | None = None

    class Config:
        from_attributes = True


def _can_view(user: User, appointment) -> bool:
    if user.role == UserRole.ADMIN.value:
        return True
    if user.role == UserRole.STAFF.value:
        return appointment.staff_id == user.id
    return appointment.user_id == user.id


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    require_role(current_user, UserRole.CUSTOMER)
    ensure_database_ready()

    try:
        return book_appointment(
            RecordStore(db),
            customer_id=current_user.id,
            service_id=data.service_id,
            on_date=data.date,
            start_time=data.start_time,
            staff_id=data.staff_id,
            notes=data.notes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    user_id: int | None = Query(default=None),
    on_date: Date | None = Query(default=None, alias='date'),
    appointment_status: AppointmentStatus | None = Query(default=None, alias='status'),
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    filters = {'on_date': on_date, 'status': appointment_status}
    if current_user.role == UserRole.ADMIN.value:
        filters['user_id'] = user_id
    elif current_user.role == UserRole.STAFF.value:
        filters['staff_id'] = current_user.id
    else:
        if user_id is not None and user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Customers can only view their own appointments.',
            )
        filters['user_id'] = current_user.id

    try:
        return RecordStore(db).list_appointments(**filters)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = RecordStore(db).get_appointment(appointment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if not _can_view(current_user, appointment):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Forbidden')
    return appointment


@router.patch('/{appointment_id}', response_model=AppointmentResponse)
def edit_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    changes = {}
    if 'notes' in data.model_fields_set:
        changes['notes'] = data.notes

    try:
        return update_appointment_details(
            RecordStore(db),
            appointment_id,
            current_user.id,
            current_user.role,
            on_date=data.date,
            start_time=data.start_time,
            **changes,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.post('/{appointment_id}/status', response_model=AppointmentResponse)
def change_appointment_status(
    appointment_id: int,
    data: StatusChangeRequest,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return transition_appointment(
            RecordStore(db),
            appointment_id,
            current_user.id,
            current_user.role,
            data.status,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{appointment_id}/staff', response_model=AppointmentResponse)
def set_appointment_staff(
    appointment_id: int,
    data: AssignStaffRequest,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return assign_staff(
            RecordStore(db),
            appointment_id,
            current_user.id,
            current_user.role,
            data.staff_id,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    store = RecordStore(db)
    try:
        appointment = store.get_appointment(appointment_id)
        if current_user.role != UserRole.ADMIN.value and appointment.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Only the customer who booked this appointment or an admin can delete it.',
            )
        store.delete_appointment(appointment)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
