from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import require_admin
from salon.auth.passwords import hash_password
from salon.database import get_db
from salon.models.user import User
from salon.record_store import RecordStore
from salon.routes.common import (
    database_unavailable,
    ensure_database_ready,
    storage_conflict,
    to_http_exception,
)
from salon.scheduling.errors import SchedulingError, StorageConflict

router = APIRouter(tags=['admin'])


def _require_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class CreateStaffRequest(BaseModel):
    name: str
    email: str
    password: str = Field(min_length=6)
    phone: str | None = None
    specialty_category: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, 'Name')

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = _require_text(value, 'Email').lower()
        if '@' not in normalized:
            raise ValueError('Email must be a valid address.')
        return normalized

    @field_validator('specialty_category')
    @classmethod
    def validate_specialty(cls, value: str) -> str:
        return _require_text(value, 'Specialty category')


class UpdateStaffRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    specialty_category: str | None = None
    is_active: bool | None = None

    @field_validator('name', 'specialty_category')
    @classmethod
    def validate_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _require_text(value, 'Field')


class StaffResponse(BaseModel):
    id: int
    name: str | None = None
    email: str
    phone: str | None = None
    specialty_category: str | None = None
    is_active: bool

    class Config:
        from_attributes = True


class CustomerStatusRequest(BaseModel):
    is_active: bool


class CustomerResponse(BaseModel):
    id: int
    name: str | None = None
    email: str
    phone: str | None = None
    is_active: bool

    class Config:
        from_attributes = True


@router.get('/staff', response_model=list[StaffResponse])
def list_staff(
    category: str | None = Query(default=None),
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return RecordStore(db).list_staff(category=category)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/staff', response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    data: CreateStaffRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return RecordStore(db).create_staff(
            email=data.email,
            name=data.name,
            hashed_password=hash_password(data.password),
            specialty_category=data.specialty_category,
            phone=data.phone,
        )
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.patch('/staff/{staff_id}', response_model=StaffResponse)
def update_staff(
    staff_id: int,
    data: UpdateStaffRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    # Only phone may be cleared; other explicit nulls are ignored.
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == 'phone'
    }
    try:
        return RecordStore(db).update_staff(staff_id, **changes)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/staff/{staff_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(
    staff_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        RecordStore(db).delete_staff(staff_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/customers', response_model=list[CustomerResponse])
def list_customers(
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return RecordStore(db).list_customers()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/customers/{customer_id}', response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return RecordStore(db).get_customer(customer_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.patch('/customers/{customer_id}', response_model=CustomerResponse)
def set_customer_status(
    customer_id: int,
    data: CustomerStatusRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Ban (``is_active=false``) or reinstate a customer."""
    ensure_database_ready()

    try:
        return RecordStore(db).set_customer_active(customer_id, data.is_active)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
