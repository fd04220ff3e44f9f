from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import require_admin
from salon.database import get_db
from salon.models.user import User
from salon.record_store import RecordStore
from salon.routes.common import database_unavailable, storage_conflict, to_http_exception
from salon.scheduling.errors import SchedulingError, StorageConflict

router = APIRouter(tags=['catalog'])


def _require_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class CategoryRequest(BaseModel):
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, 'Category name')


class CategoryResponse(BaseModel):
    name: str

    class Config:
        from_attributes = True


class ServiceRequest(BaseModel):
    name: str
    description: str | None = None
    duration: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    category: str
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, 'Service name')

    @field_validator('category')
    @classmethod
    def validate_category(cls, value: str) -> str:
        return _require_text(value, 'Category')


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    duration: int
    price: Decimal
    category: str
    is_active: bool

    class Config:
        from_attributes = True


@router.get('/categories', response_model=list[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    try:
        return RecordStore(db).list_categories()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/categories', response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return RecordStore(db).create_category(data.name)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/categories/{name}', response_model=CategoryResponse)
def rename_category(
    name: str,
    data: CategoryRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return RecordStore(db).rename_category(name, data.name)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/categories/{name}', status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    name: str,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        RecordStore(db).delete_category(name)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/services', response_model=list[ServiceResponse])
def list_services(
    category: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    try:
        return RecordStore(db).list_services(category=category, include_inactive=include_inactive)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return RecordStore(db).create_service(**data.model_dump())
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/services/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceRequest,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return RecordStore(db).update_service(service_id, **data.model_dump())
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/services/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        RecordStore(db).delete_service(service_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except StorageConflict as exc:
        raise storage_conflict() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
