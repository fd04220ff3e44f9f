from datetime import date as Date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.database import get_db
from salon.record_store import RecordStore
from salon.routes.common import database_unavailable, ensure_database_ready, to_http_exception
from salon.scheduling.availability import list_available_staff
from salon.scheduling.errors import SchedulingError

router = APIRouter(tags=['staff'])


class StaffSummaryResponse(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


@router.get('/available', response_model=list[StaffSummaryResponse])
def available_staff(
    category: str = Query(..., min_length=1),
    on_date: Date = Query(..., alias='date'),
    start_time: str = Query(...),
    end_time: str = Query(...),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return list_available_staff(RecordStore(db), category.strip(), on_date, start_time, end_time)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
