"""Find staff who are qualified for a category and free in a window."""

import logging
from dataclasses import dataclass
from datetime import date

from salon.record_store import RecordStore
from salon.scheduling.conflicts import find_conflicts
from salon.scheduling.time_window import validate_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class StaffSummary:
    """Public view of a staff member offered for booking."""

    name: str
    id: int
    email: str


def find_available_staff(
    store: RecordStore,
    category: str,
    on_date: date,
    start_time: str,
    end_time: str,
) -> set[StaffSummary]:
    start_time, end_time = validate_window(start_time, end_time)

    available: set[StaffSummary] = set()
    for staff in store.find_active_staff_by_category(category):
        booked = store.find_appointments_by_staff_and_date(staff.id, on_date)
        if find_conflicts(start_time, end_time, booked):
            continue
        available.add(StaffSummary(name=staff.name or '', id=staff.id, email=staff.email))

    logger.debug(
        'Availability for %s on %s %s-%s: %d staff free',
        category, on_date, start_time, end_time, len(available),
    )
    return available


def list_available_staff(
    store: RecordStore,
    category: str,
    on_date: date,
    start_time: str,
    end_time: str,
) -> list[StaffSummary]:
    return sorted(find_available_staff(store, category, on_date, start_time, end_time))
