"""Create appointments in PENDING after they pass conflict validation."""

import logging
from datetime import date

from salon.core import config
from salon.models.appointment import Appointment
from salon.models.user import User, UserRole
from salon.record_store import RecordStore
from salon.scheduling.availability import list_available_staff
from salon.scheduling.conflicts import validate_booking
from salon.scheduling.errors import (
    NotFound,
    SchedulingError,
    ServiceInactive,
    SlotTaken,
    StaffUnavailable,
    StorageConflict,
)
from salon.scheduling.time_window import add_minutes, normalize_clock

logger = logging.getLogger(__name__)


def require_qualified_staff(store: RecordStore, staff_id: int, category: str) -> User:
    staff = store.get_user(staff_id)
    if staff is None or staff.role != UserRole.STAFF.value:
        raise NotFound('Staff member not found.')
    if not staff.is_active:
        raise StaffUnavailable('The selected staff member is no longer taking appointments.')
    if staff.specialty_category != category:
        raise StaffUnavailable(f'The selected staff member does not offer {category} services.')
    return staff


def _pick_available_staff(store: RecordStore, category: str, on_date: date, start_time: str, end_time: str) -> int:
    candidates = list_available_staff(store, category, on_date, start_time, end_time)
    if not candidates:
        raise StaffUnavailable(f'No {category} staff are available between {start_time} and {end_time}.')
    return candidates[0].id


def book_appointment(
    store: RecordStore,
    customer_id: int,
    service_id: int,
    on_date: date,
    start_time: str,
    staff_id: int | None = None,
    notes: str | None = None,
) -> Appointment:
    """Validate and persist a new PENDING appointment for ``customer_id``.

    The end time is derived from the service duration. Validation and the
    insert run in one unit of work; a uniqueness violation at commit means a
    concurrent booking won the slot, in which case the request is re-validated
    up to ``BOOKING_CONFLICT_RETRIES`` times before ``SlotTaken`` is raised.
    """
    try:
        if store.get_user(customer_id) is None:
            raise NotFound('Customer not found.')

        service = store.get_service(service_id)
        if service is None:
            raise NotFound('Service not found.')
        if not service.is_active:
            raise ServiceInactive()

        start_time = normalize_clock(start_time)
        end_time = add_minutes(start_time, service.duration)

        if staff_id is not None:
            require_qualified_staff(store, staff_id, service.category)

        attempts = config.BOOKING_CONFLICT_RETRIES + 1
        for attempt in range(1, attempts + 1):
            store.lock_schedules(customer_id, staff_id)

            assigned_staff_id = staff_id
            if assigned_staff_id is None and config.AUTO_ASSIGN_STAFF:
                # Customer clashes take precedence over "nobody is free".
                validate_booking(store, customer_id, None, on_date, start_time, end_time)
                assigned_staff_id = _pick_available_staff(store, service.category, on_date, start_time, end_time)
                store.lock_schedules(assigned_staff_id)

            validate_booking(store, customer_id, assigned_staff_id, on_date, start_time, end_time)

            try:
                appointment = store.create_appointment(
                    user_id=customer_id,
                    service_id=service.id,
                    staff_id=assigned_staff_id,
                    on_date=on_date,
                    start_time=start_time,
                    end_time=end_time,
                    notes=notes,
                )
            except StorageConflict:
                logger.warning(
                    'Booking for customer %s on %s at %s hit a storage conflict (attempt %d of %d)',
                    customer_id, on_date, start_time, attempt, attempts,
                )
                continue

            logger.info(
                'Booked appointment %s: customer=%s staff=%s service=%s %s %s-%s',
                appointment.id, customer_id, assigned_staff_id, service.id, on_date, start_time, end_time,
            )
            return appointment
    except SchedulingError:
        store.rollback()
        raise

    raise SlotTaken()
