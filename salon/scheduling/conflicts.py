"""Conflict validation for prospective and rescheduled appointments."""

from datetime import date
from typing import Protocol, Sequence

from salon.scheduling.errors import CustomerDoubleBooked, StaffUnavailable
from salon.scheduling.time_window import overlaps


class _Window(Protocol):
    start_time: str
    end_time: str


def find_conflicts(start_time: str, end_time: str, existing: Sequence[_Window]) -> list:
    """Return the existing windows that overlap ``[start_time, end_time)``.

    Exact boundary touches (one ends when the other starts) are not conflicts.
    """
    return [
        window
        for window in existing
        if overlaps(start_time, end_time, window.start_time, window.end_time)
    ]


def validate_booking(
    store,
    customer_id: int,
    staff_id: int | None,
    on_date: date,
    start_time: str,
    end_time: str,
    exclude_appointment_id: int | None = None,
) -> None:
    """Raise if the window collides with the customer's or the staff member's bookings.

    The customer is checked first, then the staff member. Only PENDING and
    CONFIRMED appointments occupy a slot. ``exclude_appointment_id`` keeps an
    appointment being rescheduled out of its own conflict set.
    """
    customer_appointments = store.find_appointments_by_customer_and_date(
        customer_id, on_date, exclude_appointment_id=exclude_appointment_id
    )
    clashes = find_conflicts(start_time, end_time, customer_appointments)
    if clashes:
        clash = clashes[0]
        raise CustomerDoubleBooked(
            f'You already have an appointment from {clash.start_time} to {clash.end_time} on {on_date}.'
        )

    if staff_id is None:
        return

    staff_appointments = store.find_appointments_by_staff_and_date(
        staff_id, on_date, exclude_appointment_id=exclude_appointment_id
    )
    if find_conflicts(start_time, end_time, staff_appointments):
        raise StaffUnavailable(
            f'The selected staff member is already booked between {start_time} and {end_time} on {on_date}.'
        )
