"""
Appointment lifecycle

Status transitions and field edits. The requester is always passed in
explicitly as ``requester_id`` + ``requester_role``; nothing here reads an
ambient session.
"""

import logging
from datetime import date

from salon.models.appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES
from salon.models.user import UserRole
from salon.record_store import RecordStore
from salon.scheduling.booking import require_qualified_staff
from salon.scheduling.conflicts import validate_booking
from salon.scheduling.errors import (
    Forbidden,
    InvalidTransition,
    NotFound,
    SchedulingError,
    SlotTaken,
    StorageConflict,
)
from salon.scheduling.time_window import add_minutes, normalize_clock

logger = logging.getLogger(__name__)

# Marks the customer who booked the appointment.
OWNER = 'OWNER'

ALLOWED_TRANSITIONS = {
    (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED): frozenset({UserRole.ADMIN}),
    (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED): frozenset({UserRole.ADMIN, OWNER}),
    (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED): frozenset({UserRole.ADMIN, OWNER}),
    (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED): frozenset({UserRole.ADMIN}),
}

EDITORS = frozenset({UserRole.ADMIN, OWNER})

_UNSET = object()


def _coerce_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError as exc:
        raise InvalidTransition(f'Unknown appointment status {value!r}.') from exc


def _grants(appointment: Appointment, requester_id: int, requester_role) -> set:
    try:
        role = UserRole(requester_role)
    except ValueError as exc:
        raise Forbidden(f'Unknown role {requester_role!r}.') from exc

    grants = set()
    if role is UserRole.ADMIN:
        grants.add(UserRole.ADMIN)
    if role is UserRole.CUSTOMER and requester_id == appointment.user_id:
        grants.add(OWNER)
    return grants


def _require_editable(appointment: Appointment) -> None:
    if AppointmentStatus(appointment.status) in TERMINAL_STATUSES:
        raise InvalidTransition(f'{appointment.status.title()} appointments cannot be changed.')


def transition_appointment(
    store: RecordStore,
    appointment_id: int,
    requester_id: int,
    requester_role,
    new_status,
) -> Appointment:
    """Apply one status transition from ``ALLOWED_TRANSITIONS``.

    Transitions outside the table (including repeating the current terminal
    status) raise ``InvalidTransition`` whatever the requester's role; allowed
    transitions requested by someone without the right raise ``Forbidden``.
    Nothing is written on failure.
    """
    try:
        target = _coerce_status(new_status)
        appointment = store.get_appointment(appointment_id)
        current = AppointmentStatus(appointment.status)

        allowed = ALLOWED_TRANSITIONS.get((current, target))
        if allowed is None:
            raise InvalidTransition(f'Cannot change an appointment from {current.value} to {target.value}.')
        if not allowed & _grants(appointment, requester_id, requester_role):
            raise Forbidden(f'You are not allowed to move this appointment to {target.value}.')

        updated = store.update_appointment_status(appointment.id, target)
    except SchedulingError:
        store.rollback()
        raise

    logger.info(
        'Appointment %s: %s -> %s by user %s (%s)',
        appointment_id, current.value, target.value, requester_id, requester_role,
    )
    return updated


def update_appointment_details(
    store: RecordStore,
    appointment_id: int,
    requester_id: int,
    requester_role,
    *,
    on_date: date | None = None,
    start_time: str | None = None,
    notes=_UNSET,
) -> Appointment:
    """Edit date, start time or notes of a PENDING/CONFIRMED appointment.

    A new date or start time re-derives the end time from the service and is
    re-validated with the appointment itself left out of the conflict set.
    """
    try:
        appointment = store.get_appointment(appointment_id)
        if not EDITORS & _grants(appointment, requester_id, requester_role):
            raise Forbidden('Only the customer who booked this appointment or an admin can edit it.')
        _require_editable(appointment)

        if on_date is not None or start_time is not None:
            service = store.get_service(appointment.service_id)
            if service is None:
                raise NotFound('Service not found.')

            new_date = on_date if on_date is not None else appointment.date
            new_start = normalize_clock(start_time) if start_time is not None else appointment.start_time
            new_end = add_minutes(new_start, service.duration)

            store.lock_schedules(appointment.user_id, appointment.staff_id)
            validate_booking(
                store,
                appointment.user_id,
                appointment.staff_id,
                new_date,
                new_start,
                new_end,
                exclude_appointment_id=appointment.id,
            )
            appointment.date = new_date
            appointment.start_time = new_start
            appointment.end_time = new_end

        if notes is not _UNSET:
            appointment.notes = notes

        try:
            updated = store.save_appointment(appointment)
        except StorageConflict as exc:
            raise SlotTaken() from exc
    except SchedulingError:
        store.rollback()
        raise

    logger.info('Appointment %s edited by user %s (%s)', appointment_id, requester_id, requester_role)
    return updated


def assign_staff(
    store: RecordStore,
    appointment_id: int,
    requester_id: int,
    requester_role,
    staff_id: int | None,
) -> Appointment:
    """Admin-only: set or clear the staff member on a non-terminal appointment."""
    try:
        appointment = store.get_appointment(appointment_id)
        if UserRole.ADMIN not in _grants(appointment, requester_id, requester_role):
            raise Forbidden('Only admins can assign staff.')
        _require_editable(appointment)

        if staff_id is not None:
            service = store.get_service(appointment.service_id)
            if service is None:
                raise NotFound('Service not found.')
            require_qualified_staff(store, staff_id, service.category)

            store.lock_schedules(staff_id)
            validate_booking(
                store,
                appointment.user_id,
                staff_id,
                appointment.date,
                appointment.start_time,
                appointment.end_time,
                exclude_appointment_id=appointment.id,
            )

        appointment.staff_id = staff_id
        try:
            updated = store.save_appointment(appointment)
        except StorageConflict as exc:
            raise SlotTaken() from exc
    except SchedulingError:
        store.rollback()
        raise

    logger.info('Appointment %s assigned to staff %s by admin %s', appointment_id, staff_id, requester_id)
    return updated
