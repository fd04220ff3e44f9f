from datetime import date

import pytest

from salon.models.appointment import AppointmentStatus
from salon.models.user import UserRole
from salon.scheduling.errors import (
    CustomerDoubleBooked,
    Forbidden,
    InvalidTransition,
    NotFound,
    StaffUnavailable,
)
from salon.scheduling.lifecycle import assign_staff, transition_appointment, update_appointment_details

BOOKING_DATE = date(2024, 6, 1)

PENDING = AppointmentStatus.PENDING
CONFIRMED = AppointmentStatus.CONFIRMED
CANCELLED = AppointmentStatus.CANCELLED
COMPLETED = AppointmentStatus.COMPLETED


def _as_admin(salon):
    return salon.admin.id, UserRole.ADMIN


def _as_owner(salon):
    return salon.alice.id, UserRole.CUSTOMER


@pytest.fixture
def booked(salon, add_appointment):
    def _booked(status=PENDING, staff=None):
        return add_appointment(salon.alice, salon.manicure, '10:00', '10:30', staff=staff, status=status)

    return _booked


def test_admin_confirms_then_completes(store, salon, booked) -> None:
    appointment = booked()

    confirmed = transition_appointment(store, appointment.id, *_as_admin(salon), CONFIRMED)
    assert confirmed.status == CONFIRMED.value

    completed = transition_appointment(store, appointment.id, *_as_admin(salon), COMPLETED)
    assert completed.status == COMPLETED.value


@pytest.mark.parametrize('start_status', [PENDING, CONFIRMED])
def test_owner_can_cancel(store, salon, booked, start_status) -> None:
    appointment = booked(status=start_status)

    cancelled = transition_appointment(store, appointment.id, *_as_owner(salon), CANCELLED)

    assert cancelled.status == CANCELLED.value


@pytest.mark.parametrize('start_status', [PENDING, CONFIRMED])
def test_admin_can_cancel(store, salon, booked, start_status) -> None:
    appointment = booked(status=start_status)

    assert transition_appointment(store, appointment.id, *_as_admin(salon), 'CANCELLED').status == 'CANCELLED'


def test_other_customer_cannot_cancel(store, salon, booked, db_session) -> None:
    appointment = booked(status=CONFIRMED)

    with pytest.raises(Forbidden):
        transition_appointment(store, appointment.id, salon.bob.id, UserRole.CUSTOMER, CANCELLED)

    db_session.refresh(appointment)
    assert appointment.status == CONFIRMED.value


@pytest.mark.parametrize('target', [CONFIRMED, COMPLETED])
def test_owner_cannot_confirm_or_complete(store, salon, booked, target) -> None:
    appointment = booked(status=PENDING if target is CONFIRMED else CONFIRMED)

    with pytest.raises(Forbidden):
        transition_appointment(store, appointment.id, *_as_owner(salon), target)


def test_staff_cannot_drive_transitions(store, salon, booked) -> None:
    appointment = booked(staff=salon.mia)

    with pytest.raises(Forbidden):
        transition_appointment(store, appointment.id, salon.mia.id, UserRole.STAFF, CONFIRMED)


@pytest.mark.parametrize('requester', ['admin', 'alice', 'bob', 'mia'])
def test_pending_to_completed_is_invalid_for_everyone(store, salon, booked, requester) -> None:
    appointment = booked()
    user = getattr(salon, requester)

    with pytest.raises(InvalidTransition):
        transition_appointment(store, appointment.id, user.id, user.role, COMPLETED)


@pytest.mark.parametrize('terminal', [CANCELLED, COMPLETED])
@pytest.mark.parametrize('target', list(AppointmentStatus))
def test_terminal_states_accept_no_transition(store, salon, booked, db_session, terminal, target) -> None:
    appointment = booked(status=terminal)

    with pytest.raises(InvalidTransition):
        transition_appointment(store, appointment.id, *_as_admin(salon), target)

    db_session.refresh(appointment)
    assert appointment.status == terminal.value


def test_repeating_current_status_is_invalid(store, salon, booked) -> None:
    appointment = booked(status=CONFIRMED)

    with pytest.raises(InvalidTransition):
        transition_appointment(store, appointment.id, *_as_admin(salon), CONFIRMED)


def test_unknown_status_is_invalid(store, salon, booked) -> None:
    appointment = booked()

    with pytest.raises(InvalidTransition):
        transition_appointment(store, appointment.id, *_as_admin(salon), 'ARCHIVED')


def test_missing_appointment_is_not_found(store, salon) -> None:
    with pytest.raises(NotFound):
        transition_appointment(store, 404, *_as_admin(salon), CONFIRMED)


def test_owner_reschedules_and_end_time_follows_service(store, salon, booked) -> None:
    appointment = booked()

    updated = update_appointment_details(store, appointment.id, *_as_owner(salon), start_time='10:15')

    assert (updated.start_time, updated.end_time) == ('10:15', '10:45')


def test_reschedule_checks_other_appointments_of_customer(store, salon, booked, add_appointment) -> None:
    appointment = booked()
    add_appointment(salon.alice, salon.manicure, '11:00', '11:30')

    with pytest.raises(CustomerDoubleBooked):
        update_appointment_details(store, appointment.id, *_as_owner(salon), start_time='10:45')


def test_reschedule_checks_assigned_staff(store, salon, booked, add_appointment) -> None:
    appointment = booked(staff=salon.mia)
    add_appointment(salon.bob, salon.manicure, '12:00', '12:30', staff=salon.mia)

    with pytest.raises(StaffUnavailable):
        update_appointment_details(store, appointment.id, *_as_admin(salon), start_time='11:45')


def test_reschedule_to_another_date(store, salon, booked) -> None:
    appointment = booked()

    updated = update_appointment_details(store, appointment.id, *_as_owner(salon), on_date=date(2024, 6, 3))

    assert updated.date == date(2024, 6, 3)
    assert updated.start_time == '10:00'


def test_notes_can_be_changed_and_cleared(store, salon, booked) -> None:
    appointment = booked()

    updated = update_appointment_details(store, appointment.id, *_as_owner(salon), notes='Short nails')
    assert updated.notes == 'Short nails'

    cleared = update_appointment_details(store, appointment.id, *_as_owner(salon), notes=None)
    assert cleared.notes is None


def test_other_customer_cannot_edit(store, salon, booked) -> None:
    appointment = booked()

    with pytest.raises(Forbidden):
        update_appointment_details(store, appointment.id, salon.bob.id, UserRole.CUSTOMER, notes='mine now')


@pytest.mark.parametrize('terminal', [CANCELLED, COMPLETED])
def test_terminal_appointment_cannot_be_edited(store, salon, booked, terminal) -> None:
    appointment = booked(status=terminal)

    with pytest.raises(InvalidTransition):
        update_appointment_details(store, appointment.id, *_as_owner(salon), start_time='11:00')


def test_admin_assigns_free_qualified_staff(store, salon, booked) -> None:
    appointment = booked()

    updated = assign_staff(store, appointment.id, *_as_admin(salon), salon.noah.id)

    assert updated.staff_id == salon.noah.id


def test_assign_staff_rejects_busy_staff(store, salon, booked, add_appointment) -> None:
    appointment = booked()
    add_appointment(salon.bob, salon.manicure, '10:15', '10:45', staff=salon.noah)

    with pytest.raises(StaffUnavailable):
        assign_staff(store, appointment.id, *_as_admin(salon), salon.noah.id)


def test_assign_staff_rejects_wrong_specialty(store, salon, booked) -> None:
    appointment = booked()

    with pytest.raises(StaffUnavailable):
        assign_staff(store, appointment.id, *_as_admin(salon), salon.pia.id)


def test_assign_staff_is_admin_only(store, salon, booked) -> None:
    appointment = booked()

    with pytest.raises(Forbidden):
        assign_staff(store, appointment.id, *_as_owner(salon), salon.noah.id)


def test_admin_can_clear_staff(store, salon, booked) -> None:
    appointment = booked(staff=salon.mia)

    assert assign_staff(store, appointment.id, *_as_admin(salon), None).staff_id is None
