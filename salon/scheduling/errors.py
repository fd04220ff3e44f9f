"""Error kinds raised by the scheduling core.

Every exception carries a ``kind`` equal to its class name so callers can
report a specific reason without importing the class hierarchy.
"""


class SchedulingError(Exception):
    default_message = 'Scheduling request rejected.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidFormat(SchedulingError):
    default_message = 'Times must use the 24-hour HH:MM format.'


class NotFound(SchedulingError):
    default_message = 'Record not found.'


class BookingError(SchedulingError):
    default_message = 'Booking rejected.'


class CustomerDoubleBooked(BookingError):
    default_message = 'You already have an appointment that overlaps this time.'


class StaffUnavailable(BookingError):
    default_message = 'The selected staff member is not available at this time.'


class SlotTaken(BookingError):
    default_message = 'This time slot was just taken. Please pick another time.'


class ServiceInactive(BookingError):
    default_message = 'This service is not currently offered.'


class TransitionError(SchedulingError):
    default_message = 'Appointment change rejected.'


class InvalidTransition(TransitionError):
    default_message = 'This status change is not allowed.'


class Forbidden(TransitionError):
    default_message = 'You are not allowed to change this appointment.'


class ReferenceInUse(SchedulingError):
    default_message = 'Record is still referenced and cannot be removed.'


class DuplicateName(SchedulingError):
    default_message = 'A record with this name already exists.'


class StorageConflict(Exception):
    """Raised by the record store when a write hits a uniqueness constraint."""
