import re

from salon.scheduling.errors import InvalidFormat

MINUTES_PER_DAY = 24 * 60
CLOCK_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')


def to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` wall-clock string to minutes since midnight."""
    if not isinstance(value, str):
        raise InvalidFormat(f'Expected an HH:MM time string, got {value!r}.')

    match = CLOCK_PATTERN.match(value.strip())
    if match is None:
        raise InvalidFormat(f'Invalid time {value!r}; expected HH:MM.')

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidFormat(f'Invalid time {value!r}; hour must be 0-23 and minute 0-59.')

    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    if not 0 <= total_minutes < MINUTES_PER_DAY:
        raise InvalidFormat('Appointments cannot cross midnight.')
    return f'{total_minutes // 60:02d}:{total_minutes % 60:02d}'


def normalize_clock(value: str) -> str:
    return format_minutes(to_minutes(value))


def add_minutes(start_time: str, minutes: int) -> str:
    return format_minutes(to_minutes(start_time) + minutes)


def validate_window(start_time: str, end_time: str) -> tuple[str, str]:
    start_minutes = to_minutes(start_time)
    end_minutes = to_minutes(end_time)
    if start_minutes >= end_minutes:
        raise InvalidFormat('Start time must be before end time.')
    return format_minutes(start_minutes), format_minutes(end_minutes)


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open overlap: windows that only touch at an endpoint do not overlap."""
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(end_a) > to_minutes(start_b)
