import itertools

import pytest

from salon.scheduling.errors import InvalidFormat
from salon.scheduling.time_window import add_minutes, normalize_clock, overlaps, to_minutes, validate_window

WINDOWS = [
    ('08:00', '08:30'),
    ('09:00', '10:00'),
    ('09:30', '09:45'),
    ('10:00', '11:00'),
    ('00:00', '23:59'),
]


def test_to_minutes_counts_from_midnight() -> None:
    assert to_minutes('00:00') == 0
    assert to_minutes('09:05') == 545
    assert to_minutes('23:59') == 1439


def test_normalize_clock_pads_single_digit_hours() -> None:
    assert normalize_clock('9:00') == '09:00'
    assert normalize_clock(' 14:30 ') == '14:30'


@pytest.mark.parametrize('value', ['24:00', '12:60', '9', '09-00', 'ab:cd', '', '123:00', None])
def test_to_minutes_rejects_malformed_times(value) -> None:
    with pytest.raises(InvalidFormat):
        to_minutes(value)


def test_touching_windows_do_not_overlap() -> None:
    assert overlaps('09:00', '10:00', '10:00', '11:00') is False
    assert overlaps('10:00', '11:00', '09:00', '10:00') is False


def test_partial_and_contained_windows_overlap() -> None:
    assert overlaps('09:00', '10:00', '09:59', '10:30') is True
    assert overlaps('09:00', '12:00', '10:00', '10:30') is True


@pytest.mark.parametrize(('first', 'second'), list(itertools.product(WINDOWS, repeat=2)))
def test_overlaps_is_symmetric(first, second) -> None:
    assert overlaps(*first, *second) == overlaps(*second, *first)


@pytest.mark.parametrize('window', WINDOWS)
def test_window_overlaps_itself(window) -> None:
    assert overlaps(*window, *window) is True


def test_overlaps_rejects_malformed_input() -> None:
    with pytest.raises(InvalidFormat):
        overlaps('9am', '10:00', '10:00', '11:00')


def test_add_minutes_derives_end_time() -> None:
    assert add_minutes('09:45', 45) == '10:30'


def test_add_minutes_refuses_to_cross_midnight() -> None:
    with pytest.raises(InvalidFormat) as exception_info:
        add_minutes('23:30', 45)

    assert exception_info.value.kind == 'InvalidFormat'
    assert exception_info.value.message == 'Appointments cannot cross midnight.'


def test_validate_window_requires_start_before_end() -> None:
    assert validate_window('9:00', '9:30') == ('09:00', '09:30')
    with pytest.raises(InvalidFormat):
        validate_window('10:00', '10:00')
