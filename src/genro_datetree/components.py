# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Date components and their key encoding.

A date is decomposed into calendar components following a fixed ladder of
units, from the coarsest to the finest::

    year > month > day > hour > minute > second > millisecond

A resolution cuts the ladder: with resolution 'day' only year, month and day
are addressable. Each component is exposed with its natural value (month 1 is
January, millisecond 0-999) and is encoded as a zero padded decimal key, so
that the lexicographic order of keys equals the chronological order:

    >>> encode_date_component(8, 'month')
    '08'
    >>> get_date_components('2020-08-23T10:30', 'day')
    {'year': 2020, 'month': 8, 'day': 23}

All dates handled here are timezone aware UTC datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Literal, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .exceptions import InvalidResolutionError

DateUnit = Literal['year', 'month', 'day', 'hour', 'minute', 'second', 'millisecond']
DateParsable = Union[datetime, date, str, int, float]
DateComponents = dict[str, int]

ALL_DATE_UNITS: tuple[str, ...] = (
    'year', 'month', 'day', 'hour', 'minute', 'second', 'millisecond',
)

# Reconstructed dates are anchored here.
ZERO_DATE = datetime(1, 1, 1, tzinfo=timezone.utc)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Exclusive upper bound of each natural component value.
MAX_DATE_COMPONENTS: dict[str, int] = {
    'month': 13,
    'day': 32,
    'hour': 24,
    'minute': 60,
    'second': 60,
    'millisecond': 1000,
}

DATE_COMPONENT_PADS: dict[str, int] = {
    'year': 4,
    **{unit: len(str(top - 1)) for unit, top in MAX_DATE_COMPONENTS.items()},
}

_NATIVE_FIELDS: dict[str, str] = {
    'year': 'year',
    'month': 'month',
    'day': 'day',
    'hour': 'hour',
    'minute': 'minute',
    'second': 'second',
    'millisecond': 'microsecond',
}

# Value each native field takes at the start of a period.
_NATIVE_START: dict[str, int] = {
    'month': 1,
    'day': 1,
    'hour': 0,
    'minute': 0,
    'second': 0,
    'microsecond': 0,
}


# ==================== Units ====================

def is_resolution(resolution: object) -> bool:
    """True if resolution names a unit of the ladder."""
    return isinstance(resolution, str) and resolution in ALL_DATE_UNITS


def check_resolution(resolution: object) -> str:
    """Return resolution unchanged, or raise InvalidResolutionError."""
    if not is_resolution(resolution):
        raise InvalidResolutionError(resolution)
    return resolution  # type: ignore[return-value]


def units_to(resolution: str) -> tuple[str, ...]:
    """Return the ladder units from 'year' up to and including resolution."""
    check_resolution(resolution)
    return ALL_DATE_UNITS[:ALL_DATE_UNITS.index(resolution) + 1]


def bigger_unit(unit: str) -> str | None:
    """Return the next coarser unit, or None for 'year' and unknown units."""
    if unit not in ALL_DATE_UNITS:
        return None
    i = ALL_DATE_UNITS.index(unit)
    return ALL_DATE_UNITS[i - 1] if i > 0 else None


def smaller_unit(unit: str) -> str | None:
    """Return the next finer unit, or None for 'millisecond' and unknown units."""
    if unit not in ALL_DATE_UNITS:
        return None
    i = ALL_DATE_UNITS.index(unit)
    return ALL_DATE_UNITS[i + 1] if i + 1 < len(ALL_DATE_UNITS) else None


# ==================== Dates ====================

def parse_date(value: DateParsable) -> datetime:
    """Convert a date representation to a UTC datetime.

    Args:
        value: One of:
            - datetime: naive values are taken as UTC, aware ones converted
            - date: midnight UTC of that day
            - str: ISO 8601 ('2020', '2020-08', '2020-08-23T10:00Z', ...)
            - int/float: milliseconds since the Unix epoch

    Returns:
        Timezone aware UTC datetime.

    Raises:
        TypeError: If value is of an unsupported type.
        ValueError: If a string is not valid ISO 8601.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_date(isoparse(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return EPOCH + timedelta(milliseconds=value)
    raise TypeError(
        f"Cannot parse date from {type(value).__name__}: {value!r}"
    )


def start_of(value: DateParsable, unit: str) -> datetime:
    """Truncate a date to the start of its unit period."""
    check_resolution(unit)
    m = parse_date(value)
    finer = ALL_DATE_UNITS[ALL_DATE_UNITS.index(unit) + 1:]
    fields = {_NATIVE_FIELDS[u]: _NATIVE_START[_NATIVE_FIELDS[u]] for u in finer}
    if unit == 'millisecond':
        fields['microsecond'] = m.microsecond // 1000 * 1000
    return m.replace(**fields)


def add_unit(value: DateParsable, unit: str, amount: int = 1) -> datetime:
    """Shift a date by amount units, clamping days at month ends."""
    check_resolution(unit)
    m = parse_date(value)
    if unit == 'millisecond':
        return m + relativedelta(microseconds=1000 * amount)
    return m + relativedelta(**{f"{unit}s": amount})


def iterate_dates(
    start: DateParsable, end: DateParsable, resolution: str
) -> Iterator[datetime]:
    """Yield every date at resolution from start (inclusive) to end (exclusive).

    Both bounds are truncated to resolution first.

    Example:
        >>> [d.day for d in iterate_dates('2020-08-30', '2020-09-02', 'day')]
        [30, 31, 1]
    """
    current = start_of(start, resolution)
    stop = start_of(end, resolution)
    while current < stop:
        yield current
        current = add_unit(current, resolution)


# ==================== Components ====================

def get_date_component(value: DateParsable, unit: str) -> int:
    """Return the natural value of a single unit of a date."""
    check_resolution(unit)
    m = parse_date(value)
    native = getattr(m, _NATIVE_FIELDS[unit])
    if unit == 'millisecond':
        return native // 1000
    return native


def get_date_components(value: DateParsable, resolution: str) -> DateComponents:
    """Return the components of a date from 'year' up to resolution."""
    m = parse_date(value)
    return {unit: get_date_component(m, unit) for unit in units_to(resolution)}


def get_date_with_components(
    components: DateComponents, resolution: str | None = None
) -> datetime:
    """Rebuild a date from (possibly partial) components.

    Components are applied in ladder order on top of ZERO_DATE, stopping at
    the first missing unit, or after resolution when given.

    Example:
        >>> get_date_with_components({'year': 2020, 'month': 8})
        datetime.datetime(2020, 8, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if resolution is not None:
        check_resolution(resolution)
    fields: dict[str, int] = {}
    for unit in ALL_DATE_UNITS:
        value = components.get(unit)
        if value is None:
            break
        if unit == 'millisecond':
            value *= 1000
        fields[_NATIVE_FIELDS[unit]] = value
        if unit == resolution:
            break
    return ZERO_DATE.replace(**fields)


def downsample_date_components(
    components: DateComponents, unit: str
) -> DateComponents:
    """Return the components coarser than or equal to unit."""
    result: DateComponents = {}
    for u in units_to(unit):
        if components.get(u) is not None:
            result[u] = components[u]
    return result


def encode_date_component(value: int | None, unit: str) -> str | None:
    """Encode a component value as a key padded for lexicographic order.

    Returns None when value is None, so open range bounds pass through.
    """
    if value is None:
        return None
    return str(value).rjust(DATE_COMPONENT_PADS[check_resolution(unit)], '0')


def decode_date_component(key: str) -> int:
    """Decode a component key, padded or not.

    Raises:
        ValueError: If key is not numeric.
    """
    return round(float(key))


def get_date_component_range(
    components: DateComponents,
    start_components: DateComponents,
    end_components: DateComponents,
    unit: str,
) -> tuple[int | None, int | None]:
    """Return the (low, high) listing bound at unit for a range scan.

    components holds the values already chosen for the units coarser than
    unit. A bound of the range only restricts the listing while the scan is
    still on that bound's path; once an ancestor differs the side is open.
    """
    start_value = start_components.get(unit)
    end_value = end_components.get(unit)
    if start_value is None and end_value is None:
        return None, None

    up_unit = bigger_unit(unit)
    if up_unit is None:
        return start_value, end_value
    up_components = downsample_date_components(components, up_unit)

    if start_value is not None:
        if downsample_date_components(start_components, up_unit) != up_components:
            start_value = None

    if end_value is not None:
        if downsample_date_components(end_components, up_unit) != up_components:
            end_value = None

    return start_value, end_value
