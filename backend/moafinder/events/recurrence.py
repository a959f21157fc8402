"""Recurring event schedule resolution.

An event is anchored on its ``start_date`` and carries a recurrence
descriptor.  The descriptor is one of a small set of frozen variants
(one-off, daily, weekly, monthly by day, monthly by weekday, yearly); each
variant only holds the fields that mean something for it.

:func:`resolve_occurrences` maps ``(start_date, descriptor, horizon_end)`` to
the calendar dates the event takes place on.  The result is lazy, bounded by
``min(repeat_until, horizon_end)`` and can be iterated any number of times.
Time of day is not part of this computation.

Dates that do not exist in a given month or year (the 31st of a short month,
Feb 29 outside leap years) are skipped, never shifted.
"""

from __future__ import annotations

import calendar
import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, ClassVar, Union

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from moafinder.core.exceptions import ValidationError


class InvalidDescriptor(ValidationError):
    """A recurrence descriptor is missing fields or holds out-of-range values."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message,
            code="INVALID_RECURRENCE",
            details={"field": field} if field else None,
        )
        self.field = field


class EventType(str, enum.Enum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def _missing_(cls, value: object) -> EventType | None:
        # Listings imported from the old directory use German values.
        if isinstance(value, str):
            alias = _GERMAN_EVENT_TYPES.get(value.strip().lower())
            if alias is not None:
                return cls(alias)
        return None


_GERMAN_EVENT_TYPES = {
    "einmalig": "once",
    "täglich": "daily",
    "wöchentlich": "weekly",
    "monatlich": "monthly",
    "jährlich": "yearly",
}


class Weekday(str, enum.Enum):
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

    @property
    def number(self) -> int:
        """Day number as returned by :meth:`datetime.date.weekday`."""
        return _WEEKDAY_ORDER.index(self)


_WEEKDAY_ORDER = tuple(Weekday)
_DATEUTIL_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)


class MonthlyMode(str, enum.Enum):
    DAY_OF_MONTH = "dayOfMonth"
    NTH_WEEKDAY = "nthWeekday"


class WeekIndex(str, enum.Enum):
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    LAST = "last"

    @property
    def ordinal(self) -> int:
        """1-based position in the month, ``-1`` for the last one."""
        return _WEEK_INDEX_ORDINALS[self]


_WEEK_INDEX_ORDINALS = {
    WeekIndex.FIRST: 1,
    WeekIndex.SECOND: 2,
    WeekIndex.THIRD: 3,
    WeekIndex.FOURTH: 4,
    WeekIndex.LAST: -1,
}


def _coerce(enum_cls: type[enum.Enum], value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidDescriptor(
            f"{field_name} has an unknown value: {value!r}.", field=field_name
        ) from None


# ---------------------------------------------------------------------------
# Descriptor variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OnceRecurrence:
    event_type: ClassVar[EventType] = EventType.ONCE

    @property
    def repeat_until(self) -> None:
        return None


@dataclass(frozen=True, kw_only=True)
class DailyRecurrence:
    repeat_until: date | None = None

    event_type: ClassVar[EventType] = EventType.DAILY


@dataclass(frozen=True, kw_only=True)
class WeeklyRecurrence:
    days_of_week: frozenset[Weekday]
    repeat_until: date | None = None

    event_type: ClassVar[EventType] = EventType.WEEKLY

    def __post_init__(self) -> None:
        days = frozenset(
            _coerce(Weekday, day, "days_of_week") for day in self.days_of_week or ()
        )
        if not days:
            raise InvalidDescriptor(
                "A weekly event needs at least one weekday.", field="days_of_week"
            )
        object.__setattr__(self, "days_of_week", days)

    @property
    def ordered_days(self) -> list[Weekday]:
        return sorted(self.days_of_week, key=lambda day: day.number)


@dataclass(frozen=True, kw_only=True)
class MonthlyDayRecurrence:
    day_of_month: int
    repeat_until: date | None = None

    event_type: ClassVar[EventType] = EventType.MONTHLY
    monthly_mode: ClassVar[MonthlyMode] = MonthlyMode.DAY_OF_MONTH

    def __post_init__(self) -> None:
        day = self.day_of_month
        if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
            raise InvalidDescriptor(
                f"monthly_day_of_month must be between 1 and 31, got {day!r}.",
                field="monthly_day_of_month",
            )


@dataclass(frozen=True, kw_only=True)
class MonthlyWeekdayRecurrence:
    week_index: WeekIndex
    weekday: Weekday
    repeat_until: date | None = None

    event_type: ClassVar[EventType] = EventType.MONTHLY
    monthly_mode: ClassVar[MonthlyMode] = MonthlyMode.NTH_WEEKDAY

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "week_index", _coerce(WeekIndex, self.week_index, "monthly_week_index")
        )
        object.__setattr__(
            self, "weekday", _coerce(Weekday, self.weekday, "monthly_weekday")
        )


@dataclass(frozen=True, kw_only=True)
class YearlyRecurrence:
    repeat_until: date | None = None

    event_type: ClassVar[EventType] = EventType.YEARLY


RecurrenceDescriptor = Union[
    OnceRecurrence,
    DailyRecurrence,
    WeeklyRecurrence,
    MonthlyDayRecurrence,
    MonthlyWeekdayRecurrence,
    YearlyRecurrence,
]

_DESCRIPTOR_TYPES = (
    OnceRecurrence,
    DailyRecurrence,
    WeeklyRecurrence,
    MonthlyDayRecurrence,
    MonthlyWeekdayRecurrence,
    YearlyRecurrence,
)


def descriptor_from_fields(
    event_type: EventType | str,
    *,
    days_of_week: Iterable[Weekday | str] | None = None,
    monthly_mode: MonthlyMode | str | None = None,
    monthly_day_of_month: int | None = None,
    monthly_week_index: WeekIndex | str | None = None,
    monthly_weekday: Weekday | str | None = None,
    repeat_until: date | None = None,
) -> RecurrenceDescriptor:
    """Build the descriptor variant for the flat field shape used in storage
    and on the wire.

    Fields that do not apply to ``event_type`` are ignored; forms keep stale
    values around when the organizer switches the type.

    Raises:
        InvalidDescriptor: when a field required by ``event_type`` (and
            ``monthly_mode``) is missing or out of range.
    """
    kind = _coerce(EventType, event_type, "event_type")

    if kind is EventType.ONCE:
        return OnceRecurrence()
    if kind is EventType.DAILY:
        return DailyRecurrence(repeat_until=repeat_until)
    if kind is EventType.WEEKLY:
        return WeeklyRecurrence(
            days_of_week=frozenset(days_of_week or ()), repeat_until=repeat_until
        )
    if kind is EventType.YEARLY:
        return YearlyRecurrence(repeat_until=repeat_until)

    if monthly_mode is None:
        raise InvalidDescriptor("A monthly event needs a monthly_mode.", field="monthly_mode")
    mode = _coerce(MonthlyMode, monthly_mode, "monthly_mode")
    if mode is MonthlyMode.DAY_OF_MONTH:
        if monthly_day_of_month is None:
            raise InvalidDescriptor(
                "monthly_day_of_month is required for dayOfMonth.",
                field="monthly_day_of_month",
            )
        return MonthlyDayRecurrence(
            day_of_month=monthly_day_of_month, repeat_until=repeat_until
        )
    if monthly_week_index is None or monthly_weekday is None:
        raise InvalidDescriptor(
            "monthly_week_index and monthly_weekday are required for nthWeekday.",
            field="monthly_weekday" if monthly_week_index is not None else "monthly_week_index",
        )
    return MonthlyWeekdayRecurrence(
        week_index=monthly_week_index,
        weekday=monthly_weekday,
        repeat_until=repeat_until,
    )


def descriptor_to_fields(descriptor: RecurrenceDescriptor) -> dict[str, Any]:
    """Flatten a descriptor into the column layout of the events table."""
    fields: dict[str, Any] = {
        "event_type": descriptor.event_type,
        "days_of_week": None,
        "monthly_mode": None,
        "monthly_day_of_month": None,
        "monthly_week_index": None,
        "monthly_weekday": None,
        "repeat_until": descriptor.repeat_until,
    }
    if isinstance(descriptor, WeeklyRecurrence):
        fields["days_of_week"] = [day.value for day in descriptor.ordered_days]
    elif isinstance(descriptor, MonthlyDayRecurrence):
        fields["monthly_mode"] = descriptor.monthly_mode
        fields["monthly_day_of_month"] = descriptor.day_of_month
    elif isinstance(descriptor, MonthlyWeekdayRecurrence):
        fields["monthly_mode"] = descriptor.monthly_mode
        fields["monthly_week_index"] = descriptor.week_index
        fields["monthly_weekday"] = descriptor.weekday
    return fields


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Occurrences:
    """Lazy, restartable sequence of occurrence dates.

    Every iteration recomputes the dates from the inputs, so iterating twice
    yields the same, strictly ascending sequence.
    """

    start_date: date
    descriptor: RecurrenceDescriptor
    upper_bound: date
    # Generation starts here instead of at the anchor when set.
    lower_bound: date | None = None

    def __iter__(self) -> Iterator[date]:
        first = self.start_date
        if self.lower_bound is not None and self.lower_bound > first:
            first = self.lower_bound
        previous: date | None = None
        for day in _candidates(self.start_date, first, self.descriptor, self.upper_bound):
            if day > self.upper_bound:
                break
            if day < first:
                continue
            # Candidates are generated in ascending order; this guard keeps
            # the output strictly increasing if a generator ever overlaps.
            if previous is not None and day <= previous:
                continue
            previous = day
            yield day


def resolve_occurrences(
    start_date: date,
    descriptor: RecurrenceDescriptor,
    horizon_end: date,
) -> Occurrences:
    """Return the occurrences of an event anchored on ``start_date``.

    The sequence is bounded by ``horizon_end`` and, when set, by the
    descriptor's ``repeat_until`` (both inclusive).  A horizon before the
    anchor yields an empty sequence.

    Raises:
        InvalidDescriptor: synchronously, when ``descriptor`` is not a valid
            recurrence variant.
    """
    if not isinstance(descriptor, _DESCRIPTOR_TYPES):
        raise InvalidDescriptor(
            f"Unsupported recurrence descriptor: {type(descriptor).__name__}."
        )
    upper_bound = horizon_end
    if descriptor.repeat_until is not None and descriptor.repeat_until < upper_bound:
        upper_bound = descriptor.repeat_until
    return Occurrences(start_date, descriptor, upper_bound)


def occurrences_between(
    start_date: date,
    descriptor: RecurrenceDescriptor,
    window_start: date,
    window_end: date,
) -> Iterator[date]:
    """Occurrences falling inside ``[window_start, window_end]``.

    Generation begins at the window, so the cost depends on the window length
    and not on how long ago the event started.
    """
    occurrences = resolve_occurrences(start_date, descriptor, window_end)
    return iter(replace(occurrences, lower_bound=window_start))


def next_occurrence(
    start_date: date,
    descriptor: RecurrenceDescriptor,
    on_or_after: date,
    horizon_end: date,
) -> date | None:
    return next(occurrences_between(start_date, descriptor, on_or_after, horizon_end), None)


def compute_expiry_date(
    start_date: date,
    end_date: date | None = None,
    repeat_until: date | None = None,
) -> date:
    """Date after which a listing is considered over.

    Preference order: ``repeat_until``, then ``end_date``, then ``start_date``.
    """
    return repeat_until or end_date or start_date


def _candidates(
    anchor: date, first: date, descriptor: RecurrenceDescriptor, bound: date
) -> Iterator[date]:
    # Every rule below depends on the calendar date alone, so starting at
    # ``first`` rather than the anchor yields the same dates from there on.
    if isinstance(descriptor, OnceRecurrence):
        yield anchor
    elif isinstance(descriptor, DailyRecurrence):
        yield from _daily(first, bound)
    elif isinstance(descriptor, WeeklyRecurrence):
        numbers = {day.number for day in descriptor.days_of_week}
        for day in _daily(first, bound):
            if day.weekday() in numbers:
                yield day
    elif isinstance(descriptor, MonthlyDayRecurrence):
        for year, month in _months(first, bound):
            if descriptor.day_of_month <= calendar.monthrange(year, month)[1]:
                yield date(year, month, descriptor.day_of_month)
    elif isinstance(descriptor, MonthlyWeekdayRecurrence):
        for year, month in _months(first, bound):
            yield nth_weekday_of_month(
                year, month, descriptor.week_index, descriptor.weekday
            )
    elif isinstance(descriptor, YearlyRecurrence):
        for year in range(first.year, bound.year + 1):
            if anchor.month == 2 and anchor.day == 29 and not calendar.isleap(year):
                continue
            yield date(year, anchor.month, anchor.day)


def _daily(start_date: date, bound: date) -> Iterator[date]:
    day = start_date
    step = timedelta(days=1)
    while day <= bound:
        yield day
        day += step


def _months(start_date: date, bound: date) -> Iterator[tuple[int, int]]:
    first = start_date.replace(day=1)
    while first <= bound:
        yield first.year, first.month
        first += relativedelta(months=1)


def nth_weekday_of_month(year: int, month: int, index: WeekIndex, weekday: Weekday) -> date:
    """Date of the ``index``-th ``weekday`` in the given month.

    ``WeekIndex.LAST`` is the final such weekday, the 4th or 5th depending on
    the month.  The first four always exist.
    """
    dateutil_weekday = _DATEUTIL_WEEKDAYS[weekday.number]
    if index is WeekIndex.LAST:
        return date(year, month, 1) + relativedelta(day=31, weekday=dateutil_weekday(-1))
    return date(year, month, 1) + relativedelta(weekday=dateutil_weekday(index.ordinal))
