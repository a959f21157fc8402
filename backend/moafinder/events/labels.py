"""German display labels for event schedules, as shown on event cards."""

from __future__ import annotations

from datetime import date

from moafinder.events.recurrence import (
    DailyRecurrence,
    MonthlyDayRecurrence,
    MonthlyWeekdayRecurrence,
    RecurrenceDescriptor,
    WeekIndex,
    Weekday,
    WeeklyRecurrence,
    YearlyRecurrence,
)

WEEKDAY_NAMES = {
    Weekday.MON: "Montag",
    Weekday.TUE: "Dienstag",
    Weekday.WED: "Mittwoch",
    Weekday.THU: "Donnerstag",
    Weekday.FRI: "Freitag",
    Weekday.SAT: "Samstag",
    Weekday.SUN: "Sonntag",
}

WEEK_INDEX_NAMES = {
    WeekIndex.FIRST: "ersten",
    WeekIndex.SECOND: "zweiten",
    WeekIndex.THIRD: "dritten",
    WeekIndex.FOURTH: "vierten",
    WeekIndex.LAST: "letzten",
}


def format_date(value: date) -> str:
    return value.strftime("%d.%m.%Y")


def format_time_label(time_from: str | None, time_to: str | None) -> str | None:
    if time_from and time_to:
        return f"{time_from}–{time_to} Uhr"
    if time_from:
        return f"ab {time_from} Uhr"
    if time_to:
        return f"bis {time_to} Uhr"
    return None


def _join_names(names: list[str]) -> str:
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])} und {names[-1]}"


def describe_recurrence(
    descriptor: RecurrenceDescriptor, time_label: str | None = None
) -> str:
    """Human readable schedule, e.g. ``Wöchentlich jeden Montag und Mittwoch``.

    One-off events get an empty label.
    """
    if isinstance(descriptor, DailyRecurrence):
        head = "Täglich"
    elif isinstance(descriptor, WeeklyRecurrence):
        names = [WEEKDAY_NAMES[day] for day in descriptor.ordered_days]
        head = f"Wöchentlich jeden {_join_names(names)}"
    elif isinstance(descriptor, MonthlyDayRecurrence):
        head = f"Monatlich am {descriptor.day_of_month}."
    elif isinstance(descriptor, MonthlyWeekdayRecurrence):
        head = (
            f"Monatlich am {WEEK_INDEX_NAMES[descriptor.week_index]} "
            f"{WEEKDAY_NAMES[descriptor.weekday]}"
        )
    elif isinstance(descriptor, YearlyRecurrence):
        head = "Jährlich"
    else:
        return ""

    parts = [head]
    if time_label:
        parts.append(f"jeweils {time_label}")
    if descriptor.repeat_until is not None:
        parts.append(f"bis {format_date(descriptor.repeat_until)}")
    return ", ".join(parts)
