from datetime import date

from moafinder.events.labels import describe_recurrence, format_time_label
from moafinder.events.recurrence import (
    DailyRecurrence,
    MonthlyDayRecurrence,
    MonthlyWeekdayRecurrence,
    OnceRecurrence,
    WeeklyRecurrence,
    YearlyRecurrence,
)


def test_weekly_label_lists_days_in_week_order():
    descriptor = WeeklyRecurrence(days_of_week=frozenset({"wed", "mon"}))
    assert describe_recurrence(descriptor) == "Wöchentlich jeden Montag und Mittwoch"


def test_weekly_label_with_three_days_and_end():
    descriptor = WeeklyRecurrence(
        days_of_week=frozenset({"fri", "tue", "sat"}), repeat_until=date(2024, 7, 31)
    )
    assert (
        describe_recurrence(descriptor)
        == "Wöchentlich jeden Dienstag, Freitag und Samstag, bis 31.07.2024"
    )


def test_monthly_labels():
    assert describe_recurrence(MonthlyDayRecurrence(day_of_month=15)) == "Monatlich am 15."
    assert (
        describe_recurrence(MonthlyWeekdayRecurrence(week_index="first", weekday="fri"))
        == "Monatlich am ersten Freitag"
    )


def test_label_with_time():
    label = describe_recurrence(DailyRecurrence(), format_time_label("10:00", "12:30"))
    assert label == "Täglich, jeweils 10:00–12:30 Uhr"


def test_yearly_and_once():
    assert describe_recurrence(YearlyRecurrence()) == "Jährlich"
    assert describe_recurrence(OnceRecurrence(), "ab 18:00 Uhr") == ""


def test_time_labels():
    assert format_time_label("18:00", None) == "ab 18:00 Uhr"
    assert format_time_label(None, "20:00") == "bis 20:00 Uhr"
    assert format_time_label(None, None) is None
