from datetime import date, timedelta

import pytest

from moafinder.core.exceptions import ValidationError
from moafinder.events.recurrence import (
    DailyRecurrence,
    EventType,
    InvalidDescriptor,
    MonthlyDayRecurrence,
    MonthlyMode,
    MonthlyWeekdayRecurrence,
    OnceRecurrence,
    WeekIndex,
    Weekday,
    WeeklyRecurrence,
    YearlyRecurrence,
    compute_expiry_date,
    descriptor_from_fields,
    descriptor_to_fields,
    next_occurrence,
    nth_weekday_of_month,
    occurrences_between,
    resolve_occurrences,
)


def test_once_yields_start_date():
    start = date(2024, 3, 5)
    assert list(resolve_occurrences(start, OnceRecurrence(), date(2024, 12, 31))) == [start]


def test_once_after_horizon_is_empty():
    start = date(2024, 3, 5)
    assert list(resolve_occurrences(start, OnceRecurrence(), date(2024, 3, 4))) == []


def test_daily_covers_full_range():
    start = date(2024, 1, 30)
    horizon = date(2024, 2, 5)
    dates = list(resolve_occurrences(start, DailyRecurrence(), horizon))
    assert len(dates) == (horizon - start).days + 1
    assert dates[0] == start
    assert dates[-1] == horizon
    assert all(b - a == timedelta(days=1) for a, b in zip(dates, dates[1:]))


def test_daily_stops_at_repeat_until():
    descriptor = DailyRecurrence(repeat_until=date(2024, 1, 3))
    dates = list(resolve_occurrences(date(2024, 1, 1), descriptor, date(2024, 1, 31)))
    assert dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]


def test_weekly_monday_and_wednesday():
    descriptor = WeeklyRecurrence(days_of_week=frozenset({Weekday.MON, Weekday.WED}))
    dates = list(resolve_occurrences(date(2024, 1, 1), descriptor, date(2024, 1, 15)))
    assert dates == [
        date(2024, 1, 1),
        date(2024, 1, 3),
        date(2024, 1, 8),
        date(2024, 1, 10),
        date(2024, 1, 15),
    ]


def test_weekly_accepts_string_tokens():
    descriptor = WeeklyRecurrence(days_of_week=frozenset({"fri"}))
    assert descriptor.days_of_week == frozenset({Weekday.FRI})


def test_weekly_without_days_is_invalid():
    with pytest.raises(InvalidDescriptor):
        WeeklyRecurrence(days_of_week=frozenset())


def test_monthly_day_31_skips_short_months():
    descriptor = MonthlyDayRecurrence(day_of_month=31)
    dates = list(resolve_occurrences(date(2024, 1, 1), descriptor, date(2024, 4, 30)))
    assert dates == [date(2024, 1, 31), date(2024, 3, 31)]


def test_monthly_day_before_start_in_first_month_is_skipped():
    descriptor = MonthlyDayRecurrence(day_of_month=10)
    dates = list(resolve_occurrences(date(2024, 1, 15), descriptor, date(2024, 3, 31)))
    assert dates == [date(2024, 2, 10), date(2024, 3, 10)]


@pytest.mark.parametrize("day", [0, 32, True])
def test_monthly_day_out_of_range(day):
    with pytest.raises(InvalidDescriptor):
        MonthlyDayRecurrence(day_of_month=day)


def test_last_friday_of_february_2024():
    descriptor = MonthlyWeekdayRecurrence(week_index=WeekIndex.LAST, weekday=Weekday.FRI)
    dates = list(resolve_occurrences(date(2024, 2, 1), descriptor, date(2024, 2, 29)))
    assert dates == [date(2024, 2, 23)]


def test_nth_weekday_of_month():
    assert nth_weekday_of_month(2024, 1, WeekIndex.FIRST, Weekday.MON) == date(2024, 1, 1)
    assert nth_weekday_of_month(2024, 1, WeekIndex.SECOND, Weekday.TUE) == date(2024, 1, 9)
    assert nth_weekday_of_month(2024, 3, WeekIndex.FOURTH, Weekday.SUN) == date(2024, 3, 24)
    # March 2024 has five Fridays.
    assert nth_weekday_of_month(2024, 3, WeekIndex.LAST, Weekday.FRI) == date(2024, 3, 29)


def test_yearly_on_leap_day_skips_common_years():
    start = date(2020, 2, 29)
    descriptor = YearlyRecurrence()
    assert list(resolve_occurrences(start, descriptor, date(2023, 12, 31))) == [start]
    assert list(resolve_occurrences(start, descriptor, date(2024, 12, 31))) == [
        start,
        date(2024, 2, 29),
    ]


def test_yearly_same_month_and_day():
    dates = list(resolve_occurrences(date(2022, 6, 21), YearlyRecurrence(), date(2024, 6, 20)))
    assert dates == [date(2022, 6, 21), date(2023, 6, 21)]


@pytest.mark.parametrize(
    "descriptor",
    [
        OnceRecurrence(),
        DailyRecurrence(repeat_until=date(2024, 2, 10)),
        WeeklyRecurrence(days_of_week=frozenset({Weekday.SAT, Weekday.TUE})),
        MonthlyDayRecurrence(day_of_month=30, repeat_until=date(2024, 9, 1)),
        MonthlyWeekdayRecurrence(week_index=WeekIndex.THIRD, weekday=Weekday.THU),
        YearlyRecurrence(),
    ],
)
def test_occurrences_stay_in_bounds_and_ascend(descriptor):
    start = date(2024, 1, 17)
    horizon = date(2025, 6, 30)
    upper = min(horizon, descriptor.repeat_until or horizon)
    dates = list(resolve_occurrences(start, descriptor, horizon))
    assert all(start <= day <= upper for day in dates)
    assert dates == sorted(set(dates))


def test_occurrences_are_restartable():
    descriptor = WeeklyRecurrence(days_of_week=frozenset({Weekday.TUE, Weekday.THU}))
    occurrences = resolve_occurrences(date(2024, 1, 1), descriptor, date(2024, 3, 1))
    first = list(occurrences)
    assert first
    assert list(occurrences) == first
    assert list(resolve_occurrences(date(2024, 1, 1), descriptor, date(2024, 3, 1))) == first


def test_horizon_before_start_is_empty():
    assert list(resolve_occurrences(date(2024, 5, 1), DailyRecurrence(), date(2024, 4, 1))) == []


def test_unknown_descriptor_is_rejected():
    with pytest.raises(InvalidDescriptor):
        resolve_occurrences(date(2024, 1, 1), object(), date(2024, 2, 1))


def test_invalid_descriptor_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        WeeklyRecurrence(days_of_week=frozenset())
    assert exc_info.value.code == "INVALID_RECURRENCE"
    assert exc_info.value.status_code == 422
    assert exc_info.value.details == {"field": "days_of_week"}


def test_occurrences_between_window():
    dates = list(
        occurrences_between(
            date(2024, 1, 1), DailyRecurrence(), date(2024, 1, 10), date(2024, 1, 12)
        )
    )
    assert dates == [date(2024, 1, 10), date(2024, 1, 11), date(2024, 1, 12)]


@pytest.mark.parametrize(
    "descriptor",
    [
        DailyRecurrence(),
        WeeklyRecurrence(days_of_week=frozenset({"tue", "sat"})),
        MonthlyDayRecurrence(day_of_month=31),
        MonthlyWeekdayRecurrence(week_index="last", weekday="fri"),
        YearlyRecurrence(),
    ],
)
def test_window_matches_full_resolution(descriptor):
    anchor = date(2016, 2, 29)
    window_start, window_end = date(2024, 2, 10), date(2025, 3, 20)
    expected = [
        day
        for day in resolve_occurrences(anchor, descriptor, window_end)
        if day >= window_start
    ]
    assert list(occurrences_between(anchor, descriptor, window_start, window_end)) == expected


def test_window_generation_skips_event_history(monkeypatch):
    from moafinder.events import recurrence

    starts = []
    original = recurrence._daily

    def spy(start_date, bound):
        starts.append(start_date)
        return original(start_date, bound)

    monkeypatch.setattr(recurrence, "_daily", spy)
    descriptor = WeeklyRecurrence(days_of_week=frozenset({"mon"}))
    dates = list(
        occurrences_between(date(1990, 1, 1), descriptor, date(2024, 1, 1), date(2024, 1, 14))
    )
    assert dates == [date(2024, 1, 1), date(2024, 1, 8)]
    assert starts == [date(2024, 1, 1)]


def test_next_occurrence():
    descriptor = MonthlyDayRecurrence(day_of_month=15)
    assert next_occurrence(
        date(2024, 1, 1), descriptor, date(2024, 2, 16), date(2024, 12, 31)
    ) == date(2024, 3, 15)
    assert next_occurrence(
        date(2024, 1, 1), descriptor, date(2024, 2, 16), date(2024, 3, 1)
    ) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("once", EventType.ONCE),
        ("einmalig", EventType.ONCE),
        ("täglich", EventType.DAILY),
        ("Wöchentlich", EventType.WEEKLY),
        ("monatlich", EventType.MONTHLY),
        ("jährlich", EventType.YEARLY),
    ],
)
def test_event_type_aliases(value, expected):
    assert EventType(value) is expected


def test_unknown_event_type():
    with pytest.raises(ValueError):
        EventType("fortnightly")


class TestDescriptorFromFields:
    def test_ignores_fields_of_other_types(self):
        descriptor = descriptor_from_fields(
            "daily", days_of_week=["mon"], monthly_day_of_month=3
        )
        assert descriptor == DailyRecurrence()

    def test_weekly(self):
        descriptor = descriptor_from_fields(
            "wöchentlich", days_of_week=["wed", "mon"], repeat_until=date(2024, 6, 1)
        )
        assert descriptor == WeeklyRecurrence(
            days_of_week=frozenset({Weekday.MON, Weekday.WED}),
            repeat_until=date(2024, 6, 1),
        )

    def test_weekly_without_days(self):
        with pytest.raises(InvalidDescriptor):
            descriptor_from_fields(EventType.WEEKLY, days_of_week=[])

    def test_monthly_without_mode(self):
        with pytest.raises(InvalidDescriptor):
            descriptor_from_fields(EventType.MONTHLY, monthly_day_of_month=5)

    def test_monthly_day(self):
        descriptor = descriptor_from_fields(
            EventType.MONTHLY, monthly_mode="dayOfMonth", monthly_day_of_month=5
        )
        assert descriptor == MonthlyDayRecurrence(day_of_month=5)

    def test_monthly_day_missing_day(self):
        with pytest.raises(InvalidDescriptor):
            descriptor_from_fields(EventType.MONTHLY, monthly_mode=MonthlyMode.DAY_OF_MONTH)

    def test_nth_weekday_without_weekday(self):
        with pytest.raises(InvalidDescriptor):
            descriptor_from_fields(
                EventType.MONTHLY,
                monthly_mode=MonthlyMode.NTH_WEEKDAY,
                monthly_week_index=WeekIndex.FIRST,
            )

    def test_unknown_week_index(self):
        with pytest.raises(InvalidDescriptor):
            descriptor_from_fields(
                EventType.MONTHLY,
                monthly_mode="nthWeekday",
                monthly_week_index="fifth",
                monthly_weekday="mon",
            )

    def test_fields_of_nth_weekday(self):
        descriptor = MonthlyWeekdayRecurrence(week_index="last", weekday="fri")
        fields = descriptor_to_fields(descriptor)
        assert fields["event_type"] is EventType.MONTHLY
        assert fields["monthly_mode"] is MonthlyMode.NTH_WEEKDAY
        assert fields["monthly_week_index"] is WeekIndex.LAST
        assert fields["monthly_weekday"] is Weekday.FRI
        assert fields["days_of_week"] is None
        assert descriptor_from_fields(**fields) == descriptor

    def test_weekly_fields_are_ordered(self):
        descriptor = WeeklyRecurrence(days_of_week=frozenset({"sun", "mon", "thu"}))
        assert descriptor_to_fields(descriptor)["days_of_week"] == ["mon", "thu", "sun"]


def test_expiry_prefers_repeat_until_then_end_date():
    start = date(2024, 1, 1)
    end = date(2024, 1, 2)
    until = date(2024, 6, 30)
    assert compute_expiry_date(start, end, until) == until
    assert compute_expiry_date(start, end) == end
    assert compute_expiry_date(start) == start
