"""Unit tests for the operating-day clock."""

from datetime import UTC, date, datetime, timedelta

import pytest

from food_stand_service.services.operating_day import (
    OperatingDayClock,
    next_reset,
    operating_day_window,
)

# No DST since 2022; always UTC-6
MEXICO_CITY = "America/Mexico_City"


@pytest.mark.unit
class TestOperatingDayWindow:
    """Test suite for operating_day_window."""

    def test_midnight_start_in_utc_minus_six(self) -> None:
        # 05:59 local on March 15
        now = datetime(2024, 3, 15, 11, 59, tzinfo=UTC)

        window = operating_day_window(now, MEXICO_CITY, 0)

        assert window.window_start_utc == datetime(2024, 3, 15, 6, 0, tzinfo=UTC)
        assert window.window_end_utc == datetime(2024, 3, 16, 6, 0, tzinfo=UTC)
        assert window.operating_day_date == date(2024, 3, 15)

    def test_just_after_local_midnight_starts_new_day(self) -> None:
        now = datetime(2024, 3, 16, 6, 0, 0, 1000, tzinfo=UTC)

        window = operating_day_window(now, MEXICO_CITY, 0)

        assert window.operating_day_date == date(2024, 3, 16)
        assert window.window_start_utc == datetime(2024, 3, 16, 6, 0, tzinfo=UTC)

    def test_before_start_hour_belongs_to_previous_day(self) -> None:
        # 03:00 local, day starts at 06:00
        now = datetime(2024, 3, 15, 9, 0, tzinfo=UTC)

        window = operating_day_window(now, MEXICO_CITY, 6)

        assert window.operating_day_date == date(2024, 3, 14)
        assert window.window_start_utc == datetime(2024, 3, 14, 12, 0, tzinfo=UTC)
        assert window.window_end_utc == datetime(2024, 3, 15, 12, 0, tzinfo=UTC)

    def test_window_is_half_open(self) -> None:
        start = datetime(2024, 3, 15, 6, 0, tzinfo=UTC)
        window = operating_day_window(start, MEXICO_CITY, 0)

        for instant in (start, start + timedelta(hours=12), window.window_end_utc - timedelta(microseconds=1)):
            assert operating_day_window(instant, MEXICO_CITY, 0) == window
            assert window.contains(instant)

        assert not window.contains(window.window_end_utc)
        following = operating_day_window(window.window_end_utc, MEXICO_CITY, 0)
        assert following.window_start_utc == window.window_end_utc
        assert following.operating_day_date == date(2024, 3, 16)

    def test_dst_day_spans_local_day(self) -> None:
        # US spring forward: March 10, 2024 is 23 hours long in New York
        now = datetime(2024, 3, 10, 16, 0, tzinfo=UTC)

        window = operating_day_window(now, "America/New_York", 0)

        assert window.window_end_utc - window.window_start_utc == timedelta(hours=23)

    def test_rejects_naive_datetime(self) -> None:
        with pytest.raises(ValueError):
            operating_day_window(datetime(2024, 3, 15, 12, 0), MEXICO_CITY, 0)

    @pytest.mark.parametrize("start_hour", [-1, 24])
    def test_rejects_out_of_range_start_hour(self, start_hour: int) -> None:
        with pytest.raises(ValueError):
            operating_day_window(datetime(2024, 3, 15, 12, 0, tzinfo=UTC), MEXICO_CITY, start_hour)


@pytest.mark.unit
class TestNextReset:
    """Test suite for next_reset."""

    def test_next_midnight_with_remaining_time(self) -> None:
        # 22:30 local
        now = datetime(2024, 3, 16, 4, 30, tzinfo=UTC)

        reset = next_reset(now, MEXICO_CITY, 0)

        assert reset.next_reset_utc == datetime(2024, 3, 16, 6, 0, tzinfo=UTC)
        assert reset.hours == 1
        assert reset.minutes == 30

    def test_exactly_at_start_hour_moves_to_tomorrow(self) -> None:
        now = datetime(2024, 3, 15, 6, 0, tzinfo=UTC)

        reset = next_reset(now, MEXICO_CITY, 0)

        assert reset.next_reset_utc == datetime(2024, 3, 16, 6, 0, tzinfo=UTC)
        assert reset.hours == 24
        assert reset.minutes == 0

    def test_before_start_hour_resets_today(self) -> None:
        # 03:00 local, day starts at 06:00
        now = datetime(2024, 3, 15, 9, 0, tzinfo=UTC)

        reset = next_reset(now, MEXICO_CITY, 6)

        assert reset.next_reset_utc == datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
        assert reset.remaining == timedelta(hours=3)


@pytest.mark.unit
class TestOperatingDayClock:
    """Test suite for OperatingDayClock."""

    @pytest.fixture
    def friday_clock(self) -> OperatingDayClock:
        # Friday 2024-03-15 12:00 local
        return OperatingDayClock(
            timezone=MEXICO_CITY,
            start_hour=0,
            now_provider=lambda: datetime(2024, 3, 15, 18, 0, tzinfo=UTC),
        )

    def test_current_window_uses_now_provider(self, friday_clock: OperatingDayClock) -> None:
        assert friday_clock.current_window().operating_day_date == date(2024, 3, 15)

    def test_week_starts_on_sunday(self, friday_clock: OperatingDayClock) -> None:
        window = friday_clock.week_window()

        assert window.local_window_start.date() == date(2024, 3, 10)
        assert window.window_start_utc == datetime(2024, 3, 10, 6, 0, tzinfo=UTC)
        assert window.window_end_utc == datetime(2024, 3, 17, 6, 0, tzinfo=UTC)

    def test_week_window_on_sunday_starts_that_day(self, friday_clock: OperatingDayClock) -> None:
        sunday = datetime(2024, 3, 17, 18, 0, tzinfo=UTC)
        assert friday_clock.week_window(sunday).local_window_start.date() == date(2024, 3, 17)

    def test_month_window(self, friday_clock: OperatingDayClock) -> None:
        window = friday_clock.month_window()

        assert window.window_start_utc == datetime(2024, 3, 1, 6, 0, tzinfo=UTC)
        assert window.window_end_utc == datetime(2024, 4, 1, 6, 0, tzinfo=UTC)

    def test_december_month_window_ends_in_january(self, friday_clock: OperatingDayClock) -> None:
        window = friday_clock.month_window(datetime(2024, 12, 20, 18, 0, tzinfo=UTC))
        assert window.local_window_end.date() == date(2025, 1, 1)

    def test_contains(self, friday_clock: OperatingDayClock) -> None:
        assert friday_clock.contains(datetime(2024, 3, 15, 6, 0, tzinfo=UTC))
        assert not friday_clock.contains(datetime(2024, 3, 15, 5, 59, tzinfo=UTC))

    def test_debug_info(self, friday_clock: OperatingDayClock) -> None:
        info = friday_clock.debug_info()

        assert info["timezone"] == MEXICO_CITY
        assert info["start_hour"] == 0
        assert info["current_window"]["operating_day_date"] == "2024-03-15"
        assert info["next_reset"]["hours"] == 12

    def test_unknown_timezone_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            OperatingDayClock(timezone="Mars/Olympus_Mons")

    def test_invalid_start_hour_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            OperatingDayClock(timezone=MEXICO_CITY, start_hour=25)
