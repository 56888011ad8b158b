from datetime import date, datetime, timedelta

import pytest

from rules.enums import DomesticPaymentDay, InternationalPaymentDay, parse_payment_day
from rules.payment_date_resolver import last_business_day, resolve_payment_date


class TestParsePaymentDay:

    def test_domestic_days(self):
        assert parse_payment_day(5, True) == DomesticPaymentDay.DAY_5
        assert parse_payment_day("25", True) == DomesticPaymentDay.DAY_25
        assert parse_payment_day(10, True) is None

    def test_international_days(self):
        assert parse_payment_day(20, False) == InternationalPaymentDay.DAY_20
        assert parse_payment_day("last", False) == InternationalPaymentDay.LAST_BUSINESS_DAY
        assert parse_payment_day(15, False) is None

    def test_last_business_day_is_not_domestic(self):
        assert parse_payment_day(InternationalPaymentDay.LAST_BUSINESS_DAY, True) is None
        assert parse_payment_day("last-business-day", True) is None

    def test_garbage(self):
        assert parse_payment_day("soon", True) is None
        assert parse_payment_day(None, False) is None


class TestLastBusinessDay:

    def test_weekday_month_end(self):
        assert last_business_day(2024, 1) == date(2024, 1, 31)

    def test_sunday_moves_to_friday(self):
        assert last_business_day(2024, 3) == date(2024, 3, 29)

    def test_saturday_moves_to_friday(self):
        assert last_business_day(2024, 8) == date(2024, 8, 30)


class TestResolvePaymentDate:

    def test_too_close_rolls_to_next_month(self):
        resolved = resolve_payment_date(date(2024, 1, 20), 15, 10, is_domestic=True)
        assert resolved.date == date(2024, 2, 15)
        assert resolved.requested_date == date(2024, 1, 15)
        assert resolved.is_adjusted is True
        assert resolved.is_next_month is True
        assert resolved.days_until == 26

    def test_same_month_when_far_enough(self):
        resolved = resolve_payment_date(date(2024, 1, 2), 15, 10, is_domestic=True)
        assert resolved.date == date(2024, 1, 15)
        assert resolved.is_adjusted is False
        assert resolved.is_next_month is False
        assert resolved.days_until == 13

    def test_exact_minimum_advance_is_accepted(self):
        resolved = resolve_payment_date(date(2024, 1, 5), 15, 10, is_domestic=True)
        assert resolved.date == date(2024, 1, 15)
        assert resolved.is_adjusted is False

    def test_zero_advance_allows_today(self):
        resolved = resolve_payment_date(date(2024, 1, 15), 15, 0, is_domestic=True)
        assert resolved.date == date(2024, 1, 15)
        assert resolved.days_until == 0

    def test_datetime_open_date(self):
        resolved = resolve_payment_date(datetime(2024, 1, 20, 23, 59), DomesticPaymentDay.DAY_25, 10)
        assert resolved.date == date(2024, 2, 25)

    def test_international_last_business_day(self):
        resolved = resolve_payment_date(date(2024, 3, 25), "last-business-day", 10, is_domestic=False)
        assert resolved.date == date(2024, 4, 30)
        assert resolved.requested_date == date(2024, 3, 29)
        assert resolved.is_adjusted is True

    def test_rolls_over_year_end(self):
        resolved = resolve_payment_date(date(2024, 12, 20), 5, 10, is_domestic=True)
        assert resolved.date == date(2025, 1, 5)
        assert resolved.is_next_month is True

    def test_illegal_day_for_scope(self):
        assert resolve_payment_date(date(2024, 1, 2), 10, 10, is_domestic=True) is None
        assert resolve_payment_date(date(2024, 1, 2), 5, 10, is_domestic=False) is None

    def test_outside_window_bypasses_resolution(self):
        assert resolve_payment_date(date(2024, 1, 2), 15, 10, is_outside_window=True) is None

    @pytest.mark.parametrize("is_domestic", [True, False])
    def test_never_before_minimum_advance(self, is_domestic):
        days = [5, 15, 25] if is_domestic else [10, 20, "last-business-day"]
        start = date(2024, 1, 1)
        for offset in range(0, 366, 7):
            opened = start + timedelta(days=offset)
            for day in days:
                resolved = resolve_payment_date(opened, day, 10, is_domestic=is_domestic)
                assert resolved.date >= opened + timedelta(days=10)
                assert resolved.days_until == (resolved.date - opened).days

    def test_last_business_day_never_on_weekend(self):
        start = date(2024, 1, 1)
        for offset in range(0, 730, 5):
            resolved = resolve_payment_date(start + timedelta(days=offset), "last", 10, is_domestic=False)
            assert resolved.date.weekday() < 5
