"""Tests for the pure helpers in barbershop.core."""

from datetime import date, datetime, timedelta

from barbershop import core


class TestDates:
    """Calendar arithmetic."""

    def test_start_of_week_is_sunday(self):
        assert core.start_of_week(datetime(2024, 3, 6, 15, 30)) == datetime(2024, 3, 3)

    def test_start_of_week_on_sunday(self):
        assert core.start_of_week(datetime(2024, 3, 3, 9, 0)) == datetime(2024, 3, 3)

    def test_month_bounds_wraps_december(self):
        assert core.month_bounds("2024-12") == (datetime(2024, 12, 1), datetime(2025, 1, 1))

    def test_add_months_clamps_day(self):
        assert core.add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)

    def test_months_between_counts_whole_months(self):
        assert core.months_between(datetime(2024, 1, 15), datetime(2024, 3, 14)) == 1
        assert core.months_between(datetime(2024, 1, 15), datetime(2024, 3, 15)) == 2

    def test_months_between_never_negative(self):
        assert core.months_between(datetime(2024, 5, 1), datetime(2024, 1, 1)) == 0

    def test_work_days_rounds_up(self):
        assert core.work_days_since(datetime(2024, 1, 1), now=datetime(2024, 1, 3, 12)) == 3

    def test_date_range_is_inclusive_of_end_date(self):
        start, end = core.date_range(date(2024, 1, 1), date(2024, 1, 31))
        assert start == datetime(2024, 1, 1)
        assert end == datetime(2024, 2, 1)

    def test_date_range_defaults_to_thirty_days(self):
        start, end = core.date_range(None, date(2024, 1, 31))
        assert end - start == timedelta(days=30)


class TestDurationProgress:
    """Tenure towards a months-worked target."""

    def test_months_and_days(self):
        result = core.duration_progress(datetime(2024, 1, 15), 6, now=datetime(2024, 3, 20))
        assert result["total_days"] == 65
        assert result["months"] == 2
        assert result["remaining_days"] == 5
        assert result["display_text"] == "2 months, 5 days"
        assert result["required_days"] == 182
        assert result["progress_percentage"] == 36

    def test_capped_at_hundred(self):
        result = core.duration_progress(datetime(2020, 1, 1), 6, now=datetime(2024, 1, 1))
        assert result["progress_percentage"] == 100
        assert result["display_text"].startswith("4 years")

    def test_first_day(self):
        result = core.duration_progress(datetime(2024, 1, 1, 10), 1, now=datetime(2024, 1, 1, 18))
        assert result["display_text"] == "0 days"
        assert result["progress_percentage"] == 0


class TestPercentages:
    def test_progress_percentage_caps(self):
        assert core.progress_percentage(3, 10) == 30
        assert core.progress_percentage(15, 10) == 100

    def test_progress_percentage_zero_target(self):
        assert core.progress_percentage(0, 0) == 100

    def test_growth_percentage(self):
        assert core.growth_percentage(150, 100) == 50.0
        assert core.growth_percentage(50, 100) == -50.0

    def test_growth_from_zero_is_hundred(self):
        assert core.growth_percentage(5, 0) == 100.0

    def test_revenue_trend(self):
        assert core.revenue_trend(106, 100) == "up"
        assert core.revenue_trend(94, 100) == "down"
        assert core.revenue_trend(103, 100) == "stable"
        assert core.revenue_trend(500, None) == "stable"


class TestLeaderboardScoring:
    def test_score_weights(self):
        assert core.leaderboard_score(10, 5, 2, 50, 1) == 115

    def test_badges(self):
        assert core.barber_badges(12, 100, 0, 80, 0) == ["👑", "🥈", "⭐"]

    def test_badges_limited_to_four(self):
        assert len(core.barber_badges(12, 1000, 200, 90, 5)) == 4


class TestRewards:
    def test_reward_expiry(self):
        assert core.reward_expiry(datetime(2024, 1, 1), 10) == datetime(2024, 1, 11)
        assert core.reward_expiry(datetime(2024, 1, 1), None) is None

    def test_is_expired(self):
        start = datetime(2024, 1, 1)
        assert core.is_expired(start, 10, now=datetime(2024, 1, 12))
        assert not core.is_expired(start, 10, now=datetime(2024, 1, 10))
        assert not core.is_expired(start, None, now=datetime(2030, 1, 1))

    def test_discounted_price(self):
        assert core.discounted_price(40, "discount", 25) == 30
        assert core.discounted_price(40, "free", None) == 0


class TestClientHelpers:
    def test_phone_query(self):
        assert core.is_phone_query("+1 (555) 123-4567")
        assert not core.is_phone_query("John")

    def test_strip_phone(self):
        assert core.strip_phone("+1 (555) 123-4567") == "15551234567"

    def test_client_code_format(self):
        code = core.generate_client_code()
        assert code.startswith("C")
        assert len(code) == 9
        assert code[1:].isdigit()

    def test_generated_password_length(self):
        assert len(core.generate_password()) == 12


class TestReporting:
    def test_visit_frequency_buckets(self):
        assert [core.visit_frequency_bucket(n) for n in (1, 3, 4, 10, 11)] == ["1", "2-3", "4-6", "7-10", "11+"]

    def test_period_keys(self):
        dt = datetime(2024, 3, 5, 14, 0)
        assert core.period_key(dt, "daily") == "2024-03-05"
        assert core.period_key(dt, "weekly") == "2024-W10"
        assert core.period_key(dt, "monthly") == "2024-03"

    def test_pagination(self):
        assert core.pagination(45, 2, 10) == {"total": 45, "page": 2, "limit": 10, "pages": 5}
