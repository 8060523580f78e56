"""
Unit tests for clock, expiry and sampling helpers
"""

import pytest

from sessionstore.core.utils import timeutils

pytestmark = pytest.mark.unit


class TestCurrentTimestamp:

    def test_rounds_up_to_whole_second(self, monkeypatch):
        monkeypatch.setattr(timeutils.time, "time", lambda: 100.2)
        assert timeutils.current_timestamp() == 101

    def test_whole_second_unchanged(self, monkeypatch):
        monkeypatch.setattr(timeutils.time, "time", lambda: 100.0)
        assert timeutils.current_timestamp() == 100


class TestGetExpireTime:

    def test_max_age_is_milliseconds(self, clock):
        assert timeutils.get_expire_time(1000, 86400) == clock.now + 1

    def test_fractional_max_age_rounds_up(self, clock):
        assert timeutils.get_expire_time(1500, 86400) == clock.now + 2

    @pytest.mark.parametrize("max_age", [None, "1000", True, float("inf"), float("-inf"), float("nan")])
    def test_unusable_max_age_uses_default(self, clock, max_age):
        assert timeutils.get_expire_time(max_age, 60) == clock.now + 60


class TestRandomInt:

    def test_stays_within_inclusive_bounds(self):
        values = {timeutils.random_int(1, 3) for _ in range(200)}
        assert values <= {1, 2, 3}

    def test_single_value_range(self):
        assert timeutils.random_int(1, 1) == 1
