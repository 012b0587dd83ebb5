"""Tests for MonotonicClock."""

from datetime import timedelta

from vigil.utils.clock import MonotonicClock, utc_now


class TestMonotonicClock:

    def test_frozen_source_still_increases(self, fake_time):
        clock = MonotonicClock(source=fake_time)
        first, second, third = clock.now(), clock.now(), clock.now()

        assert first == fake_time.current
        assert first < second < third

    def test_source_going_backwards(self, fake_time):
        clock = MonotonicClock(source=fake_time)
        before = clock.now()
        fake_time.current -= timedelta(hours=1)

        assert clock.now() > before

    def test_peek_does_not_advance(self, fake_time):
        clock = MonotonicClock(source=fake_time)
        clock.now()

        assert clock.peek() == fake_time.current
        assert clock.now() == fake_time.current + timedelta(microseconds=1)

    def test_default_source_is_aware_utc(self):
        assert utc_now().utcoffset() == timedelta(0)
        assert MonotonicClock().now().tzinfo is not None
