"""Tests for the elapsed-time counter."""

import pytest

from core.catalog.types import ContentUnit
from core.progress.types import ProgressRecord
from core.session.counter import CounterNotOpenError, ElapsedTimeCounter, percent_for


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


COURSE = ContentUnit(
    id="c1",
    title="Course 1",
    formation_id="f1",
    module_id="m1",
    chapter_id="ch1",
    duration_s=600,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter(clock):
    return ElapsedTimeCounter(COURSE, clock=clock, default_duration_s=3600)


def test_percent_for():
    assert percent_for(300, 600) == 50.0
    assert percent_for(900, 600) == 100.0
    assert percent_for(10, 0) == 0.0


class TestOpen:
    def test_resumes_from_persisted_time(self, counter):
        counter.open(ProgressRecord(time_spent_s=120, percent_complete=20.0, last_position_s=120))

        assert counter.elapsed_seconds() == 120
        assert counter.snapshot().time_spent_s == 120

    def test_starts_from_zero_without_record(self, counter, clock):
        counter.open(None)
        clock.advance(5)
        assert counter.elapsed_seconds() == 5

    def test_read_before_open_raises(self, counter):
        with pytest.raises(CounterNotOpenError):
            counter.elapsed_seconds()

    def test_default_duration_when_unknown(self, clock):
        course = ContentUnit(id="c2", title="C2", formation_id="f1", module_id="m1", chapter_id="ch1")
        counter = ElapsedTimeCounter(course, clock=clock, default_duration_s=3600)
        counter.open()
        clock.advance(360)

        assert counter.duration_s == 3600
        assert counter.snapshot().percent_complete == 10.0


class TestPause:
    def test_paused_interval_is_excluded(self, counter, clock):
        counter.open()
        clock.advance(10)
        counter.pause()
        clock.advance(20)
        counter.resume()
        clock.advance(5)

        assert counter.elapsed_seconds() == 15

    def test_elapsed_frozen_while_paused(self, counter, clock):
        counter.open()
        clock.advance(10)
        counter.pause()
        clock.advance(100)

        assert counter.elapsed_seconds() == 10
        assert counter.tick() is None

    def test_repeated_pause_and_resume_shift_once(self, counter, clock):
        counter.open()
        clock.advance(10)
        counter.pause()
        clock.advance(5)
        counter.pause()
        clock.advance(15)
        counter.resume()
        clock.advance(10)
        counter.resume()
        clock.advance(5)

        assert counter.elapsed_seconds() == 25

    def test_several_cycles(self, counter, clock):
        counter.open()
        for _ in range(3):
            clock.advance(10)
            counter.pause()
            clock.advance(60)
            counter.resume()

        assert counter.elapsed_seconds() == 30


class TestRecord:
    def test_time_spent_never_decreases_across_ticks(self, counter, clock):
        counter.open()
        previous = 0
        for step in (1, 3, 0, 7, 2):
            clock.advance(step)
            record = counter.tick()
            assert record.time_spent_s >= previous
            previous = record.time_spent_s

    def test_position_report_reanchors(self, counter, clock):
        counter.open()
        clock.advance(60)
        counter.report_position(200)

        assert counter.elapsed_seconds() == 200
        clock.advance(10)
        assert counter.tick().last_position_s == 210

    def test_backwards_seek_keeps_time_spent(self, counter, clock):
        counter.open()
        clock.advance(60)
        counter.tick()
        counter.report_position(5)

        record = counter.snapshot()
        assert record.time_spent_s == 60
        assert record.last_position_s == 5
        assert record.percent_complete == 10.0

    def test_position_report_while_paused(self, counter, clock):
        counter.open()
        clock.advance(30)
        counter.pause()
        counter.report_position(100)
        clock.advance(50)
        counter.resume()
        clock.advance(5)

        assert counter.elapsed_seconds() == 105

    def test_close_freezes_record(self, counter, clock):
        counter.open(ProgressRecord(time_spent_s=100, percent_complete=16.0, last_position_s=100))
        clock.advance(20)
        final = counter.close()
        clock.advance(500)

        assert final.time_spent_s == 120
        assert final.updated_at is not None
        assert counter.tick() is None
        assert counter.snapshot() == final

    def test_snapshot_is_a_copy(self, counter, clock):
        counter.open()
        clock.advance(10)
        record = counter.snapshot()
        record.time_spent_s = 0

        assert counter.snapshot().time_spent_s == 10


class TestBackdatedPause:
    def test_pause_at_earlier_instant(self, counter, clock):
        counter.open()
        clock.advance(100)
        counter.pause(at=clock.now - 40)

        assert counter.elapsed_seconds() == 60

    def test_pause_never_in_the_future(self, counter, clock):
        counter.open()
        clock.advance(10)
        counter.pause(at=clock.now + 50)

        assert counter.elapsed_seconds() == 10

    def test_resume_after_backdated_pause_excludes_idle_time(self, counter, clock):
        counter.open()
        clock.advance(100)
        counter.pause(at=clock.now - 40)
        counter.resume()
        clock.advance(5)

        assert counter.elapsed_seconds() == 65
