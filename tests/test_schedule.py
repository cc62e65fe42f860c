"""Tests for timed material schedules."""

import pytest

from py_parkour.core.generators import BlinkBlocksGenerator
from py_parkour.core.materials import Material
from py_parkour.core.schedule import MaterialVariant, TimedMaterialSchedule

A = MaterialVariant.block(Material("a"))
B = MaterialVariant.block(Material("b"))


class TestTimedMaterialSchedule:
    """Test schedule queries and construction errors."""

    def test_two_phase_schedule(self):
        """Test basic lookup across two phases."""
        schedule = TimedMaterialSchedule([(A, 25), (B, 25)])

        for tick in range(25):
            assert schedule.query(tick) == A
        for tick in range(25, 50):
            assert schedule.query(tick) == B

    def test_periodicity(self):
        """Test that the schedule repeats every cycle."""
        schedule = TimedMaterialSchedule([(A, 25), (B, 25)])

        for tick in range(500):
            assert schedule.query(tick) == schedule.query(tick + 50)

    def test_offset_shifts_phase(self):
        """Test that an offset shifts the phase."""
        schedule = TimedMaterialSchedule([(A, 25), (B, 25)], offset=10)

        assert schedule.query(14) == A
        assert schedule.query(15) == B
        assert schedule.query(40) == A

    def test_zero_duration_entry_is_skipped(self):
        """Test that zero-length entries are never shown."""
        schedule = TimedMaterialSchedule([(A, 0), (B, 5)])
        assert all(schedule.query(tick) == B for tick in range(10))

    def test_empty_schedule(self):
        """Test that an empty schedule is rejected."""
        with pytest.raises(ValueError):
            TimedMaterialSchedule([])

    def test_zero_total_duration(self):
        """Test that a schedule of zero total length is rejected."""
        with pytest.raises(ValueError):
            TimedMaterialSchedule([(A, 0), (B, 0)])

    def test_negative_duration(self):
        """Test that negative durations are rejected."""
        with pytest.raises(ValueError):
            TimedMaterialSchedule([(A, -5), (B, 10)])

    def test_small_variant_is_not_solid(self):
        """Test that the small variant of a pad is not solid."""
        assert not MaterialVariant.small(Material("a")).solid
        assert MaterialVariant.block(Material("a")).solid


class TestBlinkSchedules:
    """Blinking pads overlap so one is always solid."""

    def test_one_pad_always_solid(self, built_palette):
        """Test that one pad of a pair is solid at every tick."""
        generator = BlinkBlocksGenerator("on", "off", delay=60, overlap=10)
        on = generator.on_schedule(built_palette)
        off = generator.off_schedule(built_palette)

        assert on.total_duration == off.total_duration == 140
        for tick in range(280):
            assert on.query(tick).solid or off.query(tick).solid

    def test_both_solid_during_overlap(self, built_palette):
        """Test that both pads are solid while they overlap."""
        generator = BlinkBlocksGenerator("on", "off", delay=60, overlap=10)
        on = generator.on_schedule(built_palette)
        off = generator.off_schedule(built_palette)

        both = [tick for tick in range(140) if on.query(tick).solid and off.query(tick).solid]
        assert both == list(range(60, 70)) + list(range(130, 140))
