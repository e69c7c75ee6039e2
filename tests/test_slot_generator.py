"""
Tests for slot generation.
"""

import pendulum

from builders import EVERY_DAY, at, availability, host, interval, nine_to_five
from slotengine.domain.models import DateOverride, WorkingHours
from slotengine.domain.slot_generator import SlotGenerator, generate_slots
from slotengine.domain.working_hours import aggregate_working_hours

NOW = pendulum.parse("2023-12-31 00:00")


def _generator(*schedules, force_utc=False) -> SlotGenerator:
    return SlotGenerator(aggregate_working_hours(list(schedules), force_utc=force_utc))


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def test_full_day_of_half_hour_slots(self):
        """09:00-17:00 every day, 30 minute slots -> 16 slots."""
        generator = _generator((host(1), availability()))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=30,
            frequency=30,
            now=NOW,
        )

        assert len(slots) == 16
        assert slots[0].time == at("2024-01-01 09:00")
        assert slots[-1].time == at("2024-01-01 16:30")
        assert all(slot.user_ids == (1,) for slot in slots)

    def test_frequency_defaults_to_duration(self):
        generator = _generator((host(1), availability()))

        for frequency in (None, 0):
            slots = generator.generate(
                window_start=at("2024-01-01 00:00"),
                window_end=at("2024-01-02 00:00"),
                duration=60,
                frequency=frequency,
                now=NOW,
            )

            assert [slot.time.hour for slot in slots] == [9, 10, 11, 12, 13, 14, 15, 16]

    def test_slot_interval_shorter_than_duration(self):
        """Slots may overlap each other; the last one must still fit."""
        generator = _generator((host(1), availability()))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=60,
            frequency=15,
            now=NOW,
        )

        assert slots[1].time == at("2024-01-01 09:15")
        assert slots[-1].time == at("2024-01-01 16:00")
        assert len(slots) == 29

    def test_minimum_notice_skips_early_slots(self):
        generator = _generator((host(1), availability()))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=30,
            minimum_notice=120,
            now=at("2024-01-01 10:10"),
        )

        # Earliest bookable moment is 12:10; the grid stays on the half hour
        assert slots[0].time == at("2024-01-01 12:30")

    def test_slots_stay_inside_window(self):
        generator = _generator((host(1), availability()))
        start = at("2024-01-01 10:15")
        end = at("2024-01-02 11:00")

        slots = generator.generate(window_start=start, window_end=end, duration=30, now=NOW)

        assert slots
        assert all(start <= slot.time < end for slot in slots)
        assert slots[0].time == at("2024-01-01 10:30")
        assert slots[-1].time == at("2024-01-02 10:30")

    def test_excluded_weekdays(self):
        """Weekend days without working hours produce no slots."""
        weekdays = nine_to_five(days=range(5))
        generator = _generator((host(1), availability(working_hours=[weekdays])))

        # Friday to Monday
        slots = generator.generate(
            window_start=at("2024-01-05 00:00"),
            window_end=at("2024-01-09 00:00"),
            duration=60,
            now=NOW,
        )

        days = {slot.time.to_date_string() for slot in slots}
        assert days == {"2024-01-05", "2024-01-08"}

    def test_date_override_replaces_working_hours(self):
        override = DateOverride(
            user_id=None,
            date="2024-01-01",
            intervals=(interval("2024-01-01 13:00", "2024-01-01 14:00"),),
        )
        generator = _generator((host(1), availability(date_overrides=(override,))))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-03 00:00"),
            duration=30,
            now=NOW,
        )

        first_day = [slot.time for slot in slots if slot.time.day == 1]
        second_day = [slot.time for slot in slots if slot.time.day == 2]
        assert first_day == [at("2024-01-01 13:00"), at("2024-01-01 13:30")]
        assert len(second_day) == 16

    def test_empty_date_override_blocks_the_day(self):
        override = DateOverride(user_id=1, date="2024-01-01")
        generator = _generator((host(1), availability(date_overrides=(override,))))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=30,
            now=NOW,
        )

        assert slots == []

    def test_working_hours_follow_host_time_zone(self):
        """09:00 in Berlin is 08:00 UTC in winter."""
        generator = _generator((host(1), availability(time_zone="Europe/Berlin")))

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=60,
            now=NOW,
        )

        assert slots[0].time == at("2024-01-01 08:00")
        assert slots[-1].time == at("2024-01-01 15:00")

    def test_forced_utc_ignores_host_time_zone(self):
        generator = _generator((host(1), availability(time_zone="Europe/Berlin")), force_utc=True)

        slots = generator.generate(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-02 00:00"),
            duration=60,
            now=NOW,
        )

        assert slots[0].time == at("2024-01-01 09:00")

    def test_slots_reported_in_window_time_zone(self):
        generator = _generator((host(1), availability()))
        start = pendulum.parse("2024-01-01 00:00", tz="America/New_York")

        slots = generator.generate(
            window_start=start,
            window_end=start.add(days=1),
            duration=60,
            now=NOW,
        )

        assert slots[0].time.timezone_name == "America/New_York"
        assert slots[0].time.hour == 9 - 5  # 09:00 UTC

    def test_user_ids_list_every_covering_host(self):
        """Host 2 starts at 10:00, so it only covers later slots."""
        late = WorkingHours(days=EVERY_DAY, start_time=10 * 60, end_time=12 * 60)
        generator = _generator(
            (host(1), availability()),
            (host(2), availability(working_hours=[late])),
        )

        slots = generator.generate(
            window_start=at("2024-01-01 09:00"),
            window_end=at("2024-01-01 13:00"),
            duration=60,
            now=NOW,
        )

        by_time = {slot.time.hour: slot.user_ids for slot in slots}
        assert by_time == {9: (1,), 10: (1, 2), 11: (1, 2), 12: (1,)}

    def test_generation_is_idempotent(self):
        generator = _generator((host(1), availability()), (host(2), availability(time_zone="Asia/Tokyo")))
        kwargs = dict(
            window_start=at("2024-01-01 00:00"),
            window_end=at("2024-01-04 00:00"),
            duration=30,
            minimum_notice=60,
            now=at("2024-01-01 08:00"),
        )

        assert generator.generate(**kwargs) == generator.generate(**kwargs)

    def test_empty_window(self):
        aggregate = aggregate_working_hours([(host(1), availability())])

        assert generate_slots(aggregate, at("2024-01-01 10:00"), at("2024-01-01 10:00"), 30, now=NOW) == []

    def test_working_hours_inside_dst_gap_are_skipped(self):
        """02:00-03:00 does not exist in New York on 2024-03-10."""
        night = WorkingHours(days=EVERY_DAY, start_time=2 * 60, end_time=3 * 60, time_zone="America/New_York")
        morning = WorkingHours(days=EVERY_DAY, start_time=9 * 60, end_time=10 * 60, time_zone="America/New_York")
        generator = _generator(
            (host(1), availability(time_zone="America/New_York", working_hours=[night, morning])),
        )

        slots = generator.generate(
            window_start=at("2024-03-10 00:00", tz="America/New_York"),
            window_end=at("2024-03-11 00:00", tz="America/New_York"),
            duration=60,
            now=NOW,
        )

        assert [slot.time.in_timezone("UTC") for slot in slots] == [at("2024-03-10 13:00")]
