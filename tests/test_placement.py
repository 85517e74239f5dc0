"""Tests for appointment placement and lane assignment."""

import pytest

from booking_core.schemas.calendar_schema import Placement
from booking_core.scheduling.placement import (
    appointments_overlap,
    assign_lanes,
    clip_to_grid,
    intervals_overlap,
    is_within_grid,
    place,
)
from tests.conftest import MONDAY, make_appointment


class TestIntervalsOverlap:
    def test_touching_endpoints_do_not_overlap(self):
        assert not intervals_overlap(600, 660, 660, 720)
        assert not intervals_overlap(660, 720, 600, 660)

    def test_partial_overlap(self):
        assert intervals_overlap(600, 660, 630, 690)

    def test_containment(self):
        assert intervals_overlap(600, 720, 630, 660)
        assert intervals_overlap(630, 660, 600, 720)

    def test_identical_intervals(self):
        assert intervals_overlap(600, 660, 600, 660)

    def test_disjoint(self):
        assert not intervals_overlap(540, 570, 600, 660)


class TestAppointmentsOverlap:
    def test_same_time_different_days(self):
        a = make_appointment(id="A")
        b = make_appointment(id="B", day=MONDAY.replace(day=MONDAY.day + 1))
        assert not appointments_overlap(a, b)

    def test_same_day_overlapping(self):
        a = make_appointment(id="A", start_time="10:00", duration=60)
        b = make_appointment(id="B", start_time="10:30", duration=60)
        assert appointments_overlap(a, b)


class TestPlace:
    def test_offset_and_extent(self):
        placement = place(make_appointment(start_time="10:00", duration=60), 8, 30.0, 30)
        assert placement.offset_px == pytest.approx(120.0)
        assert placement.extent_px == pytest.approx(60.0)

    def test_grid_start_is_zero_offset(self):
        placement = place(make_appointment(start_time="08:00", duration=30), 8, 30.0, 30)
        assert placement.offset_px == 0.0
        assert placement.extent_px == pytest.approx(30.0)

    def test_short_appointment_scales_linearly(self):
        placement = place(make_appointment(start_time="09:15", duration=15), 8, 30.0, 30)
        assert placement.offset_px == pytest.approx(75.0)
        assert placement.extent_px == pytest.approx(15.0)

    def test_custom_slot_height_and_granularity(self):
        placement = place(make_appointment(start_time="09:00", duration=45), 8, 20.0, 15)
        assert placement.offset_px == pytest.approx(80.0)
        assert placement.extent_px == pytest.approx(60.0)

    def test_before_grid_is_not_clipped(self):
        placement = place(make_appointment(start_time="07:00", duration=60), 8, 30.0, 30)
        assert placement.offset_px == pytest.approx(-60.0)
        assert placement.extent_px == pytest.approx(60.0)

    def test_offset_is_monotonic_in_start_time(self):
        starts = ["08:00", "08:30", "09:45", "13:00", "21:30"]
        offsets = [place(make_appointment(start_time=s, duration=30), 8, 30.0).offset_px for s in starts]
        assert offsets == sorted(offsets)


class TestGridBoundaries:
    def test_inside_grid(self):
        assert is_within_grid(make_appointment(start_time="21:00", duration=60), 8, 22)

    def test_running_past_grid_end(self):
        assert not is_within_grid(make_appointment(start_time="21:30", duration=60), 8, 22)

    def test_starting_before_grid(self):
        assert not is_within_grid(make_appointment(start_time="07:30", duration=60), 8, 22)

    def test_clip_leading_edge(self):
        clipped = clip_to_grid(Placement(offset_px=-30.0, extent_px=60.0), 8, 22, 30.0, 30)
        assert clipped == Placement(offset_px=0.0, extent_px=30.0)

    def test_clip_trailing_edge(self):
        clipped = clip_to_grid(Placement(offset_px=810.0, extent_px=60.0), 8, 22, 30.0, 30)
        assert clipped == Placement(offset_px=810.0, extent_px=30.0)

    def test_clip_fully_outside_returns_none(self):
        assert clip_to_grid(Placement(offset_px=-90.0, extent_px=60.0), 8, 22, 30.0, 30) is None

    def test_clip_inside_is_unchanged(self):
        placement = Placement(offset_px=120.0, extent_px=60.0)
        assert clip_to_grid(placement, 8, 22, 30.0, 30) == placement


class TestAssignLanes:
    def test_empty(self):
        assert assign_lanes([]) == []

    def test_non_overlapping_share_lane_zero(self):
        appts = [
            make_appointment(id="A", start_time="09:00", duration=60),
            make_appointment(id="B", start_time="11:00", duration=60),
        ]
        assert assign_lanes(appts) == [(0, 1), (0, 1)]

    def test_back_to_back_share_lane_zero(self):
        appts = [
            make_appointment(id="A", start_time="10:00", duration=60),
            make_appointment(id="B", start_time="11:00", duration=60),
        ]
        assert assign_lanes(appts) == [(0, 1), (0, 1)]

    def test_two_overlapping_get_two_lanes(self):
        appts = [
            make_appointment(id="A", start_time="10:00", duration=60, staff_id="EMP-1"),
            make_appointment(id="B", start_time="10:30", duration=60, staff_id="EMP-2"),
        ]
        assert assign_lanes(appts) == [(0, 2), (1, 2)]

    def test_lane_reused_inside_cluster(self):
        appts = [
            make_appointment(id="A", start_time="10:00", duration=60),
            make_appointment(id="B", start_time="10:30", duration=60),
            make_appointment(id="C", start_time="11:00", duration=60),
        ]
        assert assign_lanes(appts) == [(0, 2), (1, 2), (0, 2)]

    def test_results_follow_input_order(self):
        appts = [
            make_appointment(id="B", start_time="10:30", duration=60),
            make_appointment(id="A", start_time="10:00", duration=60),
        ]
        assert assign_lanes(appts) == [(1, 2), (0, 2)]

    def test_separate_clusters_have_own_lane_count(self):
        appts = [
            make_appointment(id="A", start_time="09:00", duration=60),
            make_appointment(id="B", start_time="09:00", duration=30),
            make_appointment(id="C", start_time="14:00", duration=30),
        ]
        lanes = assign_lanes(appts)
        assert lanes[0][1] == 2
        assert lanes[1][1] == 2
        assert lanes[2] == (0, 1)
