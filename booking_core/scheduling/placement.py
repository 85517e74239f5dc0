"""
Appointment placement on the calendar grid.

Maps an appointment's start time and duration onto pixel offsets relative
to the top of the grid. This module never clips: an appointment outside
the grid gets a negative or overflowing offset, and the caller decides
whether to exclude, clip, or keep it (see ``is_within_grid`` and
``clip_to_grid``).
"""

import logging
from typing import Optional, Sequence

from booking_core.schemas.appointment_schema import AppointmentFields
from booking_core.schemas.calendar_schema import Placement
from booking_core.scheduling.time_grid import DEFAULT_GRANULARITY_MINUTES

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval intersection; touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def appointments_overlap(a: AppointmentFields, b: AppointmentFields) -> bool:
    """True when two appointments on the same date share any minute."""
    return a.date == b.date and intervals_overlap(
        a.start_minutes, a.end_minutes, b.start_minutes, b.end_minutes
    )


def place(
    appointment: AppointmentFields,
    grid_start_hour: int,
    slot_height_px: float,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> Placement:
    """Compute the offset from the grid top and the height of an appointment."""
    offset_minutes = appointment.start_minutes - grid_start_hour * 60
    return Placement(
        offset_px=offset_minutes / granularity_minutes * slot_height_px,
        extent_px=appointment.duration / granularity_minutes * slot_height_px,
    )


def is_within_grid(appointment: AppointmentFields, grid_start_hour: int, grid_end_hour: int) -> bool:
    return (
        appointment.start_minutes >= grid_start_hour * 60
        and appointment.end_minutes <= grid_end_hour * 60
    )


def clip_to_grid(
    placement: Placement,
    grid_start_hour: int,
    grid_end_hour: int,
    slot_height_px: float,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> Optional[Placement]:
    """Trim a placement to the visible grid; None if nothing remains visible."""
    grid_height = (grid_end_hour - grid_start_hour) * 60 / granularity_minutes * slot_height_px
    top = max(placement.offset_px, 0.0)
    bottom = min(placement.offset_px + placement.extent_px, grid_height)
    if bottom <= top:
        return None
    return Placement(offset_px=top, extent_px=bottom - top)


def assign_lanes(appointments: Sequence[AppointmentFields]) -> list[tuple[int, int]]:
    """
    Assign side-by-side lanes to appointments that overlap in time.

    Returns one ``(lane, lane_count)`` pair per input, in input order.
    Appointments are grouped into clusters of transitively overlapping
    intervals; each cluster is packed greedily by start time and every
    member reports the cluster's lane count.
    """
    order = sorted(
        range(len(appointments)),
        key=lambda i: (appointments[i].start_minutes, -appointments[i].duration),
    )
    lanes: list[tuple[int, int]] = [(0, 1)] * len(appointments)

    cluster: list[int] = []
    lane_ends: list[int] = []
    cluster_end = -1

    def _close_cluster() -> None:
        for idx in cluster:
            lanes[idx] = (lanes[idx][0], len(lane_ends))

    for idx in order:
        appt = appointments[idx]
        if cluster and appt.start_minutes >= cluster_end:
            _close_cluster()
            cluster, lane_ends = [], []

        for lane, end in enumerate(lane_ends):
            if end <= appt.start_minutes:
                lane_ends[lane] = appt.end_minutes
                break
        else:
            lane = len(lane_ends)
            lane_ends.append(appt.end_minutes)

        lanes[idx] = (lane, 1)
        cluster.append(idx)
        cluster_end = max(cluster_end, appt.end_minutes) if len(cluster) > 1 else appt.end_minutes

    if cluster:
        _close_cluster()
    return lanes
