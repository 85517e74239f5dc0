"""
Offline console demo that runs the scheduling core against in-memory data.

Seeds a small salon with two staff members, a handful of services, and a
week of appointments, then walks through one of the scenarios using the
real time grid, validation, status machine, and statistics code. No
backend, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario analytics
"""

import argparse
import datetime as dt
import threading

from booking_core.config import settings
from booking_core.facade import BookingOutcome, SchedulingService
from booking_core.logging_context import set_request_id
from booking_core.schemas.analytics_schema import DateRange
from booking_core.schemas.appointment_schema import AppointmentStatus, BookingRequest
from booking_core.schemas.calendar_schema import ALL_STAFF
from booking_core.tools.data_access import InMemoryDataAccess

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

BUSINESS_ID = "BIZ-001"
DEMO_MONDAY = dt.date(2025, 3, 3)

SERVICES = [
    {"id": "SVC-CUT", "businessId": BUSINESS_ID, "name": "Haircut", "duration": 30, "price": 3500},
    {"id": "SVC-COLOR", "businessId": BUSINESS_ID, "name": "Colouring", "duration": 90, "price": 9000},
    {"id": "SVC-BEARD", "businessId": BUSINESS_ID, "name": "Beard Trim", "duration": 15, "price": 1500},
]

WORKING_HOURS = {
    "EMP-ANNA": [
        {"dayOfWeek": day, "startTime": "09:00", "endTime": "17:00",
         "breakStart": "12:00", "breakEnd": "13:00"}
        for day in range(1, 6)
    ],
    "EMP-BEN": [
        {"dayOfWeek": day, "startTime": "10:00", "endTime": "19:00"}
        for day in range(1, 7)
    ],
}


def _seed_appointments() -> list[dict]:
    rows = [
        ("APT-0001", "EMP-ANNA", 0, "09:00", "SVC-CUT", 30, 3500, "Completed"),
        ("APT-0002", "EMP-ANNA", 0, "10:00", "SVC-COLOR", 90, 9000, "Completed"),
        ("APT-0003", "EMP-BEN", 0, "10:30", "SVC-BEARD", 15, 1500, "No-Show"),
        ("APT-0004", "EMP-BEN", 1, "11:00", "SVC-CUT", 30, 3500, "Cancelled"),
        ("APT-0005", "EMP-ANNA", 2, "14:00", "SVC-CUT", 30, 3500, "Confirmed"),
        ("APT-0006", "EMP-BEN", 2, "14:15", "SVC-COLOR", 90, 9000, "Pending"),
        ("APT-0007", "EMP-ANNA", 4, "09:30", "SVC-OLD", 45, 4000, "Arrived"),
    ]
    return [
        {
            "id": apt_id,
            "businessId": BUSINESS_ID,
            "employeeId": staff,
            "clientId": f"CLI-{i:03d}",
            "serviceId": service,
            "date": (DEMO_MONDAY + dt.timedelta(days=offset)).isoformat(),
            "startTime": start,
            "duration": duration,
            "price": price,
            "status": status,
        }
        for i, (apt_id, staff, offset, start, service, duration, price, status) in enumerate(rows)
    ]


def build_demo_service() -> SchedulingService:
    data = InMemoryDataAccess(
        appointments=_seed_appointments(),
        working_hours=WORKING_HOURS,
        services=SERVICES,
    )
    return SchedulingService(data)


class ConsoleSession:
    """Prints each scenario step to the terminal."""

    def __init__(self) -> None:
        self.service = build_demo_service()

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.app_name.upper()} - {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def report_outcome(self, outcome: BookingOutcome) -> None:
        if outcome.success:
            self.say(outcome.message)
        else:
            reason = outcome.reason.value if outcome.reason else "concurrency"
            print(f"{RED}Rejected ({reason}): {outcome.message}{RESET}")

    # ------------------------------------------------------------------ #
    # Scenarios
    # ------------------------------------------------------------------ #

    def run_calendar(self) -> None:
        self.banner("Calendar")
        view = self.service.get_calendar(BUSINESS_ID, ALL_STAFF, DEMO_MONDAY, view="week")
        self.say(f"Week of {view.title}: {len(view.slots)} rows per day")
        self.system_log(
            f"Grid {view.slots[0].label} -> {view.slots[-1].label}, "
            f"{settings.calendar.slot_height_px:g}px per {settings.calendar.granularity_minutes} min"
        )
        for day in view.days:
            print(f"\n{BLUE}{day.date:%A %d %b}{RESET}")
            if not day.appointments:
                self.system_log("(no appointments)")
            for placed in day.appointments:
                appt = placed.appointment
                print(
                    f"  {appt.start_time}-{appt.end_time}  {appt.staff_id:<9} "
                    f"{appt.status.value:<10} top={placed.offset_px:>6.1f}px "
                    f"height={placed.extent_px:>5.1f}px lane {placed.lane + 1}/{placed.lane_count}"
                )

    def run_booking(self) -> None:
        self.banner("Booking")
        tuesday = DEMO_MONDAY + dt.timedelta(days=1)

        free = self.service.available_times(BUSINESS_ID, "EMP-ANNA", tuesday, 60)
        self.say(f"Anna is free for 60 min on {tuesday} at: {', '.join(free)}")

        attempts = [
            ("11:00", 60, "fits before the break"),
            ("11:30", 60, "runs into the 12:00 break"),
            ("16:30", 60, "runs past closing time"),
            ("11:30", 30, "overlaps the booking just made"),
            ("12:00", 30, "back-to-back would still hit the break"),
        ]
        for start, duration, note in attempts:
            print(f"\n{BLUE}[Client] {RESET}{tuesday} {start} for {duration} min ({note})")
            set_request_id()
            outcome = self.service.book(self._request("EMP-ANNA", tuesday, start, duration))
            self.report_outcome(outcome)

        print(f"\n{BLUE}[Two clients] {RESET}racing for {tuesday} 14:00 with Anna")
        outcomes: list[BookingOutcome] = []

        def _race(client: str) -> None:
            set_request_id()
            outcomes.append(self.service.book(
                self._request("EMP-ANNA", tuesday, "14:00", 30, client_id=client)
            ))

        threads = [threading.Thread(target=_race, args=(f"CLI-R{i}",)) for i in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        for outcome in outcomes:
            self.report_outcome(outcome)

        booked = next(o.appointment for o in outcomes if o.success)
        print(f"\n{YELLOW}[Staff] {RESET}confirming {booked.id}")
        confirmed = self.service.change_status(booked.id, AppointmentStatus.CONFIRMED)
        self.system_log(f"{confirmed.id} is now {confirmed.status.value}")

        print(f"\n{YELLOW}[Staff] {RESET}moving {booked.id} to 15:00")
        self.report_outcome(self.service.reschedule(booked.id, start_time="15:00"))

    def run_analytics(self) -> None:
        self.banner("Analytics")
        week = DateRange.week_of(DEMO_MONDAY)
        print(self.service.statistics_report(BUSINESS_ID, week))

        print(f"\n{BOLD}Revenue by day{RESET}")
        for point in self.service.get_time_series(BUSINESS_ID, week):
            print(f"  {point.date}  {point.count:>2} appts  {point.revenue / 100:>8.2f}")

        now = dt.datetime.combine(DEMO_MONDAY + dt.timedelta(days=2), dt.time(9, 45))
        summary = self.service.dashboard_summary(BUSINESS_ID, now)
        print(f"\n{BOLD}Dashboard at {now:%Y-%m-%d %H:%M}{RESET}")
        self.system_log(f"Today's appointments: {len(summary.todays_appointments)}")
        if summary.next_appointment:
            nxt = summary.next_appointment
            self.system_log(f"Next: {nxt.id} at {nxt.start_time} with {nxt.staff_id}")
        self.system_log(f"Revenue this month: {summary.monthly_revenue / 100:.2f}")
        self.system_log(f"Recent: {', '.join(a.id for a in summary.recent_bookings)}")

    @staticmethod
    def _request(
        staff_id: str,
        day: dt.date,
        start: str,
        duration: int,
        client_id: str = "CLI-NEW",
    ) -> BookingRequest:
        return BookingRequest(
            business_id=BUSINESS_ID,
            staff_id=staff_id,
            client_id=client_id,
            service_id="SVC-CUT",
            date=day,
            start_time=start,
            duration=duration,
            price=3500,
        )

    SCENARIOS = {
        "calendar": run_calendar,
        "booking": run_booking,
        "analytics": run_analytics,
    }

    def run_scenario(self, scenario: str) -> None:
        handler = self.SCENARIOS.get(scenario)
        if handler is None:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        handler(self)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline scheduling demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Run a single scenario instead of all of them",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    for scenario in [args.scenario] if args.scenario else list(ConsoleSession.SCENARIOS):
        session.run_scenario(scenario)


if __name__ == "__main__":
    main()
