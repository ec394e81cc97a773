"""Demo calendar tools exposed through the local tool subsystem."""
from __future__ import annotations

from adapters.tools.base import ToolExecutionError, ToolSpec


CALENDAR_TOOLS: list[ToolSpec] = [
    ToolSpec(
        name="check_calendar",
        description="List open appointment slots for a date (YYYY-MM-DD).",
        input_schema={
            "type": "object",
            "properties": {"date": {"type": "string"}},
            "required": ["date"],
        },
    ),
    ToolSpec(
        name="book_appointment",
        description="Book a 30 minute slot for a named person.",
        input_schema={
            "type": "object",
            "properties": {
                "date": {"type": "string"},
                "time": {"type": "string"},
                "name": {"type": "string"},
            },
            "required": ["date", "time", "name"],
        },
    ),
]


class CalendarService:
    def __init__(self, available: tuple[str, ...] = ("3:00 PM", "4:00 PM")) -> None:
        self._available = available
        self._appointments: list[dict[str, str]] = []

    @property
    def appointments(self) -> list[dict[str, str]]:
        return list(self._appointments)

    def check_calendar(self, date: str) -> dict[str, object]:
        booked = {a["time"] for a in self._appointments if a["date"] == date}
        return {
            "date": date,
            "available": [slot for slot in self._available if slot not in booked],
        }

    def book_appointment(self, date: str, time: str, name: str) -> dict[str, object]:
        if time not in self.check_calendar(date)["available"]:  # type: ignore[operator]
            raise ToolExecutionError(f"{time} on {date} is not available")
        appt = {"date": date, "time": time, "name": name}
        self._appointments.append(appt)
        return {
            "status": "confirmed",
            "appointment": appt,
        }
