"""Local bank/public holidays read from an iCalendar feed."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from icalendar import Calendar

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ToolError
from assistant_core.tools.base import ToolCapability
from assistant_core.tools.http import http_get

DEFAULT_CALENDAR = "https://www.officeholidays.com/ics/spain/catalonia"


def parse_rfc3339_date(raw: str) -> Optional[date]:
    """Return the calendar date of an RFC 3339 timestamp, or None when unparseable."""
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.strip().replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_holidays(data: bytes) -> List[Tuple[date, str]]:
    try:
        cal = Calendar.from_ical(data)
    except ValueError as e:
        raise ToolError(code="BAD_RESPONSE", message=f"calendar parse error: {e}")
    events: List[Tuple[date, str]] = []
    for ev in cal.walk("VEVENT"):
        start = ev.get("DTSTART")
        if start is None:
            continue
        day = start.dt
        if isinstance(day, datetime):
            day = day.date()
        events.append((day, str(ev.get("SUMMARY") or "").strip()))
    events.sort(key=lambda item: item[0])
    return events


class HolidaysTool(ToolCapability):
    name = "get_holidays"
    description = "Gets local bank and public holidays. Each line is 'YYYY-MM-DD: Holiday Name'."
    timeout = 10.0

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "before_date": {
                    "type": "string",
                    "description": "Optional RFC3339 date. Return holidays before this date.",
                },
                "after_date": {
                    "type": "string",
                    "description": "Optional RFC3339 date. Return holidays after this date.",
                },
                "max_count": {"type": "integer", "description": "Optional maximum number of holidays."},
            },
        }

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        link = (getattr(self._settings, "holiday_calendar_link", None) or "").strip() or DEFAULT_CALENDAR
        resp = await http_get(link, timeout=self.timeout, headers={"Accept": "text/calendar"})
        if resp.status_code >= 400:
            raise ToolError(code="UPSTREAM_ERROR", message=f"calendar http {resp.status_code}", http_status=resp.status_code)

        before = parse_rfc3339_date(self._optional_str(arguments, "before_date"))
        after = parse_rfc3339_date(self._optional_str(arguments, "after_date"))
        max_count = int(self._optional_number(arguments, "max_count") or 0)

        lines: List[str] = []
        for day, summary in parse_holidays(resp.content):
            if before is not None and day > before:
                continue
            if after is not None and day < after:
                continue
            lines.append(f"{day.isoformat()}: {summary}")
            if max_count > 0 and len(lines) >= max_count:
                break
        return "\n".join(lines)
