from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from assistant_core.tools.base import ToolCapability


class TodayDateTool(ToolCapability):
    name = "get_today_date"
    description = "Get today's date and time in RFC3339 format."

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now().astimezone())

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        return self._clock().isoformat(timespec="seconds")
