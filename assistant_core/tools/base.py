"""Tool capability contract.

Every tool exposes a stable ``name`` (the identifier the model references),
a ``description`` the model reads to decide when to call it, a JSON Schema of
its parameters and an async ``invoke``. Tools raise ``ToolError`` (or any other
exception) on failure; the reply loop turns that into a tool message.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from assistant_core.domain.exceptions import ToolError
from assistant_core.tools.definitions import ToolDef


class ToolCapability(ABC):
    name: str = ""
    description: str = ""
    # per-call HTTP timeout in seconds
    timeout: float = 10.0

    @property
    def parameters(self) -> Dict[str, Any]:
        return {"type": "object", "properties": {}}

    @abstractmethod
    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        ...

    def definition(self) -> ToolDef:
        return ToolDef(name=self.name, description=self.description, parameters=self.parameters)

    # ---- argument helpers ----

    def _require_str(self, arguments: Mapping[str, Any], key: str) -> str:
        value = self._optional_str(arguments, key)
        if not value:
            raise ToolError(code="BAD_ARGUMENTS", message=f"missing '{key}'")
        return value

    @staticmethod
    def _optional_str(arguments: Mapping[str, Any], key: str) -> str:
        value = arguments.get(key)
        if isinstance(value, str):
            return value.strip()
        return ""

    @staticmethod
    def _optional_number(arguments: Mapping[str, Any], key: str) -> Optional[float]:
        value = arguments.get(key)
        # JSON true/false decode to bool, which is an int subclass
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)
