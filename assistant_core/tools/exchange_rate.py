"""Currency conversion tool backed by frankfurter.app (no API key required)."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ToolError
from assistant_core.infrastructure.logging.logger import logger
from assistant_core.tools.base import ToolCapability
from assistant_core.tools.http import error_body, http_get

PROVIDER = "frankfurter.app"


class ExchangeRateTool(ToolCapability):
    name = "get_exchange_rate"
    description = (
        "Get the latest FX rate or convert an amount between two currencies "
        "(ISO 4217 codes, e.g., EUR, USD). Powered by frankfurter.app, no API key required."
    )
    timeout = 10.0

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "base": {"type": "string", "description": "Base currency code (ISO 4217), e.g., EUR"},
                "symbol": {"type": "string", "description": "Target currency code (ISO 4217), e.g., USD"},
                "amount": {
                    "type": "number",
                    "description": "Optional amount to convert. If omitted, returns only the rate.",
                },
            },
            "required": ["base", "symbol"],
        }

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        base = self._optional_str(arguments, "base").upper()
        symbol = self._optional_str(arguments, "symbol").upper()
        amount = self._optional_number(arguments, "amount")

        if not base or not symbol:
            raise ToolError(code="BAD_ARGUMENTS", message="missing 'base' or 'symbol'")
        if len(base) != 3 or len(symbol) != 3 or not (base.isalpha() and symbol.isalpha()):
            raise ToolError(code="BAD_ARGUMENTS", message="currency codes must be ISO 4217 (3 letters)")
        if amount is not None and amount < 0:
            raise ToolError(code="BAD_ARGUMENTS", message="amount must be >= 0")

        root = getattr(self._settings, "fx_base_url", None) or "https://api.frankfurter.app"
        url = f"{root}/latest"
        logger.info("FX request", extra={"extra": {"base": base, "symbol": symbol, "url": url}})
        resp = await http_get(url, timeout=self.timeout, params={"from": base, "to": symbol})
        if resp.status_code >= 400:
            raise ToolError(
                code="UPSTREAM_ERROR",
                message=f"frankfurter http {resp.status_code}: {error_body(resp)}",
                http_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ToolError(code="BAD_RESPONSE", message=f"decode error: {e} (body={error_body(resp)})")

        rate = (data.get("rates") or {}).get(symbol)
        if not rate:
            raise ToolError(code="BAD_RESPONSE", message=f"rate not found for {symbol} (body={error_body(resp)})")

        logger.info(
            "FX provider OK",
            extra={"extra": {"provider": PROVIDER, "base": base, "symbol": symbol, "rate": rate, "date": data.get("date")}},
        )
        out: Dict[str, Any] = {
            "provider": PROVIDER,
            "base": base,
            "symbol": symbol,
            "rate": rate,
            "date": data.get("date"),
        }
        if amount is not None:
            out["amount"] = amount
            out["converted"] = amount * rate
        return json.dumps(out, ensure_ascii=False)
