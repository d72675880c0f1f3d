"""Weather tools backed by weatherapi.com (current conditions and forecast)."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

import httpx

from assistant_core.config.settings import Settings, settings
from assistant_core.domain.exceptions import ToolError
from assistant_core.tools.base import ToolCapability
from assistant_core.tools.http import http_get

MAX_FORECAST_DAYS = 7
DEFAULT_FORECAST_DAYS = 3


class _WeatherApiTool(ToolCapability):
    timeout = 8.0

    def __init__(self, cfg: Settings = settings):
        self._settings = cfg

    def _api_key(self) -> str:
        key = (getattr(self._settings, "weather_api_key", None) or "").strip()
        if not key:
            raise ToolError(code="MISSING_API_KEY", message="missing WEATHER_API_KEY")
        return key

    async def _fetch(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        base = getattr(self._settings, "weather_base_url", None) or "https://api.weatherapi.com/v1"
        resp = await http_get(
            f"{base}/{endpoint}",
            timeout=self.timeout,
            params={"key": self._api_key(), **params},
        )
        if resp.status_code >= 400:
            raise self._http_error(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise ToolError(code="BAD_RESPONSE", message=f"weatherapi decode error: {e}")

    @staticmethod
    def _http_error(resp: httpx.Response) -> ToolError:
        try:
            err = (resp.json() or {}).get("error") or {}
        except ValueError:
            err = {}
        if err.get("message"):
            return ToolError(
                code="UPSTREAM_ERROR",
                message=f"weatherapi error: {err['message']} (code {err.get('code')})",
                http_status=resp.status_code,
            )
        return ToolError(code="UPSTREAM_ERROR", message=f"weatherapi http {resp.status_code}", http_status=resp.status_code)


class CurrentWeatherTool(_WeatherApiTool):
    name = "get_current_weather"
    description = (
        "Get current weather for a given location. "
        "Returns temperature, wind, humidity, condition, etc."
    )

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City name or 'lat,lon' coordinates",
                },
            },
            "required": ["location"],
        }

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        location = self._require_str(arguments, "location")
        payload = await self._fetch("current.json", {"q": location, "aqi": "no"})
        loc = payload.get("location") or {}
        cur = payload.get("current") or {}
        resolved = ", ".join(p for p in (loc.get("name"), loc.get("region"), loc.get("country")) if p)
        return json.dumps(
            {
                "resolved_name": resolved,
                "coords": [loc.get("lat"), loc.get("lon")],
                "timezone": loc.get("tz_id"),
                "temperature_c": cur.get("temp_c"),
                "wind_kph": cur.get("wind_kph"),
                "wind_dir": cur.get("wind_dir"),
                "gust_kph": cur.get("gust_kph"),
                "humidity": cur.get("humidity"),
                "feelslike_c": cur.get("feelslike_c"),
                "precip_mm": cur.get("precip_mm"),
                "pressure_mb": cur.get("pressure_mb"),
                "cloud": cur.get("cloud"),
                "uv": cur.get("uv"),
                "vis_km": cur.get("vis_km"),
                "condition": (cur.get("condition") or {}).get("text"),
            },
            ensure_ascii=False,
        )


class WeatherForecastTool(_WeatherApiTool):
    name = "get_weather_forecast"
    description = "Provides a multi-day weather forecast (up to 7 days) for a given location."

    @property
    def parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City name or coordinates (lat,lon) to get the weather forecast for.",
                },
                "days": {
                    "type": "integer",
                    "description": "Number of days to forecast (1-7).",
                    "minimum": 1,
                    "maximum": MAX_FORECAST_DAYS,
                },
            },
            "required": ["location"],
        }

    @staticmethod
    def clamp_days(raw: Any) -> int:
        days = ToolCapability._optional_number({"days": raw}, "days")
        if days is None or days <= 0:
            return DEFAULT_FORECAST_DAYS
        return max(1, min(int(days), MAX_FORECAST_DAYS))

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        location = self._require_str(arguments, "location")
        days = self.clamp_days(arguments.get("days"))
        payload = await self._fetch(
            "forecast.json",
            {"q": location, "days": days, "aqi": "no", "alerts": "no"},
        )
        out: List[Dict[str, Any]] = []
        for item in (payload.get("forecast") or {}).get("forecastday") or []:
            day = item.get("day") or {}
            astro = item.get("astro") or {}
            out.append(
                {
                    "date": item.get("date"),
                    "max_temp_c": day.get("maxtemp_c"),
                    "min_temp_c": day.get("mintemp_c"),
                    "condition": (day.get("condition") or {}).get("text"),
                    "chance_of_rain": day.get("daily_chance_of_rain"),
                    "total_precip_mm": day.get("totalprecip_mm"),
                    "max_wind_kph": day.get("maxwind_kph"),
                    "uv": day.get("uv"),
                    "sunrise": astro.get("sunrise"),
                    "sunset": astro.get("sunset"),
                }
            )
        return json.dumps(out, ensure_ascii=False)
