"""
Weather clients.

We intentionally separate API logic from FastAPI endpoints:
- easier to test in isolation (pass an httpx transport to stub the network)
- cleaner main.py
- avoids duplicating request logic for CRUD and search use cases
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging
import re

import httpx

from .errors import LocationNotFound, MissingLocation, UpstreamServiceError
from .weather_codes import weather_label


logger = logging.getLogger(__name__)

COORDINATES = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*,\s*(-?\d+(?:\.\d+)?)\s*$")

DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,weather_code"

TEMPERATURE_UNITS = {"metric": "celsius", "imperial": "fahrenheit"}
WIND_UNITS = {"metric": "ms", "imperial": "mph"}


@dataclass(frozen=True)
class ResolvedLocation:
    """
    Minimal resolved location object produced by geocoding.
    """
    lat: float
    lon: float
    name: str


def parse_coordinates(query: str) -> ResolvedLocation | None:
    """Interpret "lat, lon" text directly; None if the text is not a coordinate pair."""
    match = COORDINATES.match(query.strip())
    if not match:
        return None
    return ResolvedLocation(
        lat=float(match.group(1)),
        lon=float(match.group(2)),
        name=f"Coordinates ({match.group(1)}, {match.group(2)})",
    )


def compose_place_name(result: Dict[str, Any]) -> str:
    """name[, admin1][, country]"""
    name = str(result.get("name", ""))
    if result.get("admin1"):
        name += f", {result['admin1']}"
    if result.get("country"):
        name += f", {result['country']}"
    return name


class OpenMeteoGeocoder:
    """
    Open-Meteo geocoding wrapper.

    Endpoint used:
        /v1/search?name=...&count=1&language=en&format=json
    """

    def __init__(self, base: str, timeout_s: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base = base
        self.timeout_s = timeout_s
        self.transport = transport

    async def resolve(self, query: str) -> ResolvedLocation:
        """
        Resolve a user-provided location string into lat/lon + display name.

        Supported input formats (checked in this order):

        1) Coordinates: "40.7128,-74.0060"
           - Used as-is; the network is never contacted.

        2) Place name: "Austin" or "Paris"
           - Open-Meteo name search; we select the top match.
        """
        raw = (query or "").strip()
        if not raw:
            raise MissingLocation("Location is required.")

        coords = parse_coordinates(raw)
        if coords:
            return coords

        params = {"name": raw, "count": 1, "language": "en", "format": "json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(self.base, params=params)
        except httpx.HTTPError as e:
            logger.warning("Geocoding request for %r failed: %s", raw, e)
            raise UpstreamServiceError("Geocoding service error. Please try again.") from e

        if r.status_code != 200:
            logger.warning("Geocoding for %r returned %s", raw, r.status_code)
            raise UpstreamServiceError("Geocoding service error. Please try again.")

        results = (r.json() or {}).get("results") or []
        if not results:
            raise LocationNotFound("Location not found. Try another search.")

        best = results[0]
        return ResolvedLocation(
            lat=float(best["latitude"]),
            lon=float(best["longitude"]),
            name=compose_place_name(best),
        )


class OpenMeteoClient:
    """
    Open-Meteo weather data.

    Two sources share the same daily-fields contract:
    - archive: completed historical days
    - forecast: today and future days (also serves current conditions)
    """

    def __init__(
        self,
        forecast_url: str,
        archive_url: str,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bases = {"forecast": forecast_url, "archive": archive_url}
        self.timeout_s = timeout_s
        self.transport = transport

    async def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("Weather request to %s failed: %s", url, e)
            raise UpstreamServiceError("Weather service error. Please try again later.") from e

        if r.status_code != 200:
            logger.warning("Weather request to %s returned %s", url, r.status_code)
            raise UpstreamServiceError("Weather service error. Please try again later.")
        return r.json() or {}

    async def daily(self, source: str, lat: float, lon: float, start: date, end: date, units: str = "metric") -> Dict[str, Any]:
        """
        Fetch the column-oriented `daily` block for one source and date window.

        `source` is "archive" or "forecast". Returns {} when the response has no daily block.
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "daily": DAILY_FIELDS,
            "temperature_unit": TEMPERATURE_UNITS.get(units, "celsius"),
            "timezone": "auto",
        }
        data = await self._get(self.bases[source], params)
        return data.get("daily") or {}

    async def current(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        """
        Current conditions plus the daily forecast, in one forecast call.
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "current_weather": "true",
            "hourly": "relativehumidity_2m,apparent_temperature",
            "daily": DAILY_FIELDS,
            "temperature_unit": TEMPERATURE_UNITS.get(units, "celsius"),
            "windspeed_unit": WIND_UNITS.get(units, "ms"),
            "timezone": "auto",
        }
        return await self._get(self.bases["forecast"], params)

    @staticmethod
    def summarize_current(payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Flatten `current_weather` and pick humidity / feels-like from the
        hourly slot closest to the current observation time.
        """
        current = payload.get("current_weather") or {}
        hourly = payload.get("hourly") or {}
        times = hourly.get("time") or []
        code = current.get("weathercode")

        return {
            "time": current.get("time"),
            "temperature": current.get("temperature"),
            "windspeed": current.get("windspeed"),
            "weather_code": code,
            "description": weather_label(code),
            "humidity": _nearest_hourly(times, hourly.get("relativehumidity_2m"), current.get("time")),
            "feels_like": _nearest_hourly(times, hourly.get("apparent_temperature"), current.get("time")),
        }

    @staticmethod
    def summarize_forecast(payload: Dict[str, Any], days: int = 5) -> List[Dict[str, Any]]:
        """One card per day for the first `days` days of the daily block."""
        daily = payload.get("daily") or {}
        dates = daily.get("time") or []
        tmax = daily.get("temperature_2m_max") or []
        tmin = daily.get("temperature_2m_min") or []
        codes = daily.get("weather_code") or []

        cards: List[Dict[str, Any]] = []
        for i, d in enumerate(dates[:days]):
            code = codes[i] if i < len(codes) else None
            cards.append({
                "date": d,
                "dow": date.fromisoformat(d).strftime("%a"),
                "temp_max": tmax[i] if i < len(tmax) else None,
                "temp_min": tmin[i] if i < len(tmin) else None,
                "weather_code": code,
                "description": weather_label(code),
            })
        return cards


def _nearest_hourly(times: List[str], values: Optional[List[Any]], target: Optional[str]) -> Any:
    if not times or not values or not target:
        return None
    try:
        t = datetime.fromisoformat(target)
    except ValueError:
        return None

    best_index = None
    best_diff = None
    for i, raw in enumerate(times):
        try:
            diff = abs((datetime.fromisoformat(raw) - t).total_seconds())
        except ValueError:
            continue
        if best_diff is None or diff < best_diff:
            best_index, best_diff = i, diff

    if best_index is None or best_index >= len(values):
        return None
    return values[best_index]
