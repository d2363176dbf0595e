"""
Daily series building.

Open-Meteo splits daily data across two services: the archive (completed days
only) and the forecast (today onwards). A requested range is first planned
into at most two typed sub-ranges, then each sub-range is fetched and the
results are stitched into one ascending series.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from .schemas import DailyWeather
from .weather_clients import OpenMeteoClient


logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    ARCHIVE = "archive"
    FORECAST = "forecast"


@dataclass(frozen=True)
class SubRange:
    kind: SourceKind
    start: date
    end: date


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def plan_sub_ranges(start: date, end: date, today: date) -> List[SubRange]:
    """
    Route [start, end] to the archive and/or forecast source.

    - entirely before today  -> archive only
    - entirely after today   -> forecast only
    - touching today         -> archive up to yesterday (if any), forecast from today
    """
    if end < today:
        return [SubRange(SourceKind.ARCHIVE, start, end)]
    if start > today:
        return [SubRange(SourceKind.FORECAST, start, end)]

    yesterday = today - timedelta(days=1)
    ranges: List[SubRange] = []
    if start <= yesterday:
        ranges.append(SubRange(SourceKind.ARCHIVE, start, yesterday))
    ranges.append(SubRange(SourceKind.FORECAST, today, end))
    return ranges


def parse_daily(daily: Dict[str, Any]) -> List[DailyWeather]:
    """Zip Open-Meteo's column arrays into DailyWeather rows."""
    dates = daily.get("time") or []
    tmax = daily.get("temperature_2m_max") or []
    tmin = daily.get("temperature_2m_min") or []
    codes = daily.get("weather_code") or []

    def at(values: List[Any], i: int) -> Any:
        return values[i] if i < len(values) else None

    return [
        DailyWeather(date=d, temp_max=at(tmax, i), temp_min=at(tmin, i), weather_code=at(codes, i))
        for i, d in enumerate(dates)
    ]


async def build_series(
    client: OpenMeteoClient,
    lat: float,
    lon: float,
    start: date,
    end: date,
    units: str = "metric",
    today: Optional[date] = None,
) -> List[DailyWeather]:
    """
    Fetch and merge the daily series for [start, end].

    Sub-ranges are fetched one after another; any upstream failure propagates
    as UpstreamServiceError and nothing is returned.
    """
    today = today or utc_today()
    ranges = plan_sub_ranges(start, end, today)
    logger.info(
        "Fetching %s..%s at (%s, %s) from %s",
        start, end, lat, lon, ", ".join(f"{r.kind.value} {r.start}..{r.end}" for r in ranges),
    )

    merged: Dict[str, DailyWeather] = {}
    for sub in ranges:
        daily = await client.daily(sub.kind.value, lat, lon, sub.start, sub.end, units)
        if not daily.get("time"):
            continue
        for day in parse_daily(daily):
            if not start <= date.fromisoformat(day.date) <= end:
                continue
            # sub-ranges are disjoint; a repeated date keeps the later value
            merged[day.date] = day

    return [merged[d] for d in sorted(merged)]
