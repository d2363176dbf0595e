"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together DB + clients

Run with: uvicorn weatherapp.main:app
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from sqlalchemy.orm import Session

from .settings import settings
from .db import init_db, get_db
from .schemas import MapLinks, RecordCreate, RecordOut, RecordUpdate, Units
from .errors import WeatherError
from .weather_clients import OpenMeteoClient, OpenMeteoGeocoder
from .crud import (
    create_record, list_records, get_record, update_record, delete_record, record_to_dict,
)
from .exporters import export_csv, export_json
from .maps import map_links
from .series import utc_today
from .validation import default_date_range

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables automatically.
init_db()

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API clients (constructed once).
geocoder = OpenMeteoGeocoder(settings.geocoding_url, timeout_s=settings.http_timeout_s)
om = OpenMeteoClient(settings.forecast_url, settings.archive_url, timeout_s=settings.http_timeout_s)


def get_geocoder() -> OpenMeteoGeocoder:
    return geocoder


def get_weather_client() -> OpenMeteoClient:
    return om


# -------------------------
# Search (current + forecast)
# -------------------------

@app.get("/api/weather")
async def api_weather(
    q: str = Query(..., min_length=1, max_length=255),
    units: Units = "metric",
    save: bool = False,
    db: Session = Depends(get_db),
    geo: OpenMeteoGeocoder = Depends(get_geocoder),
    weather: OpenMeteoClient = Depends(get_weather_client),
):
    """
    Location-based weather:
    - resolve location
    - current conditions
    - 5-day forecast
    - optionally store the search as a request covering today..today+4
    """
    try:
        resolved = await geo.resolve(q)
        payload = await weather.current(resolved.lat, resolved.lon, units=units)
        result = {
            "resolved": resolved.__dict__,
            "units": units,
            "current": weather.summarize_current(payload),
            "five_day": weather.summarize_forecast(payload),
        }
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    if save:
        # a failed save is reported alongside the weather, not instead of it
        start, end = default_date_range(utc_today())
        try:
            rec = await create_record(
                db, RecordCreate(location=q, start_date=start, end_date=end, units=units), geo, weather
            )
            result["saved_id"] = rec.id
        except WeatherError as e:
            logger.warning("Saving search %r failed: %s", q, e)
            result["save_error"] = str(e)
    return result


# -------------------------
# Stored request CRUD APIs
# -------------------------

@app.post("/api/requests", response_model=RecordOut, status_code=201)
async def api_create_record(
    payload: RecordCreate,
    db: Session = Depends(get_db),
    geo: OpenMeteoGeocoder = Depends(get_geocoder),
    weather: OpenMeteoClient = Depends(get_weather_client),
):
    """Create a stored date-range request."""
    try:
        rec = await create_record(db, payload, geo, weather)
        return record_to_dict(rec)
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@app.get("/api/requests", response_model=List[RecordOut])
def api_list_records(limit: int = 100, offset: int = 0, db: Session = Depends(get_db)):
    """List records with pagination, newest first."""
    recs = list_records(db, limit=limit, offset=offset)
    return [record_to_dict(r) for r in recs]


@app.get("/api/requests/{record_id}", response_model=RecordOut)
def api_get_record(record_id: int, db: Session = Depends(get_db)):
    """Fetch a single record."""
    try:
        return record_to_dict(get_record(db, record_id))
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@app.put("/api/requests/{record_id}", response_model=RecordOut)
async def api_update_record(
    record_id: int,
    payload: RecordUpdate,
    db: Session = Depends(get_db),
    geo: OpenMeteoGeocoder = Depends(get_geocoder),
    weather: OpenMeteoClient = Depends(get_weather_client),
):
    """Replace location/date range/units, re-fetch the series, and persist."""
    try:
        updated = await update_record(db, record_id, payload, geo, weather)
        return record_to_dict(updated)
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@app.delete("/api/requests/{record_id}")
def api_delete_record(record_id: int, db: Session = Depends(get_db)):
    """Delete a record."""
    try:
        delete_record(db, record_id)
    except WeatherError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True}


# -------------------------
# Export + map endpoints
# -------------------------

@app.get("/api/export.csv")
def api_export_csv(db: Session = Depends(get_db)):
    """All records as a CSV download."""
    recs = [record_to_dict(r) for r in list_records(db, limit=None)]
    return PlainTextResponse(
        export_csv(recs),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=weather-requests.csv"},
    )


@app.get("/api/export.json")
def api_export_json(db: Session = Depends(get_db)):
    recs = [record_to_dict(r) for r in list_records(db, limit=None)]
    return PlainTextResponse(export_json(recs), media_type="application/json")


@app.get("/api/map", response_model=MapLinks)
def api_map(lat: float, lon: float):
    """Bounding box + OpenStreetMap links around a point."""
    return map_links(lat, lon)
