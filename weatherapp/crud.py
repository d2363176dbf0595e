"""
CRUD functions.

Two layers live here:
- store primitives (save/get/replace/delete/list) that only touch the DB
- create/update pipelines: validate -> resolve location -> build series -> persist

Validation runs before any network call and an upstream failure raises before
anything is written, so a failed request never leaves a partial record.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import models
from .errors import RecordNotFound
from .exporters import COMPACT
from .schemas import RecordCreate, RecordUpdate
from .series import build_series
from .validation import validate_date_range
from .weather_clients import OpenMeteoClient, OpenMeteoGeocoder


logger = logging.getLogger(__name__)

MUTABLE_FIELDS = (
    "location_query",
    "location_name",
    "latitude",
    "longitude",
    "start_date",
    "end_date",
    "units",
)


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite DateTime columns drop tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def serialize_series(series: Iterable[Any]) -> str:
    return json.dumps([d.model_dump() if isinstance(d, BaseModel) else d for d in series], separators=COMPACT)


def record_to_dict(model: models.WeatherRequest) -> Dict[str, Any]:
    """Convert ORM model -> dict for JSON/export, with the series deserialized."""
    return {
        "id": model.id,
        "location_query": model.location_query,
        "location_name": model.location_name,
        "latitude": model.latitude,
        "longitude": model.longitude,
        "start_date": model.start_date,
        "end_date": model.end_date,
        "units": model.units,
        "daily": json.loads(model.daily_json or "[]"),
        "created_at": model.created_at,
        "updated_at": model.updated_at,
    }


def _apply(record: models.WeatherRequest, fields: Dict[str, Any]) -> None:
    for name in MUTABLE_FIELDS:
        setattr(record, name, fields[name])
    record.daily_json = serialize_series(fields["daily"])


# -------------------------
# Store primitives
# -------------------------

def save_record(db: Session, fields: Dict[str, Any], now: Optional[datetime] = None) -> models.WeatherRequest:
    """Insert a new record; created_at and updated_at are both set to `now`."""
    now = now or utcnow()
    record = models.WeatherRequest(created_at=now, updated_at=now)
    _apply(record, fields)

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Created request %s for %r", record.id, record.location_name)
    return record


def get_record(db: Session, record_id: int) -> models.WeatherRequest:
    """Fetch a single record by id."""
    record = db.get(models.WeatherRequest, record_id)
    if record is None:
        raise RecordNotFound("Record not found.")
    return record


def replace_record(db: Session, record_id: int, fields: Dict[str, Any], now: Optional[datetime] = None) -> models.WeatherRequest:
    """Replace every mutable field; id and created_at are untouched."""
    record = get_record(db, record_id)
    _apply(record, fields)
    record.updated_at = now or utcnow()

    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Updated request %s", record.id)
    return record


def delete_record(db: Session, record_id: int) -> None:
    record = get_record(db, record_id)
    db.delete(record)
    db.commit()
    logger.info("Deleted request %s", record_id)


def list_records(db: Session, limit: Optional[int] = 100, offset: int = 0) -> List[models.WeatherRequest]:
    """List records, newest first, with basic pagination."""
    return (
        db.query(models.WeatherRequest)
        .order_by(models.WeatherRequest.created_at.desc(), models.WeatherRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# -------------------------
# Pipelines
# -------------------------

async def _resolve_and_fetch(
    location: str,
    start_date: str,
    end_date: str,
    units: str,
    geocoder: OpenMeteoGeocoder,
    om: OpenMeteoClient,
    today: Optional[date],
) -> Dict[str, Any]:
    start, end = validate_date_range(start_date, end_date)

    resolved = await geocoder.resolve(location)
    daily = await build_series(om, resolved.lat, resolved.lon, start, end, units, today=today)

    return {
        "location_query": location,
        "location_name": resolved.name,
        "latitude": resolved.lat,
        "longitude": resolved.lon,
        "start_date": start_date,
        "end_date": end_date,
        "units": units,
        "daily": daily,
    }


async def create_record(
    db: Session,
    payload: RecordCreate,
    geocoder: OpenMeteoGeocoder,
    om: OpenMeteoClient,
    today: Optional[date] = None,
) -> models.WeatherRequest:
    """
    CREATE record:
    - validate date range
    - resolve location (coordinates or geocoding)
    - build the daily series for the range
    - store in DB
    """
    fields = await _resolve_and_fetch(
        payload.location, payload.start_date, payload.end_date, payload.units, geocoder, om, today
    )
    return save_record(db, fields)


async def update_record(
    db: Session,
    record_id: int,
    payload: RecordUpdate,
    geocoder: OpenMeteoGeocoder,
    om: OpenMeteoClient,
    today: Optional[date] = None,
) -> models.WeatherRequest:
    """
    UPDATE record:
    - 404 if the record is gone
    - validate, re-resolve and re-fetch exactly like create
    - replace all fields, keep id/created_at
    """
    existing = get_record(db, record_id)
    units = payload.units or existing.units

    fields = await _resolve_and_fetch(
        payload.location, payload.start_date, payload.end_date, units, geocoder, om, today
    )
    return replace_record(db, record_id, fields)
