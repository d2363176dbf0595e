"""
Pydantic schemas.

Why:
- Validation (e.g., strings not empty, correct types)
- Defines the contract of our REST endpoints
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Units = Literal["metric", "imperial"]


class DailyWeather(BaseModel):
    """One day of the stored series. Temperatures are in the record's units."""
    date: str
    temp_max: Optional[float] = None
    temp_min: Optional[float] = None
    weather_code: Optional[int] = None


class RecordCreate(BaseModel):
    """
    Payload for creating a stored request:
    location + date range + units.

    Dates stay plain strings so the strict YYYY-MM-DD check in
    validation.py decides what is acceptable.
    """
    location: str = Field(..., max_length=255)
    start_date: str
    end_date: str
    units: Units = "metric"


class RecordUpdate(BaseModel):
    """
    Updates replace the whole request; the series is always re-fetched.
    Units default to the stored value when omitted.
    """
    location: str = Field(..., max_length=255)
    start_date: str
    end_date: str
    units: Optional[Units] = None


class RecordOut(BaseModel):
    """
    Record representation returned from the API.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    location_query: str
    location_name: str
    latitude: float
    longitude: float
    start_date: str
    end_date: str
    units: Units
    daily: List[DailyWeather]
    created_at: datetime
    updated_at: datetime


class MapLinks(BaseModel):
    bbox: str
    map_embed_url: str
    map_link: str
