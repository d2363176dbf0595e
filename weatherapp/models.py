"""
ORM models.

We store:
- user input location string
- resolved lat/lon + resolved place name (so the record is stable)
- requested date range and unit system
- returned daily series (JSON serialized)
"""

from sqlalchemy import String, Integer, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from .db import Base


class WeatherRequest(Base):
    __tablename__ = "requests"
    # AUTOINCREMENT so SQLite never hands out the id of a deleted row again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # What the user typed
    location_query: Mapped[str] = mapped_column(String(255))

    # Geocoded location details
    location_name: Mapped[str] = mapped_column(String(255))
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)

    # Inclusive date range, ISO YYYY-MM-DD
    start_date: Mapped[str] = mapped_column(String(10))
    end_date: Mapped[str] = mapped_column(String(10))

    # "metric" or "imperial"; temperatures in daily_json use this system
    units: Mapped[str] = mapped_column(String(16))

    # Example:
    #   [{"date":"2025-12-10","temp_max":6.2,"temp_min":2.1,"weather_code":3}, ...]
    daily_json: Mapped[str] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime)
    updated_at: Mapped[datetime] = mapped_column(DateTime)
