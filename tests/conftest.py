# Shared fixtures: an in-memory database and a fake Open-Meteo upstream served
# through httpx.MockTransport, so no test touches the network or a real file.

import os
import tempfile
from datetime import date, timedelta

# Must be set before weatherapp.settings is imported anywhere.
os.environ.setdefault("WEATHERAPP_SQLITE_PATH", os.path.join(tempfile.mkdtemp(), "test.sqlite3"))

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weatherapp.db import init_db
from weatherapp.weather_clients import OpenMeteoClient, OpenMeteoGeocoder

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"


def _days(start: str, end: str) -> list[str]:
    d, last = date.fromisoformat(start), date.fromisoformat(end)
    out = []
    while d <= last:
        out.append(d.isoformat())
        d += timedelta(days=1)
    return out


class FakeOpenMeteo:
    """Records every request and answers like the three Open-Meteo services."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.geocoding_results = [
            {"name": "Denver", "admin1": "Colorado", "country": "United States", "latitude": 39.74, "longitude": -104.98}
        ]
        self.fail_hosts: set[str] = set()
        self.transport = httpx.MockTransport(self.handle)

    def calls_to(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(url)]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.fail_hosts:
            return httpx.Response(503, json={"error": True, "reason": "unavailable"})

        params = request.url.params
        if request.url.host == "geocoding-api.open-meteo.com":
            return httpx.Response(200, json={"results": self.geocoding_results} if self.geocoding_results else {})

        if "current_weather" in params:
            return httpx.Response(200, json={
                "current_weather": {"time": "2024-06-10T12:00", "temperature": 21.4, "windspeed": 3.2, "weathercode": 2},
                "hourly": {
                    "time": ["2024-06-10T11:00", "2024-06-10T12:00", "2024-06-10T13:00"],
                    "relativehumidity_2m": [40, 42, 45],
                    "apparent_temperature": [20.0, 20.5, 21.0],
                },
                "daily": {
                    "time": _days("2024-06-10", "2024-06-16"),
                    "temperature_2m_max": [25.0 + i for i in range(7)],
                    "temperature_2m_min": [10.0 + i for i in range(7)],
                    "weather_code": [0, 1, 2, 3, 61, 63, 95],
                },
            })

        dates = _days(params["start_date"], params["end_date"])
        base = 30.0 if request.url.host == "archive-api.open-meteo.com" else 20.0
        return httpx.Response(200, json={
            "daily": {
                "time": dates,
                "temperature_2m_max": [base + i for i in range(len(dates))],
                "temperature_2m_min": [base - 10 + i for i in range(len(dates))],
                "weather_code": [3 for _ in dates],
            }
        })


@pytest.fixture
def fake_upstream():
    return FakeOpenMeteo()


@pytest.fixture
def geocoder(fake_upstream):
    return OpenMeteoGeocoder(GEOCODING_URL, transport=fake_upstream.transport)


@pytest.fixture
def weather(fake_upstream):
    return OpenMeteoClient(FORECAST_URL, ARCHIVE_URL, transport=fake_upstream.transport)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
