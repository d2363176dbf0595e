# RequestStore primitives and the create/update pipelines, against an
# in-memory SQLite database.

from datetime import date, datetime, timedelta

import pytest

from weatherapp import models
from weatherapp.crud import (
    create_record,
    delete_record,
    get_record,
    list_records,
    record_to_dict,
    replace_record,
    save_record,
    update_record,
)
from weatherapp.errors import LocationNotFound, RangeTooLarge, RecordNotFound, UpstreamServiceError
from weatherapp.schemas import DailyWeather, RecordCreate, RecordUpdate

TODAY = date(2024, 6, 15)
T0 = datetime(2024, 6, 15, 9, 0, 0)


def _fields(**overrides):
    fields = {
        "location_query": "Denver",
        "location_name": "Denver, Colorado, United States",
        "latitude": 39.74,
        "longitude": -104.98,
        "start_date": "2024-06-01",
        "end_date": "2024-06-02",
        "units": "metric",
        "daily": [
            DailyWeather(date="2024-06-01", temp_max=25.0, temp_min=11.0, weather_code=1),
            DailyWeather(date="2024-06-02", temp_max=27.5, temp_min=12.0, weather_code=None),
        ],
    }
    fields.update(overrides)
    return fields


class TestStore:
    def test_save_then_get_round_trips_all_fields(self, db):
        """A saved record reads back unchanged, with the daily series deserialized.

        Implementation: Saves fixed fields at a fixed timestamp, then reads by id.
        Passing implies: Every column persists and daily_json decodes back to the series.
        """
        created = save_record(db, _fields(), now=T0)
        fetched = record_to_dict(get_record(db, created.id))

        assert fetched["id"] == created.id
        assert fetched["location_query"] == "Denver"
        assert fetched["location_name"] == "Denver, Colorado, United States"
        assert (fetched["latitude"], fetched["longitude"]) == (39.74, -104.98)
        assert (fetched["start_date"], fetched["end_date"]) == ("2024-06-01", "2024-06-02")
        assert fetched["units"] == "metric"
        assert fetched["created_at"] == fetched["updated_at"] == T0
        assert fetched["daily"] == [
            {"date": "2024-06-01", "temp_max": 25.0, "temp_min": 11.0, "weather_code": 1},
            {"date": "2024-06-02", "temp_max": 27.5, "temp_min": 12.0, "weather_code": None},
        ]

    def test_get_missing_raises(self, db):
        with pytest.raises(RecordNotFound):
            get_record(db, 999)

    def test_replace_keeps_id_and_created_at(self, db):
        created = save_record(db, _fields(), now=T0)
        later = T0 + timedelta(minutes=5)

        updated = replace_record(
            db, created.id, _fields(location_query="Boulder", units="imperial", daily=[]), now=later
        )

        assert updated.id == created.id
        assert updated.created_at == T0
        assert updated.updated_at == later
        assert updated.location_query == "Boulder"
        assert updated.units == "imperial"
        assert record_to_dict(updated)["daily"] == []

    def test_replace_missing_raises(self, db):
        with pytest.raises(RecordNotFound):
            replace_record(db, 42, _fields())

    def test_delete_then_get_raises(self, db):
        created = save_record(db, _fields())
        delete_record(db, created.id)

        with pytest.raises(RecordNotFound):
            get_record(db, created.id)
        with pytest.raises(RecordNotFound):
            delete_record(db, created.id)

    def test_ids_are_not_reused_after_delete(self, db):
        first = save_record(db, _fields())
        delete_record(db, first.id)
        second = save_record(db, _fields())

        assert second.id > first.id

    def test_list_is_newest_first(self, db):
        old = save_record(db, _fields(location_query="old"), now=T0)
        new = save_record(db, _fields(location_query="new"), now=T0 + timedelta(hours=1))
        mid = save_record(db, _fields(location_query="mid"), now=T0 + timedelta(minutes=30))

        assert [r.id for r in list_records(db)] == [new.id, mid.id, old.id]
        assert [r.id for r in list_records(db, limit=1, offset=1)] == [mid.id]


class TestPipelines:
    @pytest.mark.asyncio
    async def test_create_resolves_fetches_and_persists(self, db, geocoder, weather):
        payload = RecordCreate(location="Denver", start_date="2024-06-13", end_date="2024-06-16", units="imperial")
        rec = await create_record(db, payload, geocoder, weather, today=TODAY)

        out = record_to_dict(get_record(db, rec.id))
        assert out["location_name"] == "Denver, Colorado, United States"
        assert out["units"] == "imperial"
        assert [d["date"] for d in out["daily"]] == ["2024-06-13", "2024-06-14", "2024-06-15", "2024-06-16"]

    @pytest.mark.asyncio
    async def test_validation_happens_before_network(self, db, geocoder, weather, fake_upstream):
        payload = RecordCreate(location="Denver", start_date="2024-01-01", end_date="2024-03-01")
        with pytest.raises(RangeTooLarge):
            await create_record(db, payload, geocoder, weather, today=TODAY)

        assert fake_upstream.requests == []
        assert db.query(models.WeatherRequest).count() == 0

    @pytest.mark.asyncio
    async def test_upstream_failure_persists_nothing(self, db, geocoder, weather, fake_upstream):
        fake_upstream.fail_hosts.add("archive-api.open-meteo.com")
        payload = RecordCreate(location="Denver", start_date="2024-06-01", end_date="2024-06-05")

        with pytest.raises(UpstreamServiceError):
            await create_record(db, payload, geocoder, weather, today=TODAY)
        assert db.query(models.WeatherRequest).count() == 0

    @pytest.mark.asyncio
    async def test_unknown_location_persists_nothing(self, db, geocoder, weather, fake_upstream):
        fake_upstream.geocoding_results = []
        payload = RecordCreate(location="Nowhere", start_date="2024-06-01", end_date="2024-06-05")

        with pytest.raises(LocationNotFound):
            await create_record(db, payload, geocoder, weather, today=TODAY)
        assert db.query(models.WeatherRequest).count() == 0

    @pytest.mark.asyncio
    async def test_update_replaces_series_and_keeps_units_by_default(self, db, geocoder, weather):
        rec = save_record(db, _fields(units="imperial"), now=T0)

        payload = RecordUpdate(location="10.5, 20.25", start_date="2024-06-20", end_date="2024-06-21")
        updated = await update_record(db, rec.id, payload, geocoder, weather, today=TODAY)

        assert updated.id == rec.id
        assert updated.created_at == T0
        assert updated.updated_at > T0
        assert updated.units == "imperial"
        assert updated.location_name == "Coordinates (10.5, 20.25)"
        assert [d["date"] for d in record_to_dict(updated)["daily"]] == ["2024-06-20", "2024-06-21"]

    @pytest.mark.asyncio
    async def test_update_missing_record_checks_existence_first(self, db, geocoder, weather, fake_upstream):
        payload = RecordUpdate(location="Denver", start_date="bad", end_date="2024-06-21")
        with pytest.raises(RecordNotFound):
            await update_record(db, 123, payload, geocoder, weather, today=TODAY)
        assert fake_upstream.requests == []
