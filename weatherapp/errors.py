"""
User-facing errors.

Each error carries the HTTP status class it maps to, so routes can turn any
WeatherError into an HTTPException without a lookup table.
"""


class WeatherError(RuntimeError):
    """Base class for failures that are reported back to the caller."""
    status_code = 500


class InvalidDateFormat(WeatherError):
    status_code = 400


class DateOrderError(WeatherError):
    status_code = 400


class RangeTooLarge(WeatherError):
    status_code = 400


class MissingLocation(WeatherError):
    status_code = 400


class LocationNotFound(WeatherError):
    status_code = 400


class RecordNotFound(WeatherError):
    status_code = 404


class UpstreamServiceError(WeatherError):
    """Geocoding or weather data service unreachable or returned non-200."""
    status_code = 500
