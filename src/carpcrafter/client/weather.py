"""Open-Meteo lookup of current conditions at the angler's location."""

from __future__ import annotations

import httpx

from carpcrafter.models.invention import WeatherSnapshot

# WMO weather interpretation codes, grouped the way anglers care about them.
_WMO_LABELS: tuple[tuple[frozenset[int], str], ...] = (
    (frozenset({0}), "Clear Sky"),
    (frozenset({1, 2, 3}), "Partly Cloudy"),
    (frozenset({45, 48}), "Foggy"),
    (frozenset({51, 53, 55}), "Drizzle"),
    (frozenset({61, 63, 65}), "Rain"),
    (frozenset({71, 73, 75}), "Snow"),
    (frozenset({80, 81, 82}), "Showers"),
    (frozenset({95, 96, 99}), "Thunderstorm"),
)


def weather_code_label(code: int) -> str:
    for codes, label in _WMO_LABELS:
        if code in codes:
            return label
    return "Unknown"


async def fetch_weather(
    latitude: float,
    longitude: float,
    *,
    base_url: str = "https://api.open-meteo.com/v1",
    http_client: httpx.AsyncClient | None = None,
) -> WeatherSnapshot:
    """Fetch current temperature, wind, pressure and sky condition.

    Raises ``httpx.HTTPError`` on transport or status failures, and
    ``KeyError``, ``TypeError`` or ``ValueError`` when the payload is not the
    expected shape.
    """
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "current": "temperature_2m,surface_pressure,wind_speed_10m,weather_code",
    }
    url = f"{base_url.rstrip('/')}/forecast"
    if http_client is None:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(url, params=params)
    else:
        response = await http_client.get(url, params=params)
    response.raise_for_status()
    current = response.json()["current"]
    return WeatherSnapshot(
        temperature=current["temperature_2m"],
        wind_speed=current["wind_speed_10m"],
        pressure=current["surface_pressure"],
        condition=weather_code_label(int(current["weather_code"])),
    )
