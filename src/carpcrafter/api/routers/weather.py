"""Weather lookup for adapting inventions to current conditions."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException, Query, Request

from carpcrafter.client.weather import fetch_weather
from carpcrafter.models.invention import WeatherSnapshot

router = APIRouter()


@router.get("", response_model=WeatherSnapshot)
async def current_weather(
    request: Request,
    latitude: float = Query(ge=-90, le=90),  # noqa: B008
    longitude: float = Query(ge=-180, le=180),  # noqa: B008
) -> WeatherSnapshot:
    """Current conditions at the given coordinates."""
    settings = request.app.state.settings
    try:
        return await fetch_weather(latitude, longitude, base_url=settings.weather_base_url)
    except (httpx.HTTPError, KeyError, TypeError, ValueError):
        raise HTTPException(status_code=502, detail="Failed to fetch weather data") from None
