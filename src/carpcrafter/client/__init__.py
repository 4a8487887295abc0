"""Adapters for the external services CarpCrafter talks to."""

from carpcrafter.client.base import GenerationClient
from carpcrafter.client.gemini import GeminiClient
from carpcrafter.client.weather import fetch_weather, weather_code_label

__all__ = ["GeminiClient", "GenerationClient", "fetch_weather", "weather_code_label"]
