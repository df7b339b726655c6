"""
Weather integration layer for NordChat.

Responsibilities:
- Resolve a free-text location to current conditions
- Try OpenWeatherMap first (needs ``weather_api_key``), then fall back once to
  wttr.in (no key required)
- Report failures as categorized ``CollaboratorError``s

Synchronous ``requests`` calls; each ``weather`` event handler blocks only its
own green thread while the lookup is in flight.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from errors import NOT_FOUND, UNEXPECTED, CollaboratorError, category_for_status, classify_request_error


OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
WTTR_URL = "https://wttr.in/{city}"


@dataclass(frozen=True)
class Forecast:
    location: str
    country: str
    description: str
    temp_c: float
    feels_like_c: float
    humidity: int
    wind_kph: float
    source: str


def _get_json(http: requests.Session, url: str, service: str, timeout: float, **kwargs) -> Any:
    try:
        resp = http.get(url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise CollaboratorError(str(e), classify_request_error(e), service, e) from e
    if resp.status_code >= 400:
        raise CollaboratorError(f"HTTP {resp.status_code}", category_for_status(resp.status_code), service)
    try:
        return resp.json()
    except ValueError as e:
        # wttr.in answers unknown places with a plain-text page.
        raise CollaboratorError("Non-JSON weather response", NOT_FOUND if service == "wttr" else UNEXPECTED, service, e) from e


class WeatherService:
    def __init__(self, api_key: str | None = None, timeout: float = 8.0, session: Optional[requests.Session] = None):
        self.api_key = (api_key or "").strip()
        self.timeout = float(timeout)
        self._http = session or requests.Session()

    def fetch_openweather(self, city: str) -> Forecast:
        data = _get_json(
            self._http,
            OPENWEATHER_URL,
            "openweathermap",
            self.timeout,
            params={"q": city, "appid": self.api_key, "units": "metric"},
        )
        try:
            main = data["main"]
            wind_ms = float((data.get("wind") or {}).get("speed") or 0.0)
            return Forecast(
                location=str(data.get("name") or city),
                country=str((data.get("sys") or {}).get("country") or ""),
                description=str(((data.get("weather") or [{}])[0]).get("description") or "n/a"),
                temp_c=float(main["temp"]),
                feels_like_c=float(main.get("feels_like", main["temp"])),
                humidity=int(main.get("humidity") or 0),
                wind_kph=round(wind_ms * 3.6, 1),
                source="OpenWeatherMap",
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise CollaboratorError("Unexpected OpenWeatherMap payload", UNEXPECTED, "openweathermap", e) from e

    def fetch_wttr(self, city: str) -> Forecast:
        data = _get_json(
            self._http,
            WTTR_URL.format(city=quote(city)),
            "wttr",
            self.timeout,
            params={"format": "j1"},
        )
        try:
            cur: Dict[str, Any] = data["current_condition"][0]
            areas = data.get("nearest_area") or []
            area = areas[0] if areas else {}
            return Forecast(
                location=str(((area.get("areaName") or [{}])[0]).get("value") or city),
                country=str(((area.get("country") or [{}])[0]).get("value") or ""),
                description=str(((cur.get("weatherDesc") or [{}])[0]).get("value") or "n/a"),
                temp_c=float(cur["temp_C"]),
                feels_like_c=float(cur.get("FeelsLikeC", cur["temp_C"])),
                humidity=int(cur.get("humidity") or 0),
                wind_kph=float(cur.get("windspeedKmph") or 0.0),
                source="wttr.in",
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise CollaboratorError("Unexpected wttr.in payload", UNEXPECTED, "wttr", e) from e

    def fetch(self, city: str) -> Forecast:
        """Current conditions for ``city``; primary service first, one fallback."""
        primary_error: CollaboratorError | None = None
        if self.api_key:
            try:
                return self.fetch_openweather(city)
            except CollaboratorError as e:
                logging.warning("Primary weather lookup failed for %r (%s); trying fallback", city, e.category)
                primary_error = e

        try:
            return self.fetch_wttr(city)
        except CollaboratorError as e:
            logging.warning("Fallback weather lookup failed for %r (%s)", city, e.category)
            # Report the primary's not-found over whatever the fallback hit.
            if primary_error is not None and primary_error.category == NOT_FOUND:
                raise primary_error
            raise
