# Overview: Reverse geocoding of scan/report coordinates through OpenStreetMap Nominatim.

from __future__ import annotations

import httpx
from flask import current_app


UNKNOWN_LOCATION = "Unknown location"


def _coordinate(value, low: float, high: float) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not low <= parsed <= high:
        return None
    return parsed


def parse_coordinates(latitude, longitude) -> tuple[float | None, float | None]:
    """Valid (lat, lon) floats, or (None, None) when either is missing or out of range."""
    lat = _coordinate(latitude, -90.0, 90.0)
    lon = _coordinate(longitude, -180.0, 180.0)
    if lat is None or lon is None:
        return None, None
    return lat, lon


def format_place(payload: dict) -> str | None:
    """Short "city, state, country" label from a Nominatim response."""
    address = payload.get("address") or {}
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("suburb")
        or address.get("county")
    )
    parts = [part for part in (city, address.get("state"), address.get("country")) if part]
    if parts:
        return ", ".join(parts)
    return payload.get("display_name") or None


def reverse_geocode(latitude, longitude, transport: httpx.BaseTransport | None = None) -> str:
    """
    Place name for a coordinate pair.

    Never raises: missing coordinates, a disabled lookup, a timeout or any
    HTTP failure all give UNKNOWN_LOCATION.
    """
    lat, lon = parse_coordinates(latitude, longitude)
    if lat is None:
        return UNKNOWN_LOCATION

    config = current_app.config
    if not config.get("GEOCODING_ENABLED", True):
        return UNKNOWN_LOCATION

    transport = transport or config.get("GEOCODING_TRANSPORT")
    try:
        with httpx.Client(
            timeout=float(config.get("GEOCODING_TIMEOUT_SECONDS", 8)),
            transport=transport,
            headers={"User-Agent": config.get("GEOCODING_USER_AGENT", "Authentiks/1.0")},
        ) as client:
            response = client.get(
                config["GEOCODING_URL"],
                params={"format": "json", "lat": lat, "lon": lon, "zoom": 10, "addressdetails": 1},
            )
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        current_app.logger.warning("Reverse geocoding failed for (%s, %s): %s", lat, lon, exc)
        return UNKNOWN_LOCATION

    return format_place(payload if isinstance(payload, dict) else {}) or UNKNOWN_LOCATION
