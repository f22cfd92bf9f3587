from __future__ import annotations

import logging

import httpx

from bookingdesk.application.exceptions import DistanceLookupError
from bookingdesk.application.ports.distance import DistancePort, Route
from bookingdesk.core.config import settings


class GoogleDistanceMatrix(DistancePort):
    def __init__(self, base_url: str | None = None, client: httpx.Client | None = None) -> None:
        self._base_url = (base_url or settings.GOOGLE_MAPS_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def driving_route(self, origin: str, destination: str, api_key: str) -> Route:
        try:
            response = self._client.get(
                f"{self._base_url}/distancematrix/json",
                params={
                    "origins": origin,
                    "destinations": destination,
                    "units": "metric",
                    "mode": "driving",
                    "key": api_key,
                },
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._logger.error("Distance lookup failed", extra={"error": str(e)})
            raise DistanceLookupError("Maps: request failed") from e

        status = data.get("status")
        if status != "OK":
            raise DistanceLookupError(f"Maps: {status}")
        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError):
            element = None
        if not element or element.get("status") != "OK":
            raise DistanceLookupError("No route found")

        return Route(
            distance_km=element["distance"]["value"] / 1000,
            duration_text=str((element.get("duration") or {}).get("text") or ""),
        )
