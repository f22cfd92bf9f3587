from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Route:
    distance_km: float
    duration_text: str


class DistancePort(ABC):
    @abstractmethod
    def driving_route(self, origin: str, destination: str, api_key: str) -> Route:
        """One-way driving route. Raises DistanceLookupError when no route is found."""
        raise NotImplementedError
