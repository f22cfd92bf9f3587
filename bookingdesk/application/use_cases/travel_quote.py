from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from bookingdesk.application.exceptions import DistanceLookupError
from bookingdesk.application.ports.distance import DistancePort
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.utils.money import ZERO, to_cents
from bookingdesk.application.utils.sanitize import sanitize


@dataclass(frozen=True)
class TravelQuote:
    fee: Decimal
    one_way_km: float | None = None
    round_trip_km: float | None = None
    duration: str | None = None
    error: str | None = None


class TravelQuoteUseCase:
    """Call-out fee for a customer address: billable round-trip km times the per-km rate."""

    def __init__(self, reference: ReferenceData, distance: DistancePort) -> None:
        self._reference = reference
        self._distance = distance
        self._logger = logging.getLogger(__name__)

    def quote(self, address: str | None) -> TravelQuote:
        destination = sanitize(address, 200)
        if not destination:
            return TravelQuote(fee=ZERO, error="No address")

        business = self._reference.business_settings()
        if not business.maps_api_key:
            return TravelQuote(fee=ZERO, error="google_maps_api_key not set")
        if not business.origin_address:
            return TravelQuote(fee=ZERO, error="fixed_origin_address not set")

        try:
            route = self._distance.driving_route(business.origin_address, destination, business.maps_api_key)
        except DistanceLookupError as e:
            self._logger.info("No travel quote", extra={"error": str(e)})
            return TravelQuote(fee=ZERO, error=str(e))

        one_way = Decimal(str(route.distance_km))
        round_trip = one_way * 2
        billable = max(round_trip - business.call_out_free_km, ZERO)
        fee = to_cents(billable * business.call_out_rate_per_km)
        return TravelQuote(
            fee=fee,
            one_way_km=float(round(one_way, 1)),
            round_trip_km=float(round(round_trip, 1)),
            duration=route.duration_text,
        )
