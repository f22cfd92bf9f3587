from __future__ import annotations

from decimal import Decimal

from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.use_cases.travel_quote import TravelQuoteUseCase
from conftest import FakeClock, FakeDistance, make_store


def _use_case(distance, **settings) -> TravelQuoteUseCase:
    reference = ReferenceData(make_store(**settings), clock=FakeClock())
    return TravelQuoteUseCase(reference, distance)


def test_fee_charges_round_trip_beyond_free_km():
    distance = FakeDistance(12.34)
    uc = _use_case(distance, google_maps_api_key="key", fixed_origin_address="1 Main Rd", call_out_free_km="10")

    quote = uc.quote("12 Long Street")

    # (24.68 - 10) km * 6.3
    assert quote.fee == Decimal("92.48")
    assert quote.one_way_km == 12.3
    assert quote.round_trip_km == 24.7
    assert quote.duration == "18 mins"
    assert distance.calls == [("1 Main Rd", "12 Long Street", "key")]


def test_short_trip_is_free():
    uc = _use_case(FakeDistance(3), google_maps_api_key="key", fixed_origin_address="1 Main Rd", call_out_free_km="10")

    assert uc.quote("Next door").fee == Decimal("0.00")


def test_missing_configuration_reported():
    uc = _use_case(FakeDistance())

    assert uc.quote("12 Long Street").error == "google_maps_api_key not set"
    assert uc.quote("").error == "No address"


def test_no_route_reported():
    uc = _use_case(FakeDistance(None), google_maps_api_key="key", fixed_origin_address="1 Main Rd")

    quote = uc.quote("Atlantis")

    assert quote.fee == Decimal("0.00")
    assert quote.error == "No route found"
