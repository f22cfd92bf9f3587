import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from bookingdesk.api.v1.guards import limit_bookings
from bookingdesk.api.v1.schemas import (
    BookingResponseSchema,
    BookingStatusSchema,
    ConfigResponseSchema,
    QuoteResponseSchema,
    ServiceSchema,
)
from bookingdesk.application.dto.booking_request import BookingRequestDTO
from bookingdesk.application.exceptions import (
    BookingNotFoundError,
    BookingValidationError,
    SlotUnavailableError,
    StoreUnavailableError,
)
from bookingdesk.application.use_cases.availability import AvailabilityUseCase
from bookingdesk.application.use_cases.booking_intake import BookingIntakeUseCase
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.use_cases.travel_quote import TravelQuoteUseCase
from bookingdesk.infrastructure.store.booking_repository import BookingRepository
from bookingdesk.wiring.dependencies import (
    get_availability_use_case,
    get_booking_repository,
    get_intake_use_case,
    get_reference_data,
    get_travel_quote_use_case,
)

router = APIRouter()
logger = logging.getLogger(__name__)

UNAVAILABLE = "Service unavailable - please try again"


@router.get("/availability", response_model=dict[str, list[str]])
def availability(
    month: str | None = Query(None),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        return uc.for_month(month)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        logger.exception("Availability failed", extra={"route": "availability", "error": str(e)})
        raise HTTPException(status_code=500, detail=UNAVAILABLE)


@router.get("/services", response_model=list[ServiceSchema])
def services(reference: ReferenceData = Depends(get_reference_data)):
    try:
        catalog = reference.services()
    except StoreUnavailableError as e:
        logger.exception("Service catalog failed", extra={"route": "services", "error": str(e)})
        raise HTTPException(status_code=500, detail=UNAVAILABLE)
    return [
        ServiceSchema(
            id=s.id,
            name=s.name,
            description=s.description,
            price=float(s.price),
            duration=s.duration_minutes,
            category=s.category,
        )
        for s in catalog
    ]


@router.get("/quote", response_model=QuoteResponseSchema, response_model_exclude_none=True)
def quote(
    address: str | None = Query(None),
    uc: TravelQuoteUseCase = Depends(get_travel_quote_use_case),
):
    try:
        result = uc.quote(address)
    except StoreUnavailableError as e:
        logger.exception("Quote failed", extra={"route": "quote", "error": str(e)})
        raise HTTPException(status_code=500, detail=UNAVAILABLE)
    return QuoteResponseSchema(
        fee=float(result.fee),
        oneWayKm=result.one_way_km,
        roundTripKm=result.round_trip_km,
        duration=result.duration,
        error=result.error,
    )


@router.get("/config", response_model=ConfigResponseSchema)
def config(reference: ReferenceData = Depends(get_reference_data)):
    try:
        business = reference.business_settings()
    except StoreUnavailableError as e:
        logger.exception("Config failed", extra={"route": "config", "error": str(e)})
        raise HTTPException(status_code=500, detail=UNAVAILABLE)
    return ConfigResponseSchema(
        deposit_percent=f"{business.deposit_percent.normalize():f}",
        google_maps_api_key=business.maps_api_key,
        app_base_url=business.app_base_url,
    )


@router.post("/bookings", response_model=BookingResponseSchema, dependencies=[Depends(limit_bookings)])
def create_booking(
    req: BookingRequestDTO,
    uc: BookingIntakeUseCase = Depends(get_intake_use_case),
):
    try:
        result = uc.submit(req)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SlotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailableError as e:
        logger.exception("Booking save failed", extra={"route": "bookings", "error": str(e)})
        raise HTTPException(status_code=500, detail="Failed to save booking - please try again")

    amounts = result.booking.amounts
    return BookingResponseSchema(
        bookingId=result.booking.booking_id,
        paymentUrl=result.payment_url,
        paymentError=None if result.payment_url else result.payment_error,
        depositAmount=float(amounts.deposit),
        balanceDue=float(amounts.balance),
    )


@router.get("/bookings/{booking_id}/status", response_model=BookingStatusSchema)
def booking_status(
    booking_id: str,
    repository: BookingRepository = Depends(get_booking_repository),
    reference: ReferenceData = Depends(get_reference_data),
):
    try:
        booking = repository.find_by_id(booking_id)
        app_base = reference.business_settings().app_base_url
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except StoreUnavailableError as e:
        logger.exception("Status lookup failed", extra={"booking_id": booking_id, "error": str(e)})
        raise HTTPException(status_code=500, detail=UNAVAILABLE)

    return BookingStatusSchema(
        bookingId=booking.booking_id,
        depositStatus=booking.deposit_status.value,
        balanceStatus=booking.balance_status.value,
        name=booking.customer_name,
        services=booking.services_label,
        date=booking.date.isoformat(),
        time=booking.time_slot,
        total=float(booking.amounts.total),
        deposit=float(booking.amounts.deposit),
        balance=float(booking.amounts.balance),
        appBase=app_base,
    )
