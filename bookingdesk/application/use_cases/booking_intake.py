from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable
from zoneinfo import ZoneInfo

from bookingdesk.application.dto.booking_request import BookingRequestDTO
from bookingdesk.application.exceptions import BookingValidationError, PaymentGatewayError, SlotUnavailableError
from bookingdesk.application.ports.booking_store import BookingStorePort
from bookingdesk.application.ports.consultation_store import ConsultationStorePort
from bookingdesk.application.ports.payment_gateway import CheckoutRequest, PaymentGatewayPort
from bookingdesk.application.use_cases.availability import AvailabilityUseCase
from bookingdesk.application.use_cases.consultations import build_consultation
from bookingdesk.application.use_cases.reference_data import ReferenceData
from bookingdesk.application.utils.civil_time import is_strict_time_range, parse_iso_date
from bookingdesk.application.utils.money import ZERO, compute_amounts, minor_units, parse_money
from bookingdesk.application.utils.sanitize import digits_only, sanitize
from bookingdesk.domain.entities.booking import Booking
from bookingdesk.domain.entities.service_catalog import Service

PHONE_RE = re.compile(r"^0\d{9}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
MAX_SERVICES = 20


@dataclass(frozen=True)
class IntakeResult:
    booking: Booking
    payment_url: str | None = None
    payment_error: str | None = None


@dataclass(frozen=True)
class _Line:
    service_id: str
    name: str
    price: Decimal
    duration_minutes: int


class BookingIntakeUseCase:
    """Validate a booking form, save it as Pending Payment and open a deposit checkout.

    Prices are recomputed from the catalog; client-submitted prices are only
    used for services the catalog does not know. Once the booking is saved
    the request succeeds even if the checkout cannot be created.
    """

    def __init__(
        self,
        bookings: BookingStorePort,
        reference: ReferenceData,
        availability: AvailabilityUseCase,
        gateway: PaymentGatewayPort,
        timezone: ZoneInfo,
        now: Callable[[], datetime] | None = None,
        consultations: ConsultationStorePort | None = None,
    ) -> None:
        self._bookings = bookings
        self._consultations = consultations
        self._reference = reference
        self._availability = availability
        self._gateway = gateway
        self._timezone = timezone
        self._now = now or (lambda: datetime.now(timezone))
        self._logger = logging.getLogger(__name__)

    def submit(self, request: BookingRequestDTO) -> IntakeResult:
        name = sanitize(request.name, 80)
        email = sanitize(request.email, 120)
        phone = digits_only(request.phone)
        address = sanitize(request.address, 200)

        if len(name) < 2:
            raise BookingValidationError("Invalid name")
        if not PHONE_RE.match(phone):
            raise BookingValidationError("Invalid phone number")
        if not EMAIL_RE.match(email):
            raise BookingValidationError("Invalid email")
        if len(address) < 5:
            raise BookingValidationError("Invalid address")
        if not request.services:
            raise BookingValidationError("No services selected")
        if len(request.services) > MAX_SERVICES:
            raise BookingValidationError("Too many services")

        day = parse_iso_date(str(request.date or "").strip())
        if day is None:
            raise BookingValidationError("Invalid date format")
        time_slot = str(request.time or "").strip()
        if not is_strict_time_range(time_slot):
            raise BookingValidationError("Invalid time format")
        now = self._now().astimezone(self._timezone)
        if day < now.date():
            raise BookingValidationError("Date is in the past")

        lines = self._resolve_services(request.services)
        if not lines:
            raise BookingValidationError("No services selected")

        business = self._reference.business_settings()
        call_out_fee = max(parse_money(request.call_out_fee), ZERO)
        amounts = compute_amounts(sum((line.price for line in lines), ZERO), call_out_fee, business.deposit_percent)

        if not self._availability.is_slot_available(day, time_slot):
            raise SlotUnavailableError(f"{day.isoformat()} {time_slot} is no longer available")

        booking = Booking(
            booking_id=self._bookings.new_booking_id(),
            date=day,
            time_slot=time_slot,
            customer_name=name,
            customer_email=email,
            customer_phone=phone,
            customer_address=address,
            amounts=amounts,
            service_ids=tuple(line.service_id for line in lines if line.service_id),
            service_names=tuple(line.name for line in lines if line.name),
            duration_minutes=sum(line.duration_minutes for line in lines),
            one_way_km=_km(request.one_way_km),
            round_trip_km=_km(request.round_trip_km),
            created_at=now,
            notes=sanitize(request.notes, 500),
        )
        self._bookings.create(booking)
        self._reference.invalidate_availability()
        self._logger.info(
            "Booking created",
            extra={"booking_id": booking.booking_id, "date": day.isoformat(), "time": time_slot},
        )
        self._record_consultation(booking.booking_id, request)

        if amounts.deposit < business.min_payable_amount:
            return IntakeResult(
                booking=booking,
                payment_error=f"Deposit below {business.min_payable_amount:.2f} - we will contact you.",
            )

        try:
            session = self._gateway.create_checkout(
                CheckoutRequest(
                    reference=booking.booking_id,
                    amount_cents=minor_units(amounts.deposit),
                    currency=business.currency,
                    success_url=business.success_url(booking.booking_id),
                    cancel_url=business.cancel_url(booking.booking_id),
                    description=f"{business.business_name} deposit - {booking.services_label}",
                    customer_email=email,
                    customer_first_name=booking.first_name,
                    customer_last_name=booking.last_name,
                    customer_phone=phone,
                    metadata={
                        "bookingId": booking.booking_id,
                        "type": "deposit",
                        "serviceDate": day.isoformat(),
                        "serviceTime": time_slot,
                    },
                )
            )
        except PaymentGatewayError as e:
            self._logger.warning(
                "Deposit checkout not created",
                extra={"booking_id": booking.booking_id, "error": str(e)},
            )
            return IntakeResult(booking=booking, payment_error=str(e))

        def with_checkout(current: Booking) -> Booking:
            return replace(
                current,
                checkout_id=session.checkout_id or current.checkout_id,
                payment_link=session.redirect_url,
            )

        result = self._bookings.update(booking.booking_id, with_checkout)
        return IntakeResult(booking=result.booking, payment_url=session.redirect_url)

    def _record_consultation(self, booking_id: str, request: BookingRequestDTO) -> None:
        if self._consultations is None:
            return
        try:
            self._consultations.record(build_consultation(booking_id, request))
        except Exception as e:
            # The booking is already saved; a missing questionnaire is followed up by hand.
            self._logger.warning(
                "Consultation not saved",
                extra={"booking_id": booking_id, "error": str(e)},
            )

    def _resolve_services(self, items: list[Any]) -> list[_Line]:
        catalog = self._reference.services_by_id()
        lines = []
        for item in items:
            if isinstance(item, dict):
                service_id = sanitize(item.get("id"), 40)
                name = sanitize(item.get("name"), 60)
                price = max(parse_money(item.get("price")), ZERO)
                duration = _minutes(item.get("duration"))
            else:
                service_id, name, price, duration = "", sanitize(item, 60), ZERO, 0

            known: Service | None = catalog.get(service_id) if service_id else None
            if known is not None:
                lines.append(_Line(known.id, known.name or name, known.price, known.duration_minutes))
            elif name or service_id:
                lines.append(_Line(service_id, name, price, duration))
        return lines


def _minutes(value: Any) -> int:
    try:
        return max(int(float(value or 0)), 0)
    except (TypeError, ValueError):
        return 0


def _km(value: Any) -> float | None:
    try:
        km = float(value)
    except (TypeError, ValueError):
        return None
    return km if km > 0 else None
