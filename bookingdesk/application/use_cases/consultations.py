from __future__ import annotations

from dataclasses import dataclass

from bookingdesk.application.dto.booking_request import BookingRequestDTO
from bookingdesk.application.ports.booking_store import BookingStorePort
from bookingdesk.application.ports.consultation_store import ConsultationStorePort
from bookingdesk.application.utils.sanitize import sanitize
from bookingdesk.domain.entities.booking import Booking
from bookingdesk.domain.entities.consultation import ON_FILE, Consultation

_TRUTHY = {"true", "yes", "1", "y", "on"}


def build_consultation(booking_id: str, request: BookingRequestDTO) -> Consultation:
    """Consultation record for a booking form.

    Only a new client's questionnaire is kept. Existing clients get "On File"
    for the medical answers whatever they sent.
    """
    is_new = str(request.client_type or "").strip().lower() == "new"
    lead_source = sanitize(request.source, 50)
    safety = request.safety if is_new else None

    if safety is None:
        medical = "" if is_new else ON_FILE
        return Consultation(
            booking_id=booking_id,
            client_type="New" if is_new else "Existing",
            lead_source=lead_source,
            skin_conditions=medical,
            medications=medical,
            allergies=medical,
            health_conditions=medical,
            pregnancy=ON_FILE,
        )

    return Consultation(
        booking_id=booking_id,
        client_type="New",
        lead_source=lead_source,
        skin_conditions=sanitize(safety.skin_conditions, 500),
        medications=sanitize(safety.medications, 500),
        allergies=sanitize(safety.allergies, 500),
        health_conditions=sanitize(safety.health_conditions, 500),
        pregnancy=_yes_no(safety.pregnant),
        environmental=sanitize(safety.environmental, 300),
        physical=sanitize(safety.physical, 300),
        hair_length_ok=_yes_no(safety.hair_length_ok),
        additional_notes=sanitize(safety.additional_info, 500),
    )


def _yes_no(value: object) -> str:
    if isinstance(value, str):
        return "Yes" if value.strip().lower() in _TRUTHY else "No"
    return "Yes" if value else "No"


@dataclass(frozen=True)
class ConsultationEntry:
    consultation: Consultation
    booking: Booking | None


class ConsultationsUseCase:
    def __init__(self, consultations: ConsultationStorePort, bookings: BookingStorePort) -> None:
        self._consultations = consultations
        self._bookings = bookings

    def list_with_bookings(self) -> list[ConsultationEntry]:
        """Newest first, each joined to its booking when that still exists."""
        bookings = {booking.booking_id: booking for booking in self._bookings.list_all()}
        entries = [
            ConsultationEntry(consultation=c, booking=bookings.get(c.booking_id))
            for c in self._consultations.list_all()
        ]
        entries.reverse()
        return entries
