"""
Tests for the safety consultation captured at intake and the admin listing.
"""

from __future__ import annotations

from datetime import datetime

from bookingdesk.application.dto.booking_request import BookingRequestDTO
from bookingdesk.application.ports.consultation_store import ConsultationStorePort
from bookingdesk.application.ports.table_store import CONSULTATIONS_TABLE
from bookingdesk.application.use_cases.availability import AvailabilityUseCase
from bookingdesk.application.use_cases.booking_intake import BookingIntakeUseCase
from bookingdesk.application.use_cases.consultations import ConsultationsUseCase, build_consultation
from bookingdesk.domain.entities.consultation import Consultation
from bookingdesk.infrastructure.store.consultation_repository import ConsultationRepository
from conftest import TZ, make_booking

NOW = datetime(2026, 3, 1, 8, 0, tzinfo=TZ)

SAFETY = {
    "skinConditions": "Eczema on <b>forearms</b>",
    "medications": "None",
    "allergies": "Latex",
    "healthConditions": "",
    "environmental": "Outdoor work",
    "physical": "Bad knee",
    "pregnant": False,
    "hairLengthOk": True,
    "additionalInfo": "Prefers mornings",
}


def _form(**overrides) -> BookingRequestDTO:
    payload = {
        "name": "Thandi Mokoena",
        "email": "thandi@example.com",
        "phone": "0821234567",
        "address": "12 Long Street, Cape Town",
        "services": [{"id": "SVC-01"}],
        "date": "2026-03-09",
        "time": "09:00-10:00",
        "source": "Instagram",
    }
    payload.update(overrides)
    return BookingRequestDTO.model_validate(payload)


class BrokenConsultations(ConsultationStorePort):
    def record(self, consultation: Consultation) -> None:
        raise RuntimeError("Consultations table missing")

    def list_all(self) -> list[Consultation]:
        return []


def test_new_client_questionnaire_is_kept_and_sanitized():
    consultation = build_consultation("BK-1", _form(clientType="new", safety=SAFETY))

    assert consultation.client_type == "New"
    assert consultation.lead_source == "Instagram"
    assert consultation.skin_conditions == "Eczema on forearms"
    assert consultation.allergies == "Latex"
    assert consultation.pregnancy == "No"
    assert consultation.hair_length_ok == "Yes"
    assert consultation.environmental == "Outdoor work"
    assert consultation.additional_notes == "Prefers mornings"


def test_existing_client_answers_read_on_file():
    consultation = build_consultation("BK-1", _form(clientType="existing", safety=SAFETY))

    assert consultation.client_type == "Existing"
    assert consultation.skin_conditions == "On File"
    assert consultation.medications == "On File"
    assert consultation.pregnancy == "On File"
    assert consultation.hair_length_ok == ""
    assert consultation.additional_notes == ""


def test_new_client_without_questionnaire_leaves_answers_blank():
    consultation = build_consultation("BK-1", _form(clientType="new"))

    assert consultation.client_type == "New"
    assert consultation.allergies == ""
    assert consultation.pregnancy == "On File"


def _intake(reference, repository, gateway, consultations):
    availability = AvailabilityUseCase(reference, repository, TZ, now=lambda: NOW)
    return BookingIntakeUseCase(
        repository,
        reference,
        availability,
        gateway,
        TZ,
        now=lambda: NOW,
        consultations=consultations,
    )


def test_intake_records_consultation(store, reference, repository, gateway):
    uc = _intake(reference, repository, gateway, ConsultationRepository(store))

    result = uc.submit(_form(clientType="new", safety=SAFETY))

    rows = store.get_rows(CONSULTATIONS_TABLE)
    assert len(rows) == 1
    assert rows[0]["Booking ID"] == result.booking.booking_id
    assert rows[0]["Allergies"] == "Latex"
    assert rows[0]["Hair Length OK"] == "Yes"


def test_intake_succeeds_when_consultation_write_fails(reference, repository, gateway):
    uc = _intake(reference, repository, gateway, BrokenConsultations())

    result = uc.submit(_form(clientType="new", safety=SAFETY))

    assert result.payment_url
    assert repository.find_by_id(result.booking.booking_id).customer_name == "Thandi Mokoena"


def test_listing_joins_bookings_newest_first(store, repository):
    consultations = ConsultationRepository(store)
    repository.create(make_booking("BK-1"))
    consultations.record(Consultation(booking_id="BK-1", client_type="New", allergies="Latex"))
    consultations.record(Consultation(booking_id="BK-GONE", client_type="Existing"))

    entries = ConsultationsUseCase(consultations, repository).list_with_bookings()

    assert [e.consultation.booking_id for e in entries] == ["BK-GONE", "BK-1"]
    assert entries[0].booking is None
    assert entries[1].booking.customer_name == "Thandi Mokoena"
    assert entries[1].consultation.allergies == "Latex"
