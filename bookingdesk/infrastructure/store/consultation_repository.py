from __future__ import annotations

import logging

from bookingdesk.application.ports.consultation_store import ConsultationStorePort
from bookingdesk.application.ports.table_store import CONSULTATIONS_TABLE, Row, TableStorePort
from bookingdesk.domain.entities.consultation import Consultation

_COLUMNS = (
    ("booking_id", "Booking ID"),
    ("client_type", "Client Type"),
    ("lead_source", "Lead Source"),
    ("skin_conditions", "Skin Conditions"),
    ("medications", "Medications"),
    ("allergies", "Allergies"),
    ("health_conditions", "Health Conditions"),
    ("pregnancy", "Pregnancy"),
    ("environmental", "Environmental Exposure"),
    ("physical", "Physical Factors"),
    ("hair_length_ok", "Hair Length OK"),
    ("additional_notes", "Additional Notes"),
)


class ConsultationRepository(ConsultationStorePort):
    def __init__(self, store: TableStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    def record(self, consultation: Consultation) -> None:
        row = {column: getattr(consultation, field) for field, column in _COLUMNS}
        self._store.append_row(CONSULTATIONS_TABLE, row)
        self._logger.info("Consultation saved", extra={"booking_id": consultation.booking_id})

    def list_all(self) -> list[Consultation]:
        consultations = []
        for row in self._store.get_rows(CONSULTATIONS_TABLE):
            consultation = _from_row(row)
            if consultation is not None:
                consultations.append(consultation)
        return consultations


def _from_row(row: Row) -> Consultation | None:
    values = {field: (row.get(column) or "").strip() for field, column in _COLUMNS}
    if not values["booking_id"]:
        return None
    return Consultation(**values)
