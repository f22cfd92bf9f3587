from __future__ import annotations

from dataclasses import dataclass

ON_FILE = "On File"


@dataclass(frozen=True)
class Consultation:
    """Safety questionnaire captured with a booking.

    Returning clients skip the questionnaire; their medical answers read
    "On File" so the practitioner knows to check the earlier record.
    """

    booking_id: str
    client_type: str  # "New" or "Existing"
    lead_source: str = ""
    skin_conditions: str = ""
    medications: str = ""
    allergies: str = ""
    health_conditions: str = ""
    pregnancy: str = ""
    environmental: str = ""
    physical: str = ""
    hair_length_ok: str = ""
    additional_notes: str = ""
