from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SafetyDTO(BaseModel):
    """Safety questionnaire answered by first-time clients."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    skin_conditions: Any = Field(default=None, alias="skinConditions")
    medications: Any = None
    allergies: Any = None
    health_conditions: Any = Field(default=None, alias="healthConditions")
    environmental: Any = None
    physical: Any = None
    pregnant: Any = None
    hair_length_ok: Any = Field(default=None, alias="hairLengthOk")
    additional_info: Any = Field(default=None, alias="additionalInfo")


class BookingRequestDTO(BaseModel):
    """Booking form as posted by the client. Values are validated by intake, not here."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Any = None
    email: Any = None
    phone: Any = None
    address: Any = None
    services: list[Any] = Field(default_factory=list)
    date: Any = None
    time: Any = None
    call_out_fee: Any = Field(default=None, alias="callOutFee")
    one_way_km: Any = Field(default=None, alias="oneWayKm")
    round_trip_km: Any = Field(default=None, alias="roundTripKm")
    notes: Any = None
    source: Any = None
    client_type: Any = Field(default=None, alias="clientType")
    safety: SafetyDTO | None = None
