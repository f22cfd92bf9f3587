from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping


def _text(raw: Mapping[str, str], key: str, default: str = "") -> str:
    value = (raw.get(key) or "").strip()
    return value or default


def _decimal(raw: Mapping[str, str], key: str, default: str) -> Decimal:
    value = re.sub(r"[^0-9.\-]", "", raw.get(key) or "")
    try:
        return Decimal(value) if value else Decimal(default)
    except InvalidOperation:
        return Decimal(default)


def _clean_slug(slug: str) -> str:
    slug = re.sub(r"^https?://pay\.yoco\.com/", "", slug)
    return re.sub(r"\?.*$", "", slug).strip()


@dataclass(frozen=True)
class BusinessSettings:
    """Operational settings edited by the business in the Settings table."""

    deposit_percent: Decimal = Decimal("50")
    min_payable_amount: Decimal = Decimal("2.00")
    admin_password: str = ""
    admin_email: str = ""
    email_from: str = ""
    business_name: str = "Bookings"
    currency: str = "ZAR"
    app_base_url: str = "http://localhost:3000"
    booking_success_url: str = ""
    booking_cancel_url: str = ""
    gateway_secret_key: str = ""
    payment_page_slug: str = ""
    calendar_id: str = ""
    maps_api_key: str = ""
    origin_address: str = ""
    call_out_free_km: Decimal = Decimal("0")
    call_out_rate_per_km: Decimal = Decimal("6.3")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, str]) -> "BusinessSettings":
        return cls(
            deposit_percent=_decimal(raw, "deposit_percent", "50"),
            min_payable_amount=_decimal(raw, "min_payable_amount", "2.00"),
            admin_password=_text(raw, "admin_password"),
            admin_email=_text(raw, "admin_email"),
            email_from=_text(raw, "email_from"),
            business_name=_text(raw, "business_name", "Bookings"),
            currency=_text(raw, "currency", "ZAR").upper(),
            app_base_url=_text(raw, "app_base_url", "http://localhost:3000").rstrip("/"),
            booking_success_url=_text(raw, "booking_success_url"),
            booking_cancel_url=_text(raw, "booking_cancel_url"),
            gateway_secret_key=_text(raw, "yoco_secret_key"),
            payment_page_slug=_clean_slug(_text(raw, "yoco_payment_page_slug")),
            calendar_id=_text(raw, "google_calendar_id"),
            maps_api_key=_text(raw, "google_maps_api_key"),
            origin_address=_text(raw, "fixed_origin_address"),
            call_out_free_km=_decimal(raw, "call_out_free_km", "0"),
            call_out_rate_per_km=_decimal(raw, "call_out_rate_per_km", "6.3"),
        )

    def success_url(self, booking_id: str, kind: str = "deposit") -> str:
        if kind == "deposit" and self.booking_success_url:
            return self.booking_success_url
        status = "success" if kind == "deposit" else f"{kind}-success"
        return f"{self.app_base_url}/?payment={status}&ref={booking_id}"

    def cancel_url(self, booking_id: str, kind: str = "deposit") -> str:
        if kind == "deposit" and self.booking_cancel_url:
            return self.booking_cancel_url
        status = "cancelled" if kind == "deposit" else f"{kind}-cancelled"
        return f"{self.app_base_url}/?payment={status}&ref={booking_id}"
