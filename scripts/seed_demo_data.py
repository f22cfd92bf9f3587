#!/usr/bin/env python3
from __future__ import annotations

import argparse

from bookingdesk.application.ports.table_store import (
    AVAILABILITY_TABLE,
    BOOKINGS_TABLE,
    SERVICES_TABLE,
    SETTINGS_TABLE,
)
from bookingdesk.infrastructure.store.json_store import JsonTableStore


DEMO_SETTINGS = {
    "business_name": "Demo Mobile Studio",
    "admin_password": "change-me",
    "admin_email": "owner@example.com",
    "email_from": "bookings@example.com",
    "deposit_percent": "50",
    "min_payable_amount": "2.00",
    "currency": "ZAR",
    "app_base_url": "http://localhost:3000",
    "call_out_free_km": "10",
    "call_out_rate_per_km": "6.3",
}

DEMO_SERVICES = [
    ("SVC-01", "Classic Manicure", "Shape, cuticle care and polish", "250", "45", "Nails"),
    ("SVC-02", "Gel Pedicure", "Soak, scrub and gel finish", "450", "60", "Nails"),
    ("SVC-03", "Full Glam Makeup", "Event makeup with lashes", "550", "90", "Makeup"),
]

WEEKLY_SLOTS = {
    "Monday": ["09:00-10:00", "10:30-11:30", "13:00-14:00"],
    "Tuesday": ["09:00-10:00", "13:00-14:00"],
    "Wednesday": ["09:00-10:00", "10:30-11:30"],
    "Thursday": ["09:00-10:00", "13:00-14:00", "15:00-16:00"],
    "Friday": ["09:00-10:00", "10:30-11:30"],
    "Saturday": ["08:00-09:30", "10:00-11:30"],
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a local JSON table store with demo data")
    parser.add_argument("--data-dir", default="./data/tables")
    parser.add_argument("--keep-bookings", action="store_true", help="Do not clear the Bookings table")
    args = parser.parse_args()

    store = JsonTableStore(data_dir=args.data_dir)
    store.replace_table(
        SETTINGS_TABLE,
        [{"Setting Key": key, "Value": value} for key, value in DEMO_SETTINGS.items()],
    )
    store.replace_table(
        SERVICES_TABLE,
        [
            {
                "ID": sid,
                "Name": name,
                "Description": description,
                "Price": price,
                "Duration (min)": duration,
                "Category": category,
                "Active": "TRUE",
            }
            for sid, name, description, price, duration, category in DEMO_SERVICES
        ],
    )
    store.replace_table(
        AVAILABILITY_TABLE,
        [
            {"Weekday/Date": day, "Time Slot": slot, "Available (YES/NO)": "YES"}
            for day, slots in WEEKLY_SLOTS.items()
            for slot in slots
        ],
    )
    if not args.keep_bookings:
        store.replace_table(BOOKINGS_TABLE, [])

    print(f"Seeded demo tables in {args.data_dir}")


if __name__ == "__main__":
    main()
