#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import secrets
import time
from typing import Any

import httpx
from httpx import ConnectError

from bookingdesk.infrastructure.payments.webhook_verify import sign


def build_payload(booking_id: str, kind: str, payment_id: str) -> dict[str, Any]:
    return {
        "id": f"evt_{secrets.token_hex(8)}",
        "type": "payment.succeeded",
        "payload": {
            "id": payment_id,
            "status": "succeeded",
            "metadata": {"bookingId": booking_id, "type": kind},
        },
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test payment webhook POST")
    parser.add_argument("--url", default="http://127.0.0.1:8001/webhooks/payment")
    parser.add_argument("--booking", required=True, help="Booking ID to confirm")
    parser.add_argument("--kind", default="deposit", choices=["deposit", "balance"])
    parser.add_argument("--payment-id", default="p_local_test")
    parser.add_argument("--secret", default="", help="Webhook signing secret (whsec_...)")
    args = parser.parse_args()

    payload = build_payload(args.booking, args.kind, args.payment_id)
    body = json.dumps(payload).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    if args.secret:
        msg_id = f"msg_{secrets.token_hex(8)}"
        timestamp = str(int(time.time()))
        headers["webhook-id"] = msg_id
        headers["webhook-timestamp"] = timestamp
        headers["webhook-signature"] = f"v1,{sign(body, msg_id, timestamp, args.secret)}"

    try:
        resp = httpx.post(args.url, content=body, headers=headers, timeout=10.0)
    except ConnectError:
        print("Connection refused. Is the FastAPI server running?")
        print("Try: uvicorn bookingdesk.main:app --reload --port 8001")
        return

    print(f"Status: {resp.status_code}")
    print(resp.text)


if __name__ == "__main__":
    main()
