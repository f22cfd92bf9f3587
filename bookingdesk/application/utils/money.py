from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from bookingdesk.domain.entities.booking import Amounts

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(value: object) -> Decimal:
    """Lenient parse for amounts such as 'R1,250.00' or 450. Bad input -> 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        cleaned = re.sub(r"[^0-9.\-]", "", str(value))
        if not cleaned:
            return ZERO
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    if not amount.is_finite():
        return ZERO
    return to_cents(amount)


def minor_units(amount: Decimal) -> int:
    return int(to_cents(amount) * 100)


def compute_amounts(services_total: Decimal, call_out_fee: Decimal, deposit_percent: Decimal) -> Amounts:
    """Deposit is a percentage of the total; balance is whatever remains.

    Deriving the balance by subtraction keeps deposit + balance == total at
    cent precision.
    """
    services_total = max(ZERO, to_cents(services_total))
    call_out_fee = max(ZERO, to_cents(call_out_fee))
    total = services_total + call_out_fee
    percent = min(max(deposit_percent, Decimal("0")), Decimal("100"))
    deposit = to_cents(total * percent / Decimal("100"))
    balance = total - deposit
    return Amounts(
        services_total=services_total,
        call_out_fee=call_out_fee,
        total=total,
        deposit=deposit,
        balance=balance,
    )
