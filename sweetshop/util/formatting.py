"""Currency and number formatting for Egyptian pound prices."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

CURRENCY = "EGP"


def _fixed(amount: Number, decimals: int) -> str:
    """Round half up to a fixed number of decimals, like a price tag would."""
    quantum = Decimal(1).scaleb(-decimals) if decimals > 0 else Decimal(1)
    return str(Decimal(str(amount)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_egyptian_number(amount: Number, decimals: int = 2) -> str:
    """Format a number with lakh-style grouping.

    The last three digits form one group and the rest are grouped by two,
    so 123456.78 becomes "1,23,456.78".

    Args:
        amount: The amount to format
        decimals: Number of decimal places

    Returns:
        Formatted number string
    """
    fixed = _fixed(amount, decimals)
    sign = ""
    if fixed.startswith("-"):
        sign, fixed = "-", fixed[1:]

    whole, _, fraction = fixed.partition(".")
    last_three = whole[-3:]
    remaining = whole[:-3]

    if remaining:
        groups = []
        while len(remaining) > 2:
            groups.insert(0, remaining[-2:])
            remaining = remaining[:-2]
        groups.insert(0, remaining)
        whole = ",".join(groups) + "," + last_three

    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def format_currency(amount: Number, decimals: int = 2, currency: str = CURRENCY) -> str:
    """Format an amount as "<number> <code>", e.g. 100 -> "100.00 EGP"."""
    return f"{format_egyptian_number(amount, decimals)} {currency}"


def format_lakhs(value: Number, decimals: int = 1) -> str:
    return f"{_fixed(Decimal(str(value)) / 100000, decimals)} {CURRENCY} lakh"


def format_crores(value: Number, decimals: int = 2) -> str:
    return f"{_fixed(Decimal(str(value)) / 10000000, decimals)} {CURRENCY} crore"


def format_smart(value: Number) -> str:
    """Pick crores, lakhs or the plain currency format depending on magnitude."""
    amount = Decimal(str(value))
    if amount >= 10000000:
        return format_crores(value)
    if amount >= 100000:
        return format_lakhs(value)
    return format_currency(value)


def format_price(amount: Number, decimals: int = 2) -> str:
    """Format with thousands grouping and a leading currency code, e.g. "EGP 1,234.00"."""
    quantized = Decimal(_fixed(amount, decimals))
    return f"{CURRENCY} {quantized:,.{decimals}f}"


def mask_card_number(card_number: str) -> str:
    digits = "".join(ch for ch in card_number if ch.isdigit())
    return f"**** **** **** {digits[-4:]}" if digits else ""
