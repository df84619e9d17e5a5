"""
Money formatting for user-facing messages.

Usage:
    from app.utils.money import format_money

    format_money(1234.5)            -> "$1,234.50"
    format_money(-50)               -> "-$50.00"
    format_money(Decimal("0"))      -> "$0.00"
"""
from decimal import Decimal, ROUND_HALF_UP


def format_money(amount, symbol: str = "$", decimals: int = 2) -> str:
    """
    Format an amount with thousands separators and a currency symbol.

    Args:
        amount: int / float / Decimal / str
        symbol: currency symbol placed before the number
        decimals: digits after the decimal point
    """
    value = Decimal(str(amount))
    quantum = Decimal(1).scaleb(-decimals)
    value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
