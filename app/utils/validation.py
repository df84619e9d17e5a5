"""
Validation utilities
"""
from decimal import Decimal, InvalidOperation

# Numeric(20, 2): 18 integer digits
MAX_AMOUNT = Decimal("1e18")


def normalize_decimal_input(value: str) -> str:
    """
    Normalize an amount typed by a user: trim and use a dot as decimal separator

    Example:
        >>> normalize_decimal_input(" 100,50 ")
        "100.50"
    """
    return value.strip().replace(",", ".")


def is_blank(value) -> bool:
    """None, empty string or whitespace-only string"""
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value, max_decimal_places: int = 2) -> Decimal:
    """
    Parse a money amount (str / int / float / Decimal) into a Decimal

    Raises:
        ValueError: not a finite number, too many decimal places or too large

    Example:
        >>> parse_amount("100,5")
        Decimal('100.5')
        >>> parse_amount(float("nan"))
        ValueError: Amount must be a finite number
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")

    try:
        if isinstance(value, str):
            amount = Decimal(normalize_decimal_input(value))
        elif isinstance(value, float):
            # str() keeps the shortest repr: 0.1 -> Decimal("0.1")
            amount = Decimal(str(value))
        elif isinstance(value, (int, Decimal)):
            amount = Decimal(value)
        else:
            raise ValueError("Amount must be a number")
    except InvalidOperation:
        raise ValueError("Amount must be a number")

    if not amount.is_finite():
        raise ValueError("Amount must be a finite number")

    if abs(amount) >= MAX_AMOUNT:
        raise ValueError("Amount is too large")

    quantum = Decimal(1).scaleb(-max_decimal_places)
    if amount != amount.quantize(quantum):
        raise ValueError(f"At most {max_decimal_places} decimal places allowed")

    return amount
