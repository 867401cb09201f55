"""
Money helpers.

Amounts are stored and exchanged as integers in the currency's smallest unit
(paisas, cents). Decimal is used for every intermediate step so that sums never
pick up binary floating point error, and there is exactly one rounding policy:
ROUND_HALF_UP to the nearest smallest unit.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from app.common.exceptions import InvalidAmount

SCALE = 100

Numeric = Union[int, str, Decimal, float]

# (grouping separator, decimal separator) per language family
_LOCALE_SEPARATORS = {
    "en": (",", "."),
    "ur": (",", "."),
    "hi": (",", "."),
    "ja": (",", "."),
    "zh": (",", "."),
    "de": (".", ","),
    "es": (".", ","),
    "it": (".", ","),
    "nl": (".", ","),
    "pt": (".", ","),
    "fr": (" ", ","),
    "sv": (" ", ","),
}


def to_decimal(value: Numeric, field: str = "amount") -> Decimal:
    """Parse a numeric value into Decimal, rejecting anything that is not a finite number."""
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"{field} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, (float, str)):
        text = str(value).strip()
        if not text:
            raise InvalidAmount(f"{field} must be a number, got an empty value")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"{field} must be a number, got {value!r}")
    else:
        raise InvalidAmount(f"{field} must be a number, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmount(f"{field} must be a finite number, got {value!r}")
    return result


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole smallest unit, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_smallest_unit(value: Numeric, field: str = "amount") -> int:
    """Major unit -> smallest unit, e.g. "12.50" -> 1250."""
    return round_half_up(to_decimal(value, field) * SCALE)


def from_smallest_unit(amount: int) -> Decimal:
    """Smallest unit -> major unit, e.g. 1250 -> Decimal("12.50")."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"amount in smallest unit must be an integer, got {amount!r}")
    return (Decimal(amount) / SCALE).quantize(Decimal("0.01"))


def parse_amount(text: str, field: str = "amount") -> int:
    """Parse a human decimal string ("12.50") into the smallest unit."""
    return to_smallest_unit(text, field)


def format_amount(amount: int) -> str:
    """Render an integer amount as a plain decimal string ("12.50")."""
    return str(from_smallest_unit(amount))


def require_non_negative(value: int, field: str = "amount") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{field} must be an integer amount in the smallest unit")
    if value < 0:
        raise InvalidAmount(f"{field} cannot be negative")
    return value


def format_currency(amount: int, currency: str = "PKR", locale: str = "en-PK") -> str:
    """Presentation helper: 125000 -> "PKR 1,250.00" for an English locale."""
    language = (locale or "en").replace("_", "-").split("-")[0].lower()
    grouping, decimal_sep = _LOCALE_SEPARATORS.get(language, _LOCALE_SEPARATORS["en"])

    value = from_smallest_unit(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):,.2f}".split(".")
    whole = whole.replace(",", grouping)
    return f"{sign}{currency.upper()} {whole}{decimal_sep}{fraction}"
