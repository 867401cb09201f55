"""
Validators shared by company, client and invoice schemas
"""
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def validate_currency_code(code: str) -> bool:
    """
    ISO 4217 style code: exactly three letters (PKR, USD, EUR).
    """
    return bool(code) and re.fullmatch(r'[A-Za-z]{3}', code) is not None


def validate_locale_tag(tag: str) -> bool:
    """
    BCP 47 style tag with a language and an optional region.
    Valid: en, en-PK, en_PK, de-DE
    """
    if not tag:
        return False
    return re.fullmatch(r'[A-Za-z]{2,3}([-_][A-Za-z]{2}|[-_][0-9]{3})?', tag) is not None


def validate_timezone(name: str) -> bool:
    """IANA timezone name such as Asia/Karachi."""
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def validate_numbering_prefix(prefix: str) -> bool:
    """
    Invoice number prefix: up to 20 letters, digits, dashes, slashes or underscores.
    An empty prefix is allowed (plain numbers).
    """
    return re.fullmatch(r'[A-Za-z0-9\-_/]{0,20}', prefix or '') is not None


def validate_phone(phone: str) -> bool:
    """
    Loose international phone check: optional +, then 7 to 15 digits once
    spaces, dashes and parentheses are removed.
    """
    cleaned = re.sub(r'[\s\-\(\)]', '', phone)
    return re.fullmatch(r'\+?[0-9]{7,15}', cleaned) is not None
