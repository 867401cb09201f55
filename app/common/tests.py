"""
Tests for the shared money helpers and validators
"""

import pytest
from decimal import Decimal

from app.common.exceptions import InvalidAmount
from app.common.money import (
    to_decimal, round_half_up, to_smallest_unit, from_smallest_unit,
    parse_amount, format_amount, format_currency, require_non_negative
)
from app.common.validators import (
    validate_currency_code, validate_locale_tag, validate_timezone,
    validate_numbering_prefix, validate_phone
)
from app.common.middleware import TenantMiddleware


class TestMoney:

    def test_parse_and_format(self):
        assert parse_amount("12.50") == 1250
        assert parse_amount("0.005") == 1
        assert to_smallest_unit(Decimal("19.99")) == 1999
        assert from_smallest_unit(1250) == Decimal("12.50")
        assert format_amount(-5) == "-0.05"

    def test_float_input_has_no_binary_error(self):
        assert to_smallest_unit(0.1) + to_smallest_unit(0.2) == to_smallest_unit("0.3")

    def test_round_half_up(self):
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("2.4999")) == 2
        assert round_half_up(Decimal("-2.5")) == -3

    @pytest.mark.parametrize("value", ["abc", "", None, True, "NaN", "Infinity", [1]])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(InvalidAmount):
            to_decimal(value)

    def test_smallest_unit_must_be_integer(self):
        with pytest.raises(InvalidAmount):
            from_smallest_unit(12.5)
        with pytest.raises(InvalidAmount):
            require_non_negative(-1, "discount")
        assert require_non_negative(0) == 0

    def test_format_currency_by_locale(self):
        assert format_currency(125000, "PKR", "en-PK") == "PKR 1,250.00"
        assert format_currency(123456789, "eur", "de-DE") == "EUR 1.234.567,89"
        assert format_currency(-150, "USD", "en") == "-USD 1.50"
        assert format_currency(100000, "USD", "xx") == "USD 1,000.00"


class TestValidators:

    def test_currency_code(self):
        assert validate_currency_code("PKR")
        assert not validate_currency_code("PK")
        assert not validate_currency_code("PKR1")

    def test_locale_tag(self):
        assert validate_locale_tag("en")
        assert validate_locale_tag("en_PK")
        assert not validate_locale_tag("english")

    def test_timezone(self):
        assert validate_timezone("Asia/Karachi")
        assert not validate_timezone("Mars/Olympus")
        assert not validate_timezone("")

    def test_numbering_prefix(self):
        assert validate_numbering_prefix("INV-")
        assert validate_numbering_prefix("")
        assert not validate_numbering_prefix("INV #")

    def test_phone(self):
        assert validate_phone("+92 (300) 123-4567")
        assert not validate_phone("12345")


class TestTenantMiddleware:

    @pytest.mark.parametrize("path, exempt", [
        ("/", True),
        ("/health", True),
        ("/companies", True),
        ("/companies/", True),
        ("/docs", True),
        ("/openapi.json", True),
        ("/company", False),
        ("/invoices", False),
    ])
    def test_exempt_paths(self, path, exempt):
        assert TenantMiddleware.is_exempt(path) is exempt

    def test_invalid_company_header(self, api_client, auth_headers):
        headers = dict(auth_headers, **{"X-Company-ID": "not-a-uuid"})
        response = api_client.get("/invoices", headers=headers)
        assert response.status_code == 400
