from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from invoicepdf.utils.validators import (
    totals_consistent,
    validate_date,
    validate_money,
    validate_non_negative_money,
    validate_quantity,
    validate_required,
)


class TestValidateMoney:
    def test_string(self):
        assert validate_money("12.50") == Decimal("12.50")

    def test_float_keeps_literal(self):
        assert validate_money(1.005) == Decimal("1.005")

    def test_int(self):
        assert validate_money(3) == Decimal("3")

    def test_none(self):
        with pytest.raises(ValueError, match="required"):
            validate_money(None, "subtotal")

    def test_not_numeric(self):
        with pytest.raises(ValueError, match="invalid numeric"):
            validate_money("abc")

    def test_infinite(self):
        with pytest.raises(ValueError):
            validate_money("Infinity")

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            validate_money(True)

    def test_non_negative(self):
        assert validate_non_negative_money("0", "x") == Decimal("0")
        with pytest.raises(ValueError, match="negative"):
            validate_non_negative_money("-0.01", "x")


class TestValidateQuantity:
    def test_valid(self):
        assert validate_quantity(3) == 3
        assert validate_quantity("4") == 4
        assert validate_quantity(0) == 0

    def test_fractional(self):
        with pytest.raises(ValueError):
            validate_quantity("1.5")

    def test_negative(self):
        with pytest.raises(ValueError, match="negative"):
            validate_quantity(-2)


class TestValidateDate:
    def test_iso_date(self):
        assert validate_date("2024-03-12") == date(2024, 3, 12)

    def test_iso_timestamp(self):
        assert validate_date("2024-03-12T10:30:00") == datetime(2024, 3, 12, 10, 30)

    def test_date_object(self):
        d = date(2024, 1, 1)
        assert validate_date(d) is d

    def test_invalid(self):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            validate_date("2024-13-01")

    def test_wrong_type(self):
        with pytest.raises(ValueError):
            validate_date(20240101)


class TestValidateRequired:
    def test_strips(self):
        assert validate_required("  INV-1 ", "n") == "INV-1"

    def test_empty(self):
        with pytest.raises(ValueError, match="invoice_number: required"):
            validate_required("   ", "invoice_number")


class TestTotalsConsistent:
    def test_with_tax(self):
        assert totals_consistent(Decimal("100"), Decimal("10"), Decimal("110"))

    def test_without_tax(self):
        assert totals_consistent(Decimal("100"), None, Decimal("100.00"))

    def test_mismatch(self):
        assert not totals_consistent(Decimal("100"), Decimal("10"), Decimal("100"))

    def test_mixed_types(self):
        assert totals_consistent(Decimal("100"), 10.0, Decimal("110"))
        assert totals_consistent(100, "10", 110.0)

    def test_not_numeric(self):
        with pytest.raises(ValueError, match="tax"):
            totals_consistent(Decimal("100"), "ten", Decimal("110"))
