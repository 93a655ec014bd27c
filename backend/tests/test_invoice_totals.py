"""
Unit tests per il calcolo dei totali e la numerazione delle fatture.

Funzioni pure: nessun mock necessario.
"""

from datetime import date
from decimal import Decimal

import pytest

from devpilot.core.exceptions import ConflictError
from devpilot.schemas.invoice import InvoiceItemBase
from devpilot.services.invoice_totals import (
    calculate_invoice_totals,
    calculate_item_amount,
    format_invoice_number,
    next_invoice_number,
    round2,
)


# ============================================================
# Tests per i totali
# ============================================================


class TestInvoiceTotals:
    """Tests per calculate_invoice_totals."""

    def test_standard_invoice(self):
        """12 ore a 150 con imposta 8%: 1800 + 144 = 1944."""
        totals = calculate_invoice_totals(
            [{"qty": 12, "rate": 150}],
            tax_rate=8,
            discount=0,
        )

        assert totals.subtotal == Decimal("1800.00")
        assert totals.tax == Decimal("144.00")
        assert totals.discount == Decimal("0.00")
        assert totals.total == Decimal("1944.00")

    def test_multiple_items_with_discount(self):
        totals = calculate_invoice_totals(
            [
                {"qty": Decimal("10"), "rate": Decimal("150")},
                {"qty": Decimal("2.5"), "rate": Decimal("80")},
            ],
            tax_rate=Decimal("10"),
            discount=Decimal("100"),
        )

        assert totals.subtotal == Decimal("1700.00")
        assert totals.tax == Decimal("170.00")
        assert totals.total == Decimal("1770.00")

    def test_discount_larger_than_total_gives_negative_total(self):
        """Nessun clamp: il totale può diventare negativo."""
        totals = calculate_invoice_totals(
            [{"qty": 1, "rate": 100}],
            tax_rate=0,
            discount=250,
        )

        assert totals.total == Decimal("-150.00")

    def test_empty_items(self):
        totals = calculate_invoice_totals([], tax_rate=20, discount=0)

        assert totals.subtotal == Decimal("0.00")
        assert totals.tax == Decimal("0.00")
        assert totals.total == Decimal("0.00")

    def test_accepts_pydantic_items(self):
        items = [
            InvoiceItemBase(description="Sviluppo", qty=Decimal("3"), rate=Decimal("33.33")),
        ]

        totals = calculate_invoice_totals(items, tax_rate=0)

        assert totals.subtotal == Decimal("99.99")

    def test_accepts_quantity_alias(self):
        totals = calculate_invoice_totals([{"quantity": 2, "rate": "49.995"}])

        assert totals.subtotal == Decimal("99.99")

    def test_missing_rate_raises(self):
        with pytest.raises(KeyError):
            calculate_invoice_totals([{"qty": 1}])

    def test_total_is_sum_of_rounded_parts(self):
        totals = calculate_invoice_totals(
            [{"qty": "1", "rate": "10.005"}, {"qty": "3", "rate": "0.333"}],
            tax_rate="7.5",
            discount="0.125",
        )

        assert totals.total == round2(totals.subtotal + totals.tax - totals.discount)


# ============================================================
# Tests per l'arrotondamento
# ============================================================


class TestRounding:
    """ROUND_HALF_UP a due decimali."""

    def test_half_up(self):
        assert round2(Decimal("2.675")) == Decimal("2.68")
        assert round2(Decimal("2.665")) == Decimal("2.67")
        assert round2(Decimal("-2.675")) == Decimal("-2.68")

    def test_float_input_goes_through_str(self):
        # 2.675 come float vale 2.67499999...
        assert round2(2.675) == Decimal("2.68")

    def test_tax_uses_unrounded_subtotal(self):
        """
        subtotal grezzo 10.005 → 10.01, ma l'imposta al 10% è calcolata
        su 10.005 (1.0005 → 1.00) e non su 10.01 (1.001 → 1.00).
        Con 50% la differenza è visibile: 5.0025 → 5.00 contro 5.005 → 5.01.
        """
        totals = calculate_invoice_totals([{"qty": 1, "rate": "10.005"}], tax_rate=50)

        assert totals.subtotal == Decimal("10.01")
        assert totals.tax == Decimal("5.00")
        assert totals.total == Decimal("15.01")

    def test_item_amount(self):
        assert calculate_item_amount(Decimal("1.5"), Decimal("33.333")) == Decimal("50.00")
        assert calculate_item_amount(3, "0.125") == Decimal("0.38")


# ============================================================
# Tests per la numerazione
# ============================================================


class TestInvoiceNumbering:
    """Formato PREFIX-YYYYMM-NNNN."""

    def test_format(self):
        assert format_invoice_number("DP", date(2026, 3, 5), 7) == "DP-202603-0007"

    def test_first_number_of_month(self):
        assert next_invoice_number("DP", date(2026, 10, 19), None) == "DP-202610-0001"

    def test_increment(self):
        assert next_invoice_number("DP", date(2026, 10, 19), "DP-202610-0041") == "DP-202610-0042"

    def test_new_month_restarts(self):
        """Un numero del mese precedente non influenza la sequenza."""
        assert next_invoice_number("DP", date(2026, 11, 1), "DP-202610-0041") == "DP-202611-0001"

    def test_sequence_overflow(self):
        with pytest.raises(ConflictError):
            next_invoice_number("DP", date(2026, 10, 19), "DP-202610-9999")

    def test_sequence_out_of_range(self):
        with pytest.raises(ConflictError):
            format_invoice_number("DP", date(2026, 10, 19), 0)

    def test_unparseable_last_number(self):
        with pytest.raises(ConflictError):
            next_invoice_number("DP", date(2026, 10, 19), "DP-202610-00X1")
