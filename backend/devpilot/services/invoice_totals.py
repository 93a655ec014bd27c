"""
Calcolo importi e numerazione fatture
Progetto: DevPilot (Gestionale Freelance)

Funzioni pure, senza accesso al database: usate sia dal service
delle fatture sia dall'endpoint di anteprima dei totali.

Regole di arrotondamento (ROUND_HALF_UP a 2 decimali):
- subtotal = round(Σ qty * rate)
- tax      = round(Σ qty * rate * tax_rate / 100)   (dalla somma NON arrotondata)
- discount = round(discount)
- total    = round(subtotal + tax - discount)        (può essere negativo)
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Union

from devpilot.core.exceptions import ConflictError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MAX_INVOICE_SEQUENCE = 9999


def to_decimal(value: Optional[Number]) -> Decimal:
    """Converte un numero in Decimal passando da str (niente artefatti float)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Arrotonda a 2 decimali con ROUND_HALF_UP."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    """Importi aggregati di una fattura, già arrotondati."""
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


def _item_value(item: Any, *names: str) -> Any:
    # Accetta sia dict sia oggetti (modelli ORM, schemi Pydantic)
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    raise KeyError(f"Campo mancante nella riga: {'/'.join(names)}")


def calculate_item_amount(qty: Number, rate: Number) -> Decimal:
    """Importo di una riga: qty * rate arrotondato."""
    return round2(to_decimal(qty) * to_decimal(rate))


def calculate_invoice_totals(
    items: Iterable[Any],
    tax_rate: Number = 0,
    discount: Number = 0,
) -> InvoiceTotals:
    """
    Calcola subtotal, tax, discount e total di una fattura.

    Nessuna validazione: quantità o tariffe negative vengono sommate
    così come sono, e uno sconto maggiore di subtotal + tax produce
    un totale negativo.

    Args:
        items: Righe con campi qty (o quantity) e rate
        tax_rate: Aliquota in percentuale (es. 8 per 8%)
        discount: Sconto in valore assoluto

    Returns:
        InvoiceTotals: Importi arrotondati a 2 decimali
    """
    raw_subtotal = sum(
        (
            to_decimal(_item_value(item, "qty", "quantity")) * to_decimal(_item_value(item, "rate"))
            for item in items
        ),
        Decimal("0"),
    )
    raw_tax = raw_subtotal * (to_decimal(tax_rate) / HUNDRED)

    subtotal = round2(raw_subtotal)
    tax = round2(raw_tax)
    rounded_discount = round2(discount)
    total = round2(subtotal + tax - rounded_discount)

    return InvoiceTotals(
        subtotal=subtotal,
        tax=tax,
        discount=rounded_discount,
        total=total,
    )


# ------------------------------------------------------------
# Numerazione fatture
# ------------------------------------------------------------

def invoice_number_month_prefix(prefix: str, issue_date: date) -> str:
    """Parte fissa del numero per il mese: es. 'DP-202610-'."""
    return f"{prefix}-{issue_date.year:04d}{issue_date.month:02d}-"


def format_invoice_number(prefix: str, issue_date: date, sequence: int) -> str:
    """
    Formatta il numero fattura PREFIX-YYYYMM-NNNN.

    Raises:
        ConflictError: Se la sequenza esce dall'intervallo 1..9999
    """
    if sequence < 1 or sequence > MAX_INVOICE_SEQUENCE:
        raise ConflictError(
            f"Limite numerazione fatture raggiunto per il mese "
            f"{issue_date.year:04d}-{issue_date.month:02d}"
        )
    return f"{invoice_number_month_prefix(prefix, issue_date)}{sequence:04d}"


def next_invoice_number(prefix: str, issue_date: date, last_number: Optional[str]) -> str:
    """
    Calcola il numero successivo all'ultimo emesso nello stesso mese.

    Args:
        prefix: Prefisso configurato (es. "DP")
        issue_date: Data di emissione della nuova fattura
        last_number: Ultimo numero del mese (None se è la prima fattura)

    Returns:
        str: Nuovo numero fattura
    """
    month_prefix = invoice_number_month_prefix(prefix, issue_date)
    if not last_number or not last_number.startswith(month_prefix):
        return format_invoice_number(prefix, issue_date, 1)

    suffix = last_number[len(month_prefix):]
    if not suffix.isdigit():
        raise ConflictError(f"Numero fattura non interpretabile: {last_number}")
    return format_invoice_number(prefix, issue_date, int(suffix) + 1)


__all__ = [
    "InvoiceTotals",
    "calculate_invoice_totals",
    "calculate_item_amount",
    "format_invoice_number",
    "invoice_number_month_prefix",
    "next_invoice_number",
    "round2",
    "to_decimal",
]
