"""
Service per la generazione di PDF con WeasyPrint + Jinja2.
Progetto: DevPilot (Gestionale Freelance)
"""

import logging
import os
from decimal import Decimal
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from devpilot.core.config import settings
from devpilot.core.exceptions import ExternalServiceError
from devpilot.models import CompanySettings, Invoice

logger = logging.getLogger(__name__)

# Path alla cartella templates
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")

ITEM_SEPARATOR = " — "
DEFAULT_FOOTER = "Thank you for your business!"


# Lazy import of weasyprint to avoid startup errors if GTK libraries aren't available
def _get_weasyprint():
    """Lazy import of weasyprint to handle missing system libraries gracefully."""
    try:
        from weasyprint import HTML, CSS
        return HTML, CSS
    except OSError as e:
        raise RuntimeError(
            "WeasyPrint dependencies not found. Please install Pango/GTK libraries "
            "(e.g. apt install libpango-1.0-0 libpangoft2-1.0-0)"
        ) from e


def format_amount(value: Any) -> str:
    """1944 → '1,944.00'."""
    return f"{Decimal(value or 0):,.2f}"


def pdf_filename(invoice: Invoice) -> str:
    """Nome del file scaricato: '{invoice_number}.pdf'."""
    return f"{invoice.invoice_number}.pdf"


class PdfService:
    """
    Genera PDF da template HTML/CSS usando WeasyPrint + Jinja2.
    Il chiamante è responsabile di passare un Invoice con client e
    items già caricati.
    """

    def __init__(self):
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["amount"] = format_amount

    def build_context(
        self,
        invoice: Invoice,
        company: Optional[CompanySettings] = None,
    ) -> dict[str, Any]:
        """Dati passati al template della fattura."""
        client = invoice.client
        description = ITEM_SEPARATOR.join(item.description for item in invoice.items)

        show_banking = bool(company and (company.bank_name or company.account_number))

        return {
            "company_name": (company.company_name if company else None) or settings.default_company_name,
            "company_logo": company.company_logo if company else None,
            "invoice": invoice,
            "billed_to_name": client.name if client else "N/A",
            "billed_to_lines": client.address_lines if client else [],
            "description": description or "No description provided",
            "total": invoice.total,
            "currency": invoice.currency,
            "banking_details": company.banking_details if show_banking else [],
            "footer": (company.invoice_footer if company else None) or DEFAULT_FOOTER,
        }

    def render_invoice_html(
        self,
        invoice: Invoice,
        company: Optional[CompanySettings] = None,
    ) -> str:
        template = self.env.get_template("invoice_template.html")
        return template.render(self.build_context(invoice, company))

    def generate_invoice_pdf(
        self,
        invoice: Invoice,
        company: Optional[CompanySettings] = None,
    ) -> bytes:
        """
        Genera il PDF di una fattura.

        Args:
            invoice: Oggetto Invoice con client e items caricati
            company: Impostazioni aziendali dell'utente (opzionali)

        Returns:
            bytes: PDF binario pronto per il download

        Raises:
            ExternalServiceError: Se WeasyPrint non è disponibile
        """
        try:
            HTML, CSS = _get_weasyprint()
        except RuntimeError as e:
            logger.error("Generazione PDF non disponibile: %s", e)
            raise ExternalServiceError("Failed to generate PDF")

        html_out = self.render_invoice_html(invoice, company)
        css = CSS(filename=os.path.join(TEMPLATES_DIR, "invoice_style.css"))

        pdf_bytes = HTML(string=html_out, base_url=TEMPLATES_DIR).write_pdf(stylesheets=[css])
        logger.info("PDF generato per fattura %s (%s byte)", invoice.invoice_number, len(pdf_bytes))
        return pdf_bytes
