"""
Modello SQLAlchemy per le impostazioni aziendali
Progetto: DevPilot (Gestionale Freelance)

Una riga per utente: intestazione e coordinate bancarie stampate nel PDF.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin


class CompanySettings(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """Impostazioni aziendali dell'utente."""

    __tablename__ = "company_settings"

    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    company_logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    default_hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    invoice_footer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Coordinate bancarie
    bank_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    account_holder: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    account_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    iban: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_company_settings_user"),
    )

    @property
    def banking_details(self) -> list[tuple[str, str]]:
        """Coppie (etichetta, valore) delle coordinate bancarie valorizzate."""
        rows = [
            ("Bank Name", self.bank_name),
            ("Account Number", self.account_number),
            ("Account Holder", self.account_holder),
            ("Account Type", self.account_type),
            ("IBAN", self.iban),
        ]
        return [(label, value) for label, value in rows if value]

    def __repr__(self) -> str:
        return f"<CompanySettings(user_id={self.user_id}, company_name={self.company_name!r})>"
