"""
Modello SQLAlchemy per l'entità Client
Progetto: DevPilot (Gestionale Freelance)

Rappresenta l'anagrafica dei clienti del freelance.
"""


from __future__ import annotations
from typing import Any, Optional, TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from devpilot.models.invoice import Invoice
    from devpilot.models.project import Project


class Client(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """
    Modello per l'anagrafica clienti.

    Attributes:
        id: UUID primary key
        user_id: UUID dell'utente proprietario
        name: Nome o ragione sociale (obbligatorio)
        email: Indirizzo email
        phone: Numero di telefono
        billing_address: Indirizzo di fatturazione
            (dict con street, city, state, zip, country)
        default_payment_terms: Giorni di pagamento predefiniti
        created_at: Data/ora creazione record
        updated_at: Data/ora ultimo aggiornamento

    Relationships:
        projects: Progetti del cliente
        invoices: Fatture intestate al cliente
    """

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Nome o ragione sociale",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Numero di telefono",
    )

    billing_address: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Indirizzo di fatturazione strutturato",
    )

    default_payment_terms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=30,
        doc="Termini di pagamento predefiniti (giorni)",
    )

    projects: Mapped[List["Project"]] = relationship(
        "Project",
        back_populates="client",
        lazy="noload",
    )

    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="client",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("default_payment_terms >= 0", name="ck_clients_payment_terms"),
        Index("ix_clients_user_name", "user_id", "name"),
    )

    @property
    def address_lines(self) -> list[str]:
        """Righe dell'indirizzo non vuote, nell'ordine di stampa."""
        if not self.billing_address:
            return []
        keys = ("street", "city", "state", "zip", "country")
        return [str(self.billing_address[k]) for k in keys if self.billing_address.get(k)]

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name!r})>"
