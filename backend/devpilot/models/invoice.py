"""
Modelli SQLAlchemy per la Fatturazione
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- Invoice: Fattura principale
- InvoiceItem: Righe della fattura (descrizione, quantità, tariffa)
"""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from devpilot.models.client import Client
    from devpilot.models.project import Project


class InvoiceStatus(str, Enum):
    """
    Stati della fattura.

    OVERDUE esiste nel dominio ma non viene mai scritto dal ciclo di vita:
    è calcolato in lettura per le fatture inviate e scadute.
    """
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """
    Modello per le fatture.

    Ciclo di vita: draft → sent (link di pagamento creato) → paid (webhook
    Stripe). Un pagamento fallito riporta/conferma lo stato sent.

    Attributes:
        client_id: UUID del cliente (opzionale a livello di schema)
        project_id: UUID del progetto (opzionale)
        invoice_number: Numero fattura (formato: PREFIX-YYYYMM-NNNN)
        issue_date: Data emissione
        due_date: Data scadenza (opzionale)
        currency: Codice valuta ISO 4217
        status: draft | sent | paid | overdue
        subtotal: Somma delle righe
        tax_rate: Aliquota applicata (percentuale)
        tax: Importo imposta
        discount: Sconto in valore assoluto
        total: subtotal + tax - discount
        stripe_checkout_session_id: Sessione di checkout Stripe
        stripe_payment_intent_id: Payment intent Stripe
        pdf_path: Percorso del PDF archiviato (opzionale)
        extra_metadata: Metadati liberi (colonna "metadata", es. note)

    Relationships:
        client: Cliente intestatario
        project: Progetto di riferimento
        items: Righe della fattura
    """

    __tablename__ = "invoices"

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del cliente intestatario",
    )

    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del progetto di riferimento",
    )

    # ------------------------------------------------------------
    # Colonne Identificazione
    # ------------------------------------------------------------
    invoice_number: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="Numero fattura (formato: PREFIX-YYYYMM-NNNN)",
    )

    issue_date: Mapped[datetime.date] = mapped_column(
        Date,
        nullable=False,
        doc="Data emissione fattura",
    )

    due_date: Mapped[Optional[datetime.date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data scadenza pagamento",
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        doc="Codice valuta ISO 4217 (default da settings.default_currency)",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvoiceStatus.DRAFT.value,
        doc="Stato persistito della fattura",
    )

    # ------------------------------------------------------------
    # Colonne Importi
    # ------------------------------------------------------------
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Somma di qty * rate delle righe",
    )

    tax_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Aliquota imposta applicata (percentuale)",
    )

    tax: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Importo imposta",
    )

    discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Sconto in valore assoluto",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Totale fattura (subtotal + tax - discount, può essere negativo)",
    )

    # ------------------------------------------------------------
    # Colonne Pagamento Stripe
    # ------------------------------------------------------------
    stripe_checkout_session_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="ID della sessione di checkout Stripe",
    )

    stripe_payment_intent_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="ID del payment intent Stripe",
    )

    # ------------------------------------------------------------
    # Colonne Varie
    # ------------------------------------------------------------
    pdf_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    extra_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        doc="Metadati liberi (es. note)",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped[Optional["Client"]] = relationship(
        "Client",
        back_populates="invoices",
        lazy="selectin",
    )

    project: Mapped[Optional["Project"]] = relationship(
        "Project",
        lazy="selectin",
    )

    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItem.position",
        doc="Righe della fattura",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "invoice_number", name="uq_invoices_user_number"),
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'overdue')",
            name="ck_invoices_status",
        ),
        Index("ix_invoices_user_status", "user_id", "status"),
    )

    @property
    def notes(self) -> Optional[str]:
        """Note libere salvate nei metadati."""
        return (self.extra_metadata or {}).get("notes")

    def effective_status(self, today: Optional[datetime.date] = None) -> str:
        """
        Stato da mostrare: una fattura inviata e scaduta risulta overdue.

        Non modifica lo stato persistito.
        """
        today = today or datetime.date.today()
        if (
            self.status == InvoiceStatus.SENT.value
            and self.due_date is not None
            and self.due_date < today
        ):
            return InvoiceStatus.OVERDUE.value
        return self.status

    def __repr__(self) -> str:
        return f"<Invoice(number={self.invoice_number}, status={self.status}, total={self.total})>"


class InvoiceItem(Base, UUIDMixin):
    """
    Riga di una fattura.

    amount è sempre calcolato lato server come qty * rate arrotondato:
    il valore eventualmente inviato dal client non viene mai salvato.
    """

    __tablename__ = "invoice_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID della fattura",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Posizione della riga nella fattura (0-based)",
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)

    qty: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        doc="Quantità",
    )

    rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Tariffa unitaria",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Importo riga derivato (qty * rate)",
    )

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    invoice: Mapped["Invoice"] = relationship(
        "Invoice",
        back_populates="items",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<InvoiceItem(description={self.description!r}, qty={self.qty}, rate={self.rate})>"
