"""
Service Layer per la Fatturazione
Progetto: DevPilot (Gestionale Freelance)

Ciclo di vita della fattura:

    draft ──request_payment──▶ sent ──mark_paid──▶ paid
                               ▲  │
                               └──┘ mark_payment_failed

- create_draft: validazione, calcolo totali, numerazione mensile, salvataggio
- request_payment: crea la sessione di checkout e porta la fattura a sent
- mark_paid / mark_payment_failed: chiamati dal webhook, ricerca per
  riferimento del processore di pagamento (mai per ID fattura)

Lo stato overdue non viene mai scritto: è calcolato in lettura.
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.config import settings
from devpilot.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from devpilot.models import Client, Invoice, InvoiceItem, InvoiceStatus, Project
from devpilot.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceUpdate
from devpilot.schemas.payment import CheckoutSession
from devpilot.services.invoice_totals import (
    calculate_invoice_totals,
    calculate_item_amount,
    invoice_number_month_prefix,
    next_invoice_number,
    to_decimal,
)

logger = logging.getLogger(__name__)


class CheckoutGateway(Protocol):
    """Interfaccia minima del processore di pagamento usata da request_payment."""

    async def create_checkout_session(self, invoice: Invoice) -> CheckoutSession:
        ...


class InvoiceService:
    """
    Service per la gestione delle fatture.

    I metodi eseguono flush ma non commit: il commit resta ai router,
    così una richiesta corrisponde a una transazione.
    """

    # ------------------------------------------------------------
    # Validazione
    # ------------------------------------------------------------

    @staticmethod
    def _validate_items(items: Sequence[InvoiceItemCreate]) -> None:
        """
        Ogni riga deve avere una descrizione e una tariffa positiva.

        Raises:
            BusinessValidationError: Con l'elenco delle righe non valide
        """
        if not items:
            raise BusinessValidationError("La fattura deve contenere almeno una riga")

        invalid = [
            index + 1
            for index, item in enumerate(items)
            if not (item.description or "").strip() or to_decimal(item.rate) <= 0
        ]
        if invalid:
            raise BusinessValidationError(
                "Compilare descrizione e tariffa (> 0) di tutte le righe",
                extra={"invalid_rows": invalid},
            )

    async def _get_owned_client(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
    ) -> Client:
        result = await db.execute(
            select(Client).where(Client.id == client_id, Client.user_id == user_id)
        )
        client = result.scalar_one_or_none()
        if client is None:
            raise BusinessValidationError(f"Cliente con ID {client_id} non trovato")
        return client

    async def _ensure_owned_project(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: Optional[uuid.UUID],
    ) -> None:
        if project_id is None:
            return
        result = await db.execute(
            select(Project.id).where(Project.id == project_id, Project.user_id == user_id)
        )
        if result.scalar_one_or_none() is None:
            raise BusinessValidationError(f"Progetto con ID {project_id} non trovato")

    # ------------------------------------------------------------
    # Numerazione
    # ------------------------------------------------------------

    async def _generate_invoice_number(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        issue_date: datetime.date,
    ) -> str:
        """
        Genera il numero fattura progressivo mensile.

        Formato: PREFIX-YYYYMM-NNNN (es. DP-202610-0001)

        Logica:
        1. Acquisisce un advisory lock PostgreSQL per (utente, mese)
        2. Cerca l'ultimo numero dell'utente nel mese
        3. Incrementa il progressivo

        Il lock è rilasciato a fine transazione; il vincolo unico
        (user_id, invoice_number) resta l'ultima garanzia.

        Raises:
            ConflictError: Se si supera il limite di 9999 fatture nel mese
        """
        prefix = settings.invoice_number_prefix
        month_prefix = invoice_number_month_prefix(prefix, issue_date)

        await db.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
            {"lock_key": f"invoice-number:{user_id}:{month_prefix}"},
        )

        result = await db.execute(
            select(Invoice.invoice_number)
            .where(
                Invoice.user_id == user_id,
                Invoice.invoice_number.like(f"{month_prefix}%"),
            )
            .order_by(Invoice.invoice_number.desc())
            .limit(1)
        )
        last_number = result.scalar_one_or_none()
        return next_invoice_number(prefix, issue_date, last_number)

    # ------------------------------------------------------------
    # Creazione
    # ------------------------------------------------------------

    async def create_draft(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        data: InvoiceCreate,
    ) -> Invoice:
        """
        Crea una fattura in bozza con le sue righe.

        Steps:
        1. Verifica cliente obbligatorio e righe valide (nulla viene scritto)
        2. Verifica che cliente e progetto appartengano all'utente
        3. Calcola i totali
        4. Assegna il numero del mese
        5. Salva fattura e righe in un unico flush

        Args:
            db: Sessione database
            user_id: Proprietario della fattura
            data: Dati della bozza

        Returns:
            Invoice: La fattura creata, con righe caricate

        Raises:
            BusinessValidationError: Cliente mancante o righe non valide
            ConflictError: Numero fattura già usato o errore database
        """
        if data.client_id is None:
            raise BusinessValidationError("Selezionare un cliente")
        self._validate_items(data.items)

        await self._get_owned_client(db, user_id, data.client_id)
        await self._ensure_owned_project(db, user_id, data.project_id)

        totals = calculate_invoice_totals(data.items, data.tax_rate, data.discount)
        invoice_number = await self._generate_invoice_number(db, user_id, data.issue_date)

        invoice = Invoice(
            user_id=user_id,
            client_id=data.client_id,
            project_id=data.project_id,
            invoice_number=invoice_number,
            issue_date=data.issue_date,
            due_date=data.due_date,
            currency=data.currency or settings.default_currency,
            status=InvoiceStatus.DRAFT.value,
            subtotal=totals.subtotal,
            tax_rate=to_decimal(data.tax_rate),
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
            extra_metadata={"notes": data.notes},
        )
        invoice.items = self._build_items(data.items)

        try:
            db.add(invoice)
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore di integrità durante creazione fattura: %s", e.orig)
            await db.rollback()
            raise ConflictError(f"Numero fattura {invoice_number} già utilizzato")
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione fattura: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione della fattura")

        logger.info(
            "Creata fattura %s (%s) totale %s %s",
            invoice.invoice_number, invoice.id, invoice.total, invoice.currency,
        )
        return await self.get_by_id(db, user_id, invoice.id)

    @staticmethod
    def _build_items(items: Sequence[InvoiceItemCreate]) -> list[InvoiceItem]:
        """Righe ORM con amount derivato lato server, nell'ordine ricevuto."""
        return [
            InvoiceItem(
                description=item.description.strip(),
                qty=to_decimal(item.qty),
                rate=to_decimal(item.rate),
                amount=calculate_item_amount(item.qty, item.rate),
                position=position,
            )
            for position, item in enumerate(items)
        ]

    # ------------------------------------------------------------
    # Pagamento
    # ------------------------------------------------------------

    async def request_payment(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: uuid.UUID,
        gateway: CheckoutGateway,
    ) -> str:
        """
        Crea il link di pagamento e porta la fattura a sent.

        Gli errori del processore (ExternalServiceError) vengono propagati
        senza modificare la fattura.

        Returns:
            str: URL della pagina di pagamento

        Raises:
            NotFoundError: Se la fattura non esiste
            ExternalServiceError: Se il processore rifiuta la richiesta
        """
        invoice = await self.get_by_id(db, user_id, invoice_id)

        session = await gateway.create_checkout_session(invoice)

        invoice.stripe_checkout_session_id = session.id
        if session.payment_intent_id:
            invoice.stripe_payment_intent_id = session.payment_intent_id
        if invoice.status != InvoiceStatus.PAID.value:
            invoice.status = InvoiceStatus.SENT.value
        await db.flush()

        logger.info(
            "Sessione di checkout %s creata per fattura %s",
            session.id, invoice.invoice_number,
        )
        return session.url

    async def _find_by_processor_ref(
        self,
        db: AsyncSession,
        processor_ref: Optional[str],
        checkout_session_id: Optional[str] = None,
    ) -> Optional[Invoice]:
        refs = [ref for ref in (processor_ref, checkout_session_id) if ref]
        if not refs:
            return None
        result = await db.execute(
            select(Invoice)
            .where(
                or_(
                    Invoice.stripe_payment_intent_id.in_(refs),
                    Invoice.stripe_checkout_session_id.in_(refs),
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def mark_paid(
        self,
        db: AsyncSession,
        processor_ref: Optional[str],
        checkout_session_id: Optional[str] = None,
    ) -> Optional[Invoice]:
        """
        Segna come pagata la fattura collegata al riferimento del processore.

        Idempotente: una seconda consegna dello stesso evento riscrive
        paid e aggiorna solo updated_at. Se nessuna fattura corrisponde
        non viene scritto nulla.

        Args:
            db: Sessione database
            processor_ref: ID del payment intent (o della sessione)
            checkout_session_id: ID della sessione di checkout, se noto

        Returns:
            La fattura aggiornata, oppure None
        """
        invoice = await self._find_by_processor_ref(db, processor_ref, checkout_session_id)
        if invoice is None:
            logger.warning(
                "Nessuna fattura per il riferimento di pagamento %s (sessione %s)",
                processor_ref, checkout_session_id,
            )
            return None

        if processor_ref and not invoice.stripe_payment_intent_id and processor_ref != checkout_session_id:
            invoice.stripe_payment_intent_id = processor_ref
        invoice.status = InvoiceStatus.PAID.value
        invoice.updated_at = datetime.datetime.now(datetime.timezone.utc)
        await db.flush()

        logger.info("Fattura %s segnata come pagata", invoice.invoice_number)
        return invoice

    async def mark_payment_failed(
        self,
        db: AsyncSession,
        processor_ref: Optional[str],
    ) -> Optional[Invoice]:
        """
        Pagamento fallito: la fattura resta (o torna) sent.

        Una fattura già pagata non viene mai riportata a sent.

        Returns:
            La fattura, oppure None se il riferimento è sconosciuto
        """
        invoice = await self._find_by_processor_ref(db, processor_ref)
        if invoice is None:
            logger.warning("Nessuna fattura per il pagamento fallito %s", processor_ref)
            return None

        if invoice.status == InvoiceStatus.PAID.value:
            logger.warning(
                "Pagamento fallito ignorato per fattura %s già pagata", invoice.invoice_number,
            )
            return invoice

        invoice.status = InvoiceStatus.SENT.value
        invoice.updated_at = datetime.datetime.now(datetime.timezone.utc)
        await db.flush()

        logger.info("Pagamento fallito per fattura %s", invoice.invoice_number)
        return invoice

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        status_filter: Optional[InvoiceStatus] = None,
        client_id: Optional[uuid.UUID] = None,
        project_id: Optional[uuid.UUID] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[Invoice], int]:
        """
        Recupera la lista paginata delle fatture, più recenti per prime.

        Il filtro overdue seleziona le fatture sent con scadenza passata.

        Returns:
            Tuple di (lista fatture, totale count)
        """
        conditions: list[Any] = [Invoice.user_id == user_id]

        if client_id:
            conditions.append(Invoice.client_id == client_id)
        if project_id:
            conditions.append(Invoice.project_id == project_id)

        if status_filter is not None:
            status_filter = InvoiceStatus(status_filter)
            today = datetime.date.today()
            if status_filter is InvoiceStatus.OVERDUE:
                conditions.append(Invoice.status == InvoiceStatus.SENT.value)
                conditions.append(Invoice.due_date < today)
            elif status_filter is InvoiceStatus.SENT:
                conditions.append(Invoice.status == InvoiceStatus.SENT.value)
                conditions.append(or_(Invoice.due_date.is_(None), Invoice.due_date >= today))
            else:
                conditions.append(Invoice.status == status_filter.value)

        count_result = await db.execute(
            select(func.count(Invoice.id)).where(*conditions)
        )
        total = count_result.scalar() or 0

        result = await db.execute(
            select(Invoice)
            .where(*conditions)
            .order_by(Invoice.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        invoices = list(result.scalars().all())

        logger.info("Recuperate %s fatture su %s totali (pagina %s)", len(invoices), total, page)
        return invoices, total

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: uuid.UUID,
    ) -> Invoice:
        """
        Recupera una fattura dell'utente con cliente e righe.

        Raises:
            NotFoundError: Se la fattura non esiste
        """
        result = await db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id, Invoice.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            logger.warning("Fattura non trovata: %s", invoice_id)
            raise NotFoundError(f"Fattura con ID {invoice_id} non trovata")
        return invoice

    # ------------------------------------------------------------
    # Modifica
    # ------------------------------------------------------------

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: uuid.UUID,
        data: InvoiceUpdate,
    ) -> Invoice:
        """
        Aggiorna una fattura in bozza.

        Se cambiano righe, aliquota o sconto i totali vengono ricalcolati.

        Raises:
            NotFoundError: Fattura non trovata
            BusinessValidationError: Fattura non in bozza o righe non valide
        """
        invoice = await self.get_by_id(db, user_id, invoice_id)

        if invoice.status != InvoiceStatus.DRAFT.value:
            raise BusinessValidationError(
                f"Solo le bozze sono modificabili (stato attuale: {invoice.status})"
            )

        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("client_id") is not None:
            await self._get_owned_client(db, user_id, update_data["client_id"])
        elif "client_id" in update_data:
            raise BusinessValidationError("Selezionare un cliente")
        if "project_id" in update_data:
            await self._ensure_owned_project(db, user_id, update_data["project_id"])

        for field in ("client_id", "project_id", "issue_date", "due_date"):
            if field in update_data:
                setattr(invoice, field, update_data[field])
        if update_data.get("currency"):
            invoice.currency = update_data["currency"].upper()
        if "notes" in update_data:
            invoice.extra_metadata = {**(invoice.extra_metadata or {}), "notes": update_data["notes"]}

        if data.items is not None or "tax_rate" in update_data or "discount" in update_data:
            if data.items is not None:
                self._validate_items(data.items)
                invoice.items = self._build_items(data.items)

            tax_rate = to_decimal(
                update_data["tax_rate"] if update_data.get("tax_rate") is not None else invoice.tax_rate
            )
            discount = to_decimal(
                update_data["discount"] if update_data.get("discount") is not None else invoice.discount
            )
            totals = calculate_invoice_totals(invoice.items, tax_rate, discount)
            invoice.tax_rate = tax_rate
            invoice.subtotal = totals.subtotal
            invoice.tax = totals.tax
            invoice.discount = totals.discount
            invoice.total = totals.total

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento fattura: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento della fattura")

        logger.info("Aggiornata fattura %s", invoice.invoice_number)
        return await self.get_by_id(db, user_id, invoice_id)

    async def delete(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: uuid.UUID,
    ) -> None:
        """
        Elimina una fattura (le righe sono eliminate in cascata).

        Raises:
            NotFoundError: Fattura non trovata
        """
        invoice = await self.get_by_id(db, user_id, invoice_id)
        await db.delete(invoice)
        await db.flush()
        logger.info("Eliminata fattura %s", invoice.invoice_number)


def preview_totals(items: Sequence[Any], tax_rate: Decimal, discount: Decimal) -> dict[str, Decimal]:
    """Totali calcolati senza persistenza (anteprima del form)."""
    totals = calculate_invoice_totals(items, tax_rate, discount)
    return {
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "discount": totals.discount,
        "total": totals.total,
    }


invoice_service = InvoiceService()
