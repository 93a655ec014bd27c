"""
Schemas Pydantic per il progetto DevPilot

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from devpilot.schemas import ClientRead, InvoiceRead, etc.

from devpilot.schemas.client import (
    BillingAddress,
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
)
from devpilot.schemas.token import TokenPayload
from devpilot.schemas.project import (
    KanbanBoardRead,
    KanbanColumnRead,
    ProjectCreate,
    ProjectList,
    ProjectRead,
    ProjectUpdate,
    TaskCreate,
    TaskMoveRequest,
    TaskRead,
    TaskUpdate,
)
from devpilot.schemas.invoice import (
    CheckoutResponse,
    InvoiceCreate,
    InvoiceIdRequest,
    InvoiceItemCreate,
    InvoiceItemRead,
    InvoiceList,
    InvoiceRead,
    InvoiceUpdate,
    TotalsPreviewRequest,
    TotalsPreviewResponse,
)
from devpilot.schemas.company_settings import (
    CompanySettingsRead,
    CompanySettingsUpdate,
)
from devpilot.schemas.project_workspace import (
    ChatMessageCreate,
    ChatMessageRead,
    NoteCreate,
    NoteRead,
    NoteUpdate,
    ResourceCreate,
    ResourceRead,
)
from devpilot.schemas.planner import PlanRequest, ProjectPlan
from devpilot.schemas.payment import (
    CheckoutSession,
    StripeEvent,
    WebhookAction,
    WebhookEventType,
    WebhookOutcome,
)
from devpilot.schemas.dashboard import DashboardRead, DashboardStats

__all__ = [
    # Client
    "BillingAddress",
    "ClientCreate",
    "ClientList",
    "ClientRead",
    "ClientUpdate",
    # Token
    "TokenPayload",
    # Project / Task
    "KanbanBoardRead",
    "KanbanColumnRead",
    "ProjectCreate",
    "ProjectList",
    "ProjectRead",
    "ProjectUpdate",
    "TaskCreate",
    "TaskMoveRequest",
    "TaskRead",
    "TaskUpdate",
    # Invoice
    "CheckoutResponse",
    "InvoiceCreate",
    "InvoiceIdRequest",
    "InvoiceItemCreate",
    "InvoiceItemRead",
    "InvoiceList",
    "InvoiceRead",
    "InvoiceUpdate",
    "TotalsPreviewRequest",
    "TotalsPreviewResponse",
    # Company settings
    "CompanySettingsRead",
    "CompanySettingsUpdate",
    # Workspace
    "ChatMessageCreate",
    "ChatMessageRead",
    "NoteCreate",
    "NoteRead",
    "NoteUpdate",
    "ResourceCreate",
    "ResourceRead",
    # Planner
    "PlanRequest",
    "ProjectPlan",
    # Payment
    "CheckoutSession",
    "StripeEvent",
    "WebhookAction",
    "WebhookEventType",
    "WebhookOutcome",
    # Dashboard
    "DashboardRead",
    "DashboardStats",
]
