"""
Schemas Pydantic per lo spazio di lavoro del progetto
Progetto: DevPilot (Gestionale Freelance)

Note, risorse (solo metadati) e messaggi della chat di progetto.
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -------------------------------------------------------------------
# Note
# -------------------------------------------------------------------

class NoteBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=300, description="Titolo della nota")
    content: Optional[str] = Field(None, description="Contenuto (markdown)")
    tags: list[str] = Field(default_factory=list, description="Etichette")
    task_id: Optional[uuid.UUID] = Field(None, description="Task collegato")
    resource_id: Optional[uuid.UUID] = Field(None, description="Risorsa collegata")

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        # NoteRead ammette None per le note salvate senza etichette
        return _normalize_tags(v) if v is not None else v


def _normalize_tags(tags: list[str]) -> list[str]:
    """Rimuove spazi e duplicati mantenendo l'ordine."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class NoteCreate(NoteBase):
    pass


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    task_id: Optional[uuid.UUID] = None
    resource_id: Optional[uuid.UUID] = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _normalize_tags(v) if v is not None else v


class NoteRead(NoteBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    tags: Optional[list[str]] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


# -------------------------------------------------------------------
# Risorse
# -------------------------------------------------------------------

class ResourceCreate(BaseModel):
    """Metadati di un file già caricato sullo storage esterno."""

    name: str = Field(..., min_length=1, max_length=300)
    file_type: str = Field(..., min_length=1, max_length=100, description="MIME type")
    file_size: Optional[int] = Field(None, ge=0, description="Dimensione in byte")
    file_url: Optional[str] = Field(None, description="URL pubblico")
    storage_path: Optional[str] = Field(None, description="Percorso nello storage")
    task_id: Optional[uuid.UUID] = None


class ResourceRead(ResourceCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    created_at: datetime.datetime


# -------------------------------------------------------------------
# Chat
# -------------------------------------------------------------------

class ChatMessageCreate(BaseModel):
    message: str = Field(..., min_length=1, description="Testo del messaggio")
    resource_id: Optional[uuid.UUID] = None

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il messaggio non può essere vuoto")
        return v


class ChatMessageRead(ChatMessageCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime.datetime
