"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: DevPilot (Gestionale Freelance)

Engine, session factory e dependency injection della sessione per FastAPI.
Tutte le tabelle applicative vivono nello stesso database PostgreSQL.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from devpilot.core.config import settings

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI: una sessione per richiesta.

    Il commit resta responsabilità dei router; in caso di eccezione
    la sessione viene riportata indietro prima di propagare l'errore.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verifica all'avvio che il database sia raggiungibile."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def reset_schema() -> None:
    """
    Elimina e ricrea tutte le tabelle dei modelli.

    Usato solo dallo script reset_db.py in sviluppo.
    """
    from devpilot.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.warning("Schema database ricreato da zero")


async def close_db() -> None:
    """Chiude il pool di connessioni allo shutdown."""
    await engine.dispose()
    logger.info("Connessioni database chiuse")
