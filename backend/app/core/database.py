"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Gestionale Interventi

Definisce engine, session factory e dependency injection per FastAPI.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Tabelle senza le quali il flusso degli interventi non può funzionare
REQUIRED_TABLES = frozenset({
    "users",
    "companies",
    "interventions",
    "intervention_counters",
    "photos",
    "push_tokens",
})

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
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta e la chiude
    automaticamente al termine. Le transazioni sono confermate
    esplicitamente dai router con `await db.commit()`.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Inizializza la connessione al database.

    Verifica che il database sia raggiungibile e che lo schema degli
    interventi sia presente (tabelle interventi e contatori annuali).
    Uno schema mancante viene segnalato nei log: si crea con reset_db.py.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            existing = await conn.run_sync(
                lambda sync_conn: set(inspect(sync_conn).get_table_names())
            )
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise

    missing = sorted(REQUIRED_TABLES - existing)
    if missing:
        logger.warning("Tabelle mancanti: %s (eseguire reset_db.py)", ", ".join(missing))


async def close_db() -> None:
    """Chiude le connessioni al database durante lo shutdown."""
    await engine.dispose()
    logger.info("Connessioni database chiuse")
