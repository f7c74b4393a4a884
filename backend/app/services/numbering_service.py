"""
Service di numerazione degli interventi
Progetto: Gestionale Interventi

Formato: {PREFISSO}-{ANNO}-{NNNN} (es. INT-2025-0001), progressivo per
anno solare.
"""

import datetime
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.intervention import Intervention, InterventionCounter

logger = logging.getLogger(__name__)


def format_intervention_number(prefix: str, year: int, seq: int) -> str:
    """Formatta il numero con progressivo a 4 cifre (oltre 9999 si allarga)."""
    return f"{prefix}-{year}-{seq:04d}"


class NumberingService:
    """
    Assegna numeri univoci agli interventi.

    Il contatore annuale viene incrementato con un singolo
    INSERT ... ON CONFLICT DO UPDATE ... RETURNING: il lock sulla riga
    dell'anno serializza le transazioni concorrenti fino al commit, quindi
    due creazioni simultanee non leggono mai lo stesso valore.
    La prima chiamata dell'anno inizializza il contatore dal numero di
    interventi già presenti, per i database popolati prima del contatore.
    """

    def __init__(self) -> None:
        pass

    async def next_number(
        self,
        db: AsyncSession,
        year: Optional[int] = None,
    ) -> str:
        """
        Riserva il prossimo numero dell'anno.

        Il valore riservato non viene mai restituito due volte, anche se la
        transazione chiamante elimina poi l'intervento; un rollback invece
        annulla anche l'incremento.

        Args:
            db: Sessione database
            year: Anno solare (default: anno corrente UTC)

        Returns:
            str: Numero intervento formattato
        """
        if year is None:
            year = datetime.datetime.now(datetime.timezone.utc).year

        year_start = datetime.datetime(year, 1, 1, tzinfo=datetime.timezone.utc)
        year_end = datetime.datetime(year + 1, 1, 1, tzinfo=datetime.timezone.utc)
        existing_in_year = (
            select(func.count(Intervention.id) + 1)
            .where(
                Intervention.created_at >= year_start,
                Intervention.created_at < year_end,
            )
            .scalar_subquery()
        )

        stmt = (
            pg_insert(InterventionCounter)
            .values(year=year, last_value=existing_in_year)
            .on_conflict_do_update(
                index_elements=[InterventionCounter.year],
                set_={"last_value": InterventionCounter.last_value + 1},
            )
            .returning(InterventionCounter.last_value)
        )
        result = await db.execute(stmt)
        seq = result.scalar_one()

        number = format_intervention_number(settings.intervention_number_prefix, year, seq)
        logger.debug("Riservato numero intervento %s", number)
        return number


numbering_service = NumberingService()
