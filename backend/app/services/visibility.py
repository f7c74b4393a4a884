"""
Perimetro di visibilità e di azione sugli interventi
Progetto: Gestionale Interventi

Unico punto in cui si decide quali interventi un utente può vedere
(letture) e su quali può agire (modifiche, transizioni, foto).

- Master: nessuna restrizione
- Ditta: solo gli interventi della ditta di cui è titolare
- Tecnico: interventi della propria ditta assegnati a lui o non ancora
  assegnati a nessun tecnico (visibili ma non lavorabili)
"""

import logging
from typing import Optional

from sqlalchemy import ColumnElement, false, or_

from app.core.exceptions import AuthorizationError
from app.models.intervention import Intervention
from app.schemas.actor import Actor
from app.schemas.intervention import InterventionFilters

logger = logging.getLogger(__name__)


def scope_conditions(
    actor: Actor,
    filters: Optional[InterventionFilters] = None,
) -> list[ColumnElement[bool]]:
    """
    Costruisce le condizioni WHERE che limitano una query sugli interventi.

    I filtri opzionali vengono sempre messi in AND con il perimetro del ruolo:
    per Ditta e Tecnico possono solo restringere ulteriormente il risultato.

    Args:
        actor: Utente che esegue la lettura
        filters: Filtri richiesti dal client

    Returns:
        Lista di condizioni da passare a Select.where()
    """
    conditions: list[ColumnElement[bool]] = []

    if actor.is_ditta or actor.is_tecnico:
        if actor.company_id is None:
            # Ditta senza ditta posseduta o tecnico senza ditta: nulla è visibile
            return [false()]
        conditions.append(Intervention.company_id == actor.company_id)
        if actor.is_tecnico:
            conditions.append(
                or_(
                    Intervention.technician_id == actor.id,
                    Intervention.technician_id.is_(None),
                )
            )

    if filters is not None:
        if filters.status is not None:
            conditions.append(Intervention.status == filters.status.value)
        if filters.category is not None:
            conditions.append(Intervention.category == filters.category.value)
        if filters.company_id is not None:
            conditions.append(Intervention.company_id == filters.company_id)
        if filters.technician_id is not None:
            conditions.append(Intervention.technician_id == filters.technician_id)

    return conditions


def can_view(actor: Actor, intervention: Intervention) -> bool:
    """Equivalente in memoria di scope_conditions() senza filtri."""
    if actor.is_master:
        return True
    if actor.company_id is None or intervention.company_id != actor.company_id:
        return False
    if actor.is_tecnico:
        return intervention.technician_id in (None, actor.id)
    return True


def can_act(actor: Actor, intervention: Intervention) -> bool:
    """
    Verifica se l'utente può modificare l'intervento.

    Il Tecnico deve esserne l'assegnatario; la Ditta deve possedere
    la ditta assegnataria.
    """
    if actor.is_master:
        return True
    if actor.is_ditta:
        return actor.company_id is not None and intervention.company_id == actor.company_id
    if actor.is_tecnico:
        return (
            intervention.technician_id == actor.id
            and intervention.company_id == actor.company_id
        )
    return False


def ensure_can_act(actor: Actor, intervention: Intervention) -> None:
    """
    Raises:
        AuthorizationError: Se l'intervento è fuori dal perimetro dell'utente
    """
    if can_act(actor, intervention):
        return

    logger.warning(
        "Utente %s (%s) fuori perimetro per l'intervento %s",
        actor.id, actor.role.value, intervention.number,
    )
    if actor.is_tecnico:
        detail = "Puoi modificare solo gli interventi assegnati a te"
    else:
        detail = "Puoi modificare solo gli interventi della tua ditta"
    raise AuthorizationError(detail)
