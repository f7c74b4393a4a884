"""
Notifiche push verso i Master
Progetto: Gestionale Interventi

Flusso:
1. I service accodano i messaggi sulla sessione con queue_notification()
2. Al commit della transazione un listener SQLAlchemy li consegna al
   NotificationDispatcher; al rollback vengono scartati
3. Il worker del dispatcher invia ogni messaggio a tutti i token dei Master
   attivi, in una propria sessione database

Un errore di invio viene solo registrato nei log: non può annullare né
ritardare la modifica che lo ha generato.
"""

import asyncio
import contextlib
import datetime
import logging
from typing import Any, Callable, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.models.user import UserRole
from app.schemas.actor import Actor
from app.schemas.intervention import InterventionStatus
from app.schemas.notification import NotificationPayload
from app.services.push_token_service import push_token_service
from app.services.push_transport import ExpoPushTransport, is_device_not_registered

logger = logging.getLogger(__name__)

PENDING_KEY = "pending_notifications"


# -------------------------------------------------------------------
# Costruzione dei messaggi
# -------------------------------------------------------------------

def _role_label(role: UserRole) -> str:
    return role.value.capitalize()


def status_change_notification(
    intervention_number: str,
    actor: Actor,
    old_status: InterventionStatus,
    new_status: InterventionStatus,
) -> NotificationPayload:
    return NotificationPayload(
        title="Cambio Stato Intervento",
        body=(
            f'{intervention_number}: Stato cambiato in "{new_status.label}" '
            f"da {actor.name} ({_role_label(actor.role)})"
        ),
        data={
            "type": "status_change",
            "interventionNumber": intervention_number,
            "oldStatus": old_status.value,
            "newStatus": new_status.value,
        },
    )


def appointment_notification(
    intervention_number: str,
    actor: Actor,
    appointment_date: datetime.datetime,
) -> NotificationPayload:
    formatted_date = appointment_date.strftime("%d/%m/%Y, %H:%M")
    return NotificationPayload(
        title="Appuntamento Fissato",
        body=(
            f"{intervention_number}: Appuntamento fissato per il {formatted_date} "
            f"da {actor.name} ({_role_label(actor.role)})"
        ),
        data={
            "type": "appointment_set",
            "interventionNumber": intervention_number,
            "appointmentDate": appointment_date.isoformat(),
        },
    )


def report_sent_notification(
    intervention_number: str,
    actor: Actor,
    recipient_email: str,
) -> NotificationPayload:
    return NotificationPayload(
        title="Report Inviato",
        body=(
            f"{intervention_number}: Report PDF inviato a {recipient_email} "
            f"da {actor.name} ({_role_label(actor.role)})"
        ),
        data={
            "type": "report_sent",
            "interventionNumber": intervention_number,
            "recipientEmail": recipient_email,
        },
    )


# -------------------------------------------------------------------
# Accodamento legato alla transazione
# -------------------------------------------------------------------

def queue_notification(db: AsyncSession, payload: NotificationPayload) -> None:
    """
    Accoda il messaggio sulla sessione.

    Viene pubblicato solo dopo il commit della transazione corrente.
    """
    db.info.setdefault(PENDING_KEY, []).append(payload)


@event.listens_for(Session, "after_commit")
def publish_after_commit(session: Session) -> None:
    """Consegna al dispatcher i messaggi accodati durante la transazione."""
    pending = session.info.pop(PENDING_KEY, None)
    if not pending:
        return
    for payload in pending:
        notification_dispatcher.publish(payload)


@event.listens_for(Session, "after_rollback")
def discard_after_rollback(session: Session) -> None:
    """Scarta i messaggi di una transazione annullata."""
    pending = session.info.pop(PENDING_KEY, None)
    if pending:
        logger.debug("Scartate %d notifiche dopo rollback", len(pending))


# -------------------------------------------------------------------
# Dispatcher
# -------------------------------------------------------------------

class NotificationDispatcher:
    """
    Coda in memoria con un worker asincrono.

    Avviato e fermato dal lifespan dell'applicazione. Se la coda è piena o
    il dispatcher non è attivo il messaggio viene scartato con un warning.
    """

    def __init__(
        self,
        transport: Optional[ExpoPushTransport] = None,
        session_factory: Optional[Callable[[], Any]] = None,
        queue_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.transport = transport or ExpoPushTransport()
        self.session_factory = session_factory or AsyncSessionLocal
        self.queue_size = queue_size or settings.notification_queue_size
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        if not settings.push_enabled:
            logger.info("Notifiche push disabilitate da configurazione")
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("Dispatcher notifiche avviato")

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Attende lo svuotamento della coda (al massimo drain_timeout) e ferma il worker."""
        if self._worker is None:
            return
        if self._queue is not None and self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Arresto dispatcher: %d notifiche non inviate", self._queue.qsize()
                )
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        self._queue = None
        logger.info("Dispatcher notifiche arrestato")

    def publish(self, payload: NotificationPayload) -> bool:
        """
        Mette in coda il messaggio senza attendere.

        Returns:
            bool: False se il messaggio è stato scartato
        """
        if not self.running or self._queue is None:
            logger.warning("Dispatcher non attivo, notifica '%s' scartata", payload.title)
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Coda notifiche piena, notifica '%s' scartata", payload.title)
            return False
        return True

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            payload = await self._queue.get()
            try:
                await self.process(payload)
            finally:
                self._queue.task_done()

    async def process(self, payload: NotificationPayload) -> None:
        """Consegna un messaggio entro il timeout; ogni errore viene solo loggato."""
        try:
            await asyncio.wait_for(self.deliver(payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Timeout invio notifica '%s'", payload.title)
        except Exception:
            logger.exception("Invio notifica '%s' fallito", payload.title)

    async def deliver(self, payload: NotificationPayload) -> None:
        """
        Invia il messaggio a tutti i Master e deregistra i token non più validi.

        Raises:
            httpx.HTTPError: Errori del trasporto (gestiti da process())
        """
        async with self.session_factory() as db:
            tokens = await push_token_service.get_master_tokens(db)
            if not tokens:
                logger.info("Nessun token Master registrato, notifica '%s' non inviata", payload.title)
                return

            messages = [
                {
                    "to": token,
                    "title": payload.title,
                    "body": payload.body,
                    "data": payload.data,
                    "sound": "default",
                    "priority": "high",
                }
                for token in tokens
            ]
            tickets = await self.transport.send(messages)

            stale_tokens: list[str] = []
            for message, ticket in zip(messages, tickets):
                if ticket.get("status") != "error":
                    continue
                if is_device_not_registered(ticket):
                    stale_tokens.append(message["to"])
                else:
                    logger.warning("Errore Expo per un token: %s", ticket.get("message"))

            if stale_tokens:
                await push_token_service.remove_tokens(db, stale_tokens)
                await db.commit()

            logger.info(
                "Notifica '%s' inviata a %d dispositivi", payload.title, len(tokens) - len(stale_tokens)
            )


notification_dispatcher = NotificationDispatcher()
