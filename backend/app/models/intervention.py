"""
Modelli SQLAlchemy per gli Interventi
Progetto: Gestionale Interventi

Contiene:
- Intervention: Intervento sul campo (sopralluogo, installazione, manutenzione)
- InterventionCounter: Contatore annuale atomico per la numerazione
"""


from __future__ import annotations
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.company import Company
    from app.models.photo import Photo
    from app.models.user import User


# Vincolo di unicità del numero, riconosciuto da InterventionService.create
NUMBER_CONSTRAINT = "uq_interventions_number"

# Stati, categorie e priorità sono definiti in app.schemas.intervention


class Intervention(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli interventi (work order sul campo).

    Il cliente è una copia denormalizzata al momento della creazione,
    non un riferimento a un'anagrafica.

    Attributes:
        number: Numero leggibile univoco per anno (es. INT-2025-0001), immutabile
        category: survey | installation | maintenance
        priority: low | normal | high | urgent
        status: assigned | appointment_set | in_progress | completed | closed
        company_id: Ditta assegnataria (NULL = non assegnato)
        technician_id: Tecnico assegnatario (NULL = non assegnato nella ditta)
        appointment_*: Appuntamento confermato con il cliente
        location_*: Posizione GPS rilevata all'avvio dei lavori
        documentation_notes: Note di documentazione
        started_at / completed_at: Impostati una sola volta dalle rispettive transizioni
        closed_at / closed_notes: Chiusura

    States (State Machine, dipendente dal ruolo):
        assigned → appointment_set → in_progress → completed → closed
    """

    __tablename__ = "interventions"

    number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Numero intervento leggibile, univoco",
    )

    # ------------------------------------------------------------
    # Cliente (snapshot)
    # ------------------------------------------------------------
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_address: Mapped[str] = mapped_column(Text, nullable=False)
    client_civic_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    client_city: Mapped[str] = mapped_column(String(100), nullable=False)
    client_province: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    client_postal_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # ------------------------------------------------------------
    # Classificazione
    # ------------------------------------------------------------
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="assigned",
        doc="Stato corrente dell'intervento",
    )

    # ------------------------------------------------------------
    # Assegnazione
    # ------------------------------------------------------------
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    technician_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    assigned_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------
    # Appuntamento
    # ------------------------------------------------------------
    appointment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    appointment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    appointment_confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------
    # Posizione
    # ------------------------------------------------------------
    location_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location_captured_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------
    # Documentazione e chiusura
    # ------------------------------------------------------------
    documentation_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    company: Mapped[Optional["Company"]] = relationship(
        "Company",
        lazy="joined",
        doc="Ditta assegnataria",
    )

    technician: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[technician_id],
        lazy="joined",
        doc="Tecnico assegnatario",
    )

    photos: Mapped[List["Photo"]] = relationship(
        "Photo",
        back_populates="intervention",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Photo.created_at",
        lazy="noload",
        doc="Foto di documentazione (solo aggiunta)",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        UniqueConstraint("number", name=NUMBER_CONSTRAINT),
        Index("ix_interventions_status", "status"),
        Index("ix_interventions_category", "category"),
        Index("ix_interventions_created_at", "created_at"),
        CheckConstraint(
            "category IN ('survey', 'installation', 'maintenance')",
            name="ck_interventions_category",
        ),
        CheckConstraint(
            "priority IN ('low', 'normal', 'high', 'urgent')",
            name="ck_interventions_priority",
        ),
        CheckConstraint(
            "status IN ('assigned', 'appointment_set', 'in_progress', 'completed', 'closed')",
            name="ck_interventions_status",
        ),
        # Nessun tecnico senza ditta
        CheckConstraint(
            "company_id IS NOT NULL OR technician_id IS NULL",
            name="ck_interventions_technician_requires_company",
        ),
    )

    def __repr__(self) -> str:
        return f"<Intervention(id={self.id}, number={self.number}, status={self.status})>"


class InterventionCounter(Base):
    """
    Contatore progressivo per anno solare.

    Incrementato con un singolo UPSERT atomico: il lock di riga serializza
    le creazioni concorrenti dello stesso anno.
    """

    __tablename__ = "intervention_counters"

    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<InterventionCounter(year={self.year}, last_value={self.last_value})>"
