"""
Modello SQLAlchemy per gli endpoint di notifica push
Progetto: Gestionale Interventi
"""

from __future__ import annotations
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.user import User


TOKEN_CONSTRAINT = "uq_push_tokens_user_token"


class PushToken(Base, UUIDMixin, TimestampMixin):
    """Token push di un dispositivo registrato da un utente."""

    __tablename__ = "push_tokens"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    token: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    platform: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")

    user: Mapped["User"] = relationship("User", back_populates="push_tokens")

    __table_args__ = (
        UniqueConstraint("user_id", "token", name=TOKEN_CONSTRAINT),
    )

    def __repr__(self) -> str:
        return f"<PushToken(user_id={self.user_id}, platform={self.platform})>"
