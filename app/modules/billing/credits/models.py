# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/models.py

Modelos ORM para el sistema de créditos.

- CreditGrant: bolsa de créditos de un origen (trial, subscription, bundle)
- CreditTransaction: movimiento inmutable del ledger

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, new_uuid, utcnow
from .enums import CreditSourceType


class CreditGrant(Base):
    """
    Bolsa de créditos de un solo origen.

    Tabla: public.credit_grants

    Invariante: credits_remaining + credits_consumed == credits_granted.
    Nunca se borra; un grant agotado o expirado simplemente deja de aportar.
    """

    __tablename__ = "credit_grants"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_uuid,
    )

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Dueño del grant dentro de la organización (scope de usuario)
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    source_type: Mapped[CreditSourceType] = mapped_column(
        SQLEnum(
            CreditSourceType,
            name="credit_source_type",
            native_enum=False,
            length=20,
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
    )

    source_ref: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    credits_granted: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    credits_consumed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    credits_remaining: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        CheckConstraint("credits_consumed >= 0 AND credits_remaining >= 0", name="non_negative"),
        CheckConstraint("credits_consumed + credits_remaining = credits_granted", name="conservation"),
    )

    def __repr__(self) -> str:
        return (
            f"<CreditGrant id={self.id} org={self.organization_id} source={self.source_type} "
            f"remaining={self.credits_remaining}/{self.credits_granted}>"
        )


class CreditTransaction(Base):
    """
    Ledger inmutable de movimientos de créditos.

    Tabla: public.credit_transactions

    - delta < 0: consumo contra un grant
    - delta > 0: reembolso (refund_of_id apunta al consumo original)

    Solo refunded_at se escribe después de la inserción, una única vez,
    al reembolsar el consumo.
    """

    __tablename__ = "credit_transactions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_uuid,
    )

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    grant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("credit_grants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    message_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
    )

    delta: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    refund_of_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("credit_transactions.id", ondelete="SET NULL"),
        nullable=True,
    )

    refunded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        CheckConstraint("delta <> 0", name="nonzero"),
    )

    @property
    def is_consumption(self) -> bool:
        return self.delta < 0

    def __repr__(self) -> str:
        return f"<CreditTransaction id={self.id} grant={self.grant_id} delta={self.delta:+d}>"


__all__ = [
    "CreditGrant",
    "CreditTransaction",
]
