# -*- coding: utf-8 -*-
"""
app/modules/messaging/schemas.py

Esquemas Pydantic del recibo de entrega push.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class PushDeliveredRequest(BaseModel):
    """Recibo enviado por la app móvil al mostrar el push."""

    notification_id: str = Field(min_length=1)
    contact_id: str = Field(min_length=1)


class PushDeliveredResponse(BaseModel):
    # ignored: la entrega ya estaba confirmada o el fallback la reclamó
    status: Literal["delivered", "ignored"]
    notification_id: str


__all__ = ["PushDeliveredRequest", "PushDeliveredResponse"]
