# -*- coding: utf-8 -*-
"""
app/modules/messaging/routes.py

Rutas de mensajería.

Endpoints:
- POST /api/push-notifications/delivered

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from .schemas import PushDeliveredRequest, PushDeliveredResponse
from .services import PushDeliveryService

router = APIRouter(
    prefix="/push-notifications",
    tags=["messaging"],
)


def get_push_delivery_service(request: Request) -> PushDeliveryService:
    return request.app.state.push_delivery_service


@router.post(
    "/delivered",
    response_model=PushDeliveredResponse,
    summary="Confirmar entrega de un push",
)
async def confirm_push_delivered(
    payload: PushDeliveredRequest,
    service: PushDeliveryService = Depends(get_push_delivery_service),
) -> PushDeliveredResponse:
    """
    Marca el push como entregado y cancela su fallback SMS pendiente.

    404 si el notification_id no existe, 403 si pertenece a otro contacto.
    """
    updated = await service.confirm_delivery(payload.notification_id, payload.contact_id)
    return PushDeliveredResponse(
        status="delivered" if updated else "ignored",
        notification_id=payload.notification_id,
    )


__all__ = ["router", "get_push_delivery_service"]

# Fin del archivo app/modules/messaging/routes.py
