# -*- coding: utf-8 -*-
"""
app/modules/messaging/services/__init__.py

Servicios de mensajería.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .push_delivery_service import PushDeliveryService

__all__ = ["PushDeliveryService"]
