# -*- coding: utf-8 -*-
"""
app/modules/messaging/errors.py

Excepciones de dominio para mensajería.

Autor: HeyTeam
Fecha: 2026-02-10
"""


class DeliveryNotFound(Exception):
    """Se lanza cuando no existe una entrega push con el notification_id dado."""
    def __init__(self, notification_id: str):
        self.notification_id = notification_id
        super().__init__(f"Entrega push no encontrada: {notification_id}")


class DeliveryOwnershipError(Exception):
    """Se lanza cuando el contacto que confirma no es el destinatario de la entrega."""
    def __init__(self, notification_id: str, contact_id: str):
        self.notification_id = notification_id
        self.contact_id = contact_id
        super().__init__(
            f"La entrega {notification_id} no pertenece al contacto {contact_id}"
        )


__all__ = [
    "DeliveryNotFound",
    "DeliveryOwnershipError",
]

# Fin del archivo app/modules/messaging/errors.py
