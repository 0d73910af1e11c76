# -*- coding: utf-8 -*-
"""
app/shared/utils/phone_utils.py

Normalización de teléfonos a formato E.164 (phonenumbers / libphonenumber).

La misma función se usa al enviar SMS y al emparejar respuestas entrantes
con contactos, por lo que ambos caminos producen exactamente el mismo número.

El country_code del contacto (ISO 3166-1 alpha-2) es la región con la que se
interpreta el número capturado: prefijo troncal, prefijos de acceso
internacional y códigos de país ya presentes los resuelve phonenumbers.
Países vacíos o desconocidos se interpretan como US.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

DEFAULT_REGION = "US"


class InvalidPhoneNumber(ValueError):
    """El número capturado no se puede interpretar como teléfono."""

    def __init__(self, phone: str, reason: str):
        self.phone = phone
        self.reason = reason
        super().__init__(f"invalid phone number {phone!r}: {reason}")


def phone_region(country_code: str | None) -> str:
    """Región de parseo para el país del contacto (US si no se conoce)."""
    region = (country_code or "").strip().upper()
    return region if region in phonenumbers.SUPPORTED_REGIONS else DEFAULT_REGION


def to_e164(country_code: str | None, phone: str) -> str:
    """
    Construye el teléfono en E.164 a partir del país y el número capturado.

    Raises:
        InvalidPhoneNumber: si el texto no es un número o no tiene una
            longitud posible para su región

    Ejemplos:
        >>> to_e164("GB", "07700 900123")
        '+447700900123'
        >>> to_e164("US", "(415) 555-0100")
        '+14155550100'
    """
    try:
        parsed = phonenumbers.parse(phone or "", phone_region(country_code))
    except NumberParseException as e:
        raise InvalidPhoneNumber(phone, str(e)) from e

    if not phonenumbers.is_possible_number(parsed):
        raise InvalidPhoneNumber(phone, "not a possible number for its region")

    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def normalize_phone_number(phone: str) -> str:
    """Deja solo dígitos, para comparar números capturados en formatos distintos."""
    return phonenumbers.normalize_digits_only(phone or "")


__all__ = [
    "DEFAULT_REGION",
    "InvalidPhoneNumber",
    "normalize_phone_number",
    "phone_region",
    "to_e164",
]

# Fin del archivo app/shared/utils/phone_utils.py
