# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/errors.py

Excepciones de dominio del ledger de créditos.

Todas se lanzan ANTES de mutar grants o transacciones; la implementación
SQL hace rollback de la transacción que las envuelve.

Autor: HeyTeam
Fecha: 2026-02-10
"""


class CreditLedgerError(Exception):
    """Raíz de los errores del ledger."""


class InvalidAmount(CreditLedgerError):
    """Se lanza cuando la cantidad a consumir u otorgar no es un entero positivo."""
    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"La cantidad debe ser un entero positivo: {amount!r}")


class InsufficientCredits(CreditLedgerError):
    """Se lanza cuando el scope no tiene créditos vigentes suficientes."""
    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"Créditos insuficientes. Disponibles: {available}, requeridos: {required}"
        )

    @property
    def shortfall(self) -> int:
        return max(self.required - self.available, 0)


class TransactionNotFound(CreditLedgerError):
    """Se lanza cuando una transacción a reembolsar no existe."""
    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transacción no encontrada: {transaction_id}")


class ScopeMismatch(CreditLedgerError):
    """Se lanza cuando la transacción no pertenece al scope de quien reembolsa."""
    def __init__(self, transaction_id: str, scope):
        self.transaction_id = transaction_id
        self.scope = scope
        super().__init__(f"La transacción {transaction_id} no pertenece a {scope}")


class NotAConsumption(CreditLedgerError):
    """Se lanza al intentar reembolsar una transacción con delta >= 0."""
    def __init__(self, transaction_id: str, delta: int):
        self.transaction_id = transaction_id
        self.delta = delta
        super().__init__(f"La transacción {transaction_id} no es un consumo (delta={delta:+d})")


class AlreadyRefunded(CreditLedgerError):
    """Se lanza al reembolsar por segunda vez la misma transacción."""
    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"La transacción {transaction_id} ya fue reembolsada")


class ScopeNotResolvable(CreditLedgerError):
    """Se lanza cuando el usuario no pertenece a ninguna organización."""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"El usuario {user_id} no está asociado a una organización")


class GrantNotFound(CreditLedgerError):
    """Se lanza cuando el grant referenciado por una transacción no existe."""
    def __init__(self, grant_id: str):
        self.grant_id = grant_id
        super().__init__(f"Grant no encontrado: {grant_id}")


__all__ = [
    "CreditLedgerError",
    "InvalidAmount",
    "InsufficientCredits",
    "TransactionNotFound",
    "ScopeMismatch",
    "NotAConsumption",
    "AlreadyRefunded",
    "ScopeNotResolvable",
    "GrantNotFound",
]

# Fin del archivo app/modules/billing/credits/errors.py
