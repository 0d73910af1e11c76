# -*- coding: utf-8 -*-
"""
app/modules/billing/credits/__init__.py

Submódulo de créditos para billing.

Contiene:
- Modelos ORM: CreditGrant, CreditTransaction
- Ledger: CreditLedger (contrato), SqlCreditLedger, InMemoryCreditLedger
- Servicio: CreditService (+ CreditBreakdown)
- Errores: jerarquía CreditLedgerError

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .enums import CreditScopeKind, CreditSourceType
from .errors import (
    AlreadyRefunded,
    CreditLedgerError,
    GrantNotFound,
    InsufficientCredits,
    InvalidAmount,
    NotAConsumption,
    ScopeMismatch,
    ScopeNotResolvable,
    TransactionNotFound,
)
from .ledger import CreditLedger, CreditScope
from .memory_ledger import InMemoryCreditLedger
from .models import CreditGrant, CreditTransaction
from .repositories import CreditGrantRepository, CreditTransactionRepository
from .services import CreditBreakdown, CreditService
from .sql_ledger import SqlCreditLedger

__all__ = [
    # Models
    "CreditGrant",
    "CreditTransaction",
    # Enums
    "CreditSourceType",
    "CreditScopeKind",
    # Errors
    "CreditLedgerError",
    "InvalidAmount",
    "InsufficientCredits",
    "TransactionNotFound",
    "ScopeMismatch",
    "NotAConsumption",
    "AlreadyRefunded",
    "ScopeNotResolvable",
    "GrantNotFound",
    # Ledger
    "CreditLedger",
    "CreditScope",
    "SqlCreditLedger",
    "InMemoryCreditLedger",
    # Repositories
    "CreditGrantRepository",
    "CreditTransactionRepository",
    # Services
    "CreditService",
    "CreditBreakdown",
]
