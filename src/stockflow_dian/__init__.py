"""Núcleo de facturación electrónica DIAN de StockFlow.

ES: Ciclo de vida de facturas electrónicas, numeración consecutiva por
    resolución, notas crédito y débito y comprobantes contables.
EN: Electronic invoice lifecycle, resolution-based sequential numbering,
    credit/debit notes and journal entries.
"""

from stockflow_dian.accounting import AccountingBridge, AccountMapping, JournalService
from stockflow_dian.context import Permission, RequestContext, Role
from stockflow_dian.errors import (
    DianConfigurationError,
    DianError,
    DianNotFoundError,
    DianPermissionError,
    DianPreconditionError,
    DianValidationError,
    SequenceExhaustedError,
)
from stockflow_dian.lifecycle import InvoiceLifecycle, SubmissionResult
from stockflow_dian.notes import NoteIssuer
from stockflow_dian.settings import LifecycleSettings, NumberingRetryPolicy

__version__ = "0.4.0"

__all__ = [
    "AccountMapping",
    "AccountingBridge",
    "DianConfigurationError",
    "DianError",
    "DianNotFoundError",
    "DianPermissionError",
    "DianPreconditionError",
    "DianValidationError",
    "InvoiceLifecycle",
    "JournalService",
    "LifecycleSettings",
    "NoteIssuer",
    "NumberingRetryPolicy",
    "Permission",
    "RequestContext",
    "Role",
    "SequenceExhaustedError",
    "SubmissionResult",
]
