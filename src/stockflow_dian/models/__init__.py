"""Modelos de datos Pydantic para la facturación electrónica DIAN."""

from stockflow_dian.models.config import DianConfig, DianConfigUpdate, NumberRange
from stockflow_dian.models.document import ElectronicDocument, LifecycleEvent
from stockflow_dian.models.invoice import Invoice, InvoiceLine
from stockflow_dian.models.journal import JournalEntry, JournalLine
from stockflow_dian.models.notes import (
    CreditNote,
    CreditNoteItem,
    DebitNote,
    DebitNoteItem,
    NoteLine,
)

__all__ = [
    "CreditNote",
    "CreditNoteItem",
    "DebitNote",
    "DebitNoteItem",
    "DianConfig",
    "DianConfigUpdate",
    "ElectronicDocument",
    "Invoice",
    "InvoiceLine",
    "JournalEntry",
    "JournalLine",
    "LifecycleEvent",
    "NoteLine",
    "NumberRange",
]
