"""Contabilidad: comprobantes de partida doble y comprobantes automáticos."""

from stockflow_dian.accounting.bridge import AccountingBridge, AccountMapping
from stockflow_dian.accounting.journal import JournalService

__all__ = ["AccountMapping", "AccountingBridge", "JournalService"]
