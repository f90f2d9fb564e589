"""Puente contable: comprobantes automáticos de documentos aceptados.

ES: Cuando la DIAN acepta un documento se registra su comprobante con
    las cuentas del PUC colombiano:

    - factura : Dr clientes (total), Dr descuentos, Cr ingresos
      (subtotal), Cr IVA por pagar (impuesto);
    - nota crédito : el asiento inverso por devoluciones en ventas;
    - nota débito : como una venta.
EN: When DIAN accepts a document its entry is recorded using Colombian
    PUC accounts (sale, reversed sale for credit notes, sale for debit
    notes).
"""

from __future__ import annotations

import logging
from decimal import Decimal

from pydantic import BaseModel

from stockflow_dian.accounting.journal import JournalService
from stockflow_dian.models.document import ElectronicDocument
from stockflow_dian.models.enums import DocumentFamily, JournalEntrySource
from stockflow_dian.models.journal import JournalEntry, JournalLine

logger = logging.getLogger(__name__)


class AccountMapping(BaseModel):
    """Cuentas PUC usadas por los comprobantes automáticos."""

    receivables: str = "130505"
    """Clientes nacionales / Trade receivables"""

    revenue: str = "413505"
    """Comercio al por mayor y al por menor / Sales revenue"""

    vat_payable: str = "240801"
    """IVA por pagar / VAT payable"""

    sales_returns: str = "417505"
    """Devoluciones en ventas / Sales returns"""

    sales_discounts: str = "530535"
    """Descuentos comerciales condicionados / Sales discounts"""


_SOURCES = {
    DocumentFamily.INVOICE: JournalEntrySource.INVOICE_SALE,
    DocumentFamily.CREDIT_NOTE: JournalEntrySource.CREDIT_NOTE,
    DocumentFamily.DEBIT_NOTE: JournalEntrySource.DEBIT_NOTE,
}


class AccountingBridge:
    """Genera el comprobante contable de un documento aceptado."""

    def __init__(
        self,
        journal: JournalService,
        mapping: AccountMapping | None = None,
    ) -> None:
        self.journal = journal
        self.mapping = mapping or AccountMapping()

    def build_lines(self, document: ElectronicDocument) -> list[JournalLine]:
        """Líneas del comprobante de un documento; se omiten los montos en cero."""
        m = self.mapping
        if document.family == DocumentFamily.CREDIT_NOTE:
            debits = [(m.sales_returns, document.subtotal), (m.vat_payable, document.tax)]
            credits = [(m.receivables, document.total), (m.sales_discounts, document.discount)]
        else:
            debits = [(m.receivables, document.total), (m.sales_discounts, document.discount)]
            credits = [(m.revenue, document.subtotal), (m.vat_payable, document.tax)]

        lines = [
            JournalLine(account_code=account, debit=amount, description=document.number)
            for account, amount in debits
            if amount > Decimal("0")
        ]
        lines += [
            JournalLine(account_code=account, credit=amount, description=document.number)
            for account, amount in credits
            if amount > Decimal("0")
        ]
        return lines

    async def record_document(self, document: ElectronicDocument) -> JournalEntry | None:
        """Registra el comprobante del documento si aún no existe.

        Returns:
            El comprobante creado, o None si ya existía o el documento no
            tiene montos que registrar.
        """
        source = _SOURCES.get(document.family)
        if source is None:
            msg = f"Familia sin comprobante automático : {document.family.value}"
            raise ValueError(msg)

        existing = await self.journal.store.list_journal_entries(
            document.tenant_id, document_id=document.id
        )
        if existing:
            logger.info(
                "Comprobante de %s ya registrado (%s)",
                document.number,
                existing[0].entry_number,
            )
            return None

        lines = self.build_lines(document)
        if len(lines) < 2:
            logger.info("Documento %s sin montos para registrar", document.number)
            return None

        return await self.journal.record_auto_entry(
            document.tenant_id,
            f"{document.family.value} {document.number}",
            lines,
            source=source,
            document_id=document.id,
            entry_date=document.issue_date,
        )
