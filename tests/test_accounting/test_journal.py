"""Pruebas del servicio de comprobantes contables.

ES: Verifica la creación en borrador, la contabilización solo de
    comprobantes cuadrados, la anulación con motivo y los permisos.
EN: Verifies draft creation, posting only balanced entries, voiding
    with a reason and permissions.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockflow_dian.accounting.journal import JournalService
from stockflow_dian.context import RequestContext, Role
from stockflow_dian.errors import (
    DianNotFoundError,
    DianPermissionError,
    DianPreconditionError,
    DianValidationError,
)
from stockflow_dian.lifecycle.service import InvoiceLifecycle
from stockflow_dian.models.enums import JournalEntrySource, JournalEntryStatus
from stockflow_dian.models.journal import JournalLine


def _unbalanced() -> list[dict]:
    return [
        {"account_code": "519530", "description": "Útiles de papelería", "debit": "1000"},
        {"account_code": "110505", "description": "Caja general", "credit": "900"},
    ]


class TestCreateEntry:
    """Pruebas de la creación de comprobantes."""

    async def test_create_draft(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(
            accountant_context, "Compra de inventario", balanced_lines
        )
        assert entry.status == JournalEntryStatus.DRAFT
        assert entry.entry_number == "CE-00001"
        assert entry.source == JournalEntrySource.MANUAL
        assert entry.total_debit == Decimal("1190000.00")
        assert entry.total_credit == Decimal("1190000.00")
        assert entry.posted_at is None

        stored = await journal.get_entry(accountant_context, entry.id)
        assert stored == entry

    async def test_consecutive_numbers(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        first = await journal.create_entry(accountant_context, "Compra 1", balanced_lines)
        second = await journal.create_entry(accountant_context, "Compra 2", balanced_lines)
        assert (first.entry_number, second.entry_number) == ("CE-00001", "CE-00002")

    async def test_journal_numbers_do_not_touch_invoices(
        self,
        journal: JournalService,
        lifecycle: InvoiceLifecycle,
        accountant_context: RequestContext,
        admin_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        await journal.create_entry(accountant_context, "Compra", balanced_lines)
        stats = await lifecycle.numbering_stats(admin_context)
        assert stats.next_number == 1

    async def test_draft_may_be_unbalanced(
        self, journal: JournalService, accountant_context: RequestContext
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Borrador", _unbalanced())
        assert not entry.is_balanced
        assert entry.imbalance == Decimal("100.00")

    async def test_entry_date(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(
            accountant_context,
            "Cierre de mes",
            balanced_lines,
            entry_date=date(2026, 9, 30),
        )
        assert entry.entry_date == date(2026, 9, 30)

    @pytest.mark.parametrize(
        "lines",
        [
            [
                {"account_code": "110505", "debit": "100", "credit": "100"},
                {"account_code": "413505", "credit": "100"},
            ],
            [
                {"account_code": "110505", "debit": "0"},
                {"account_code": "413505", "credit": "100"},
            ],
            [{"account_code": "110505", "debit": "100"}],
            [
                {"account_code": "", "debit": "100"},
                {"account_code": "413505", "credit": "100"},
            ],
        ],
    )
    async def test_invalid_lines(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        lines: list[dict],
    ) -> None:
        with pytest.raises(DianValidationError) as exc_info:
            await journal.create_entry(accountant_context, "Inválido", lines)
        assert exc_info.value.errors

    async def test_requires_permission(
        self, journal: JournalService, balanced_lines: list[JournalLine]
    ) -> None:
        manager = RequestContext.for_role("ferreteria-norte", Role.MANAGER)
        with pytest.raises(DianPermissionError, match="accounting:create"):
            await journal.create_entry(manager, "Compra", balanced_lines)


class TestPost:
    """Pruebas de la contabilización."""

    async def test_post_balanced(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        posted = await journal.post(accountant_context, entry.id)

        assert posted.status == JournalEntryStatus.POSTED
        assert posted.posted_at is not None
        stored = await journal.get_entry(accountant_context, entry.id)
        assert stored.status == JournalEntryStatus.POSTED

    async def test_post_unbalanced_names_delta(
        self, journal: JournalService, accountant_context: RequestContext
    ) -> None:
        """Un comprobante descuadrado sigue en DRAFT y el error da la diferencia."""
        entry = await journal.create_entry(accountant_context, "Descuadrado", _unbalanced())

        with pytest.raises(DianValidationError, match="diferencia 100.00"):
            await journal.post(accountant_context, entry.id)

        stored = await journal.get_entry(accountant_context, entry.id)
        assert stored.status == JournalEntryStatus.DRAFT
        assert stored.posted_at is None

    async def test_post_twice(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        await journal.post(accountant_context, entry.id)
        with pytest.raises(DianPreconditionError, match="POSTED"):
            await journal.post(accountant_context, entry.id)

    async def test_post_unknown(
        self, journal: JournalService, accountant_context: RequestContext
    ) -> None:
        with pytest.raises(DianNotFoundError):
            await journal.post(accountant_context, "no-existe")


class TestVoid:
    """Pruebas de la anulación."""

    async def test_void_posted(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        await journal.post(accountant_context, entry.id)

        voided = await journal.void(accountant_context, entry.id, "  Factura de compra duplicada ")

        assert voided.status == JournalEntryStatus.VOIDED
        assert voided.voided_at is not None
        assert voided.void_reason == "Factura de compra duplicada"
        assert voided.lines == entry.lines

    async def test_void_draft_refused(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        with pytest.raises(DianPreconditionError, match="DRAFT"):
            await journal.void(accountant_context, entry.id, "Error")

    @pytest.mark.parametrize("reason", ["", "   "])
    async def test_void_requires_reason(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
        reason: str,
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        await journal.post(accountant_context, entry.id)
        with pytest.raises(DianValidationError, match="motivo"):
            await journal.void(accountant_context, entry.id, reason)

    async def test_void_is_one_way(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.create_entry(accountant_context, "Compra", balanced_lines)
        await journal.post(accountant_context, entry.id)
        await journal.void(accountant_context, entry.id, "Duplicado")
        with pytest.raises(DianPreconditionError):
            await journal.void(accountant_context, entry.id, "Otra vez")
        with pytest.raises(DianPreconditionError):
            await journal.post(accountant_context, entry.id)


class TestAutoEntry:
    """Pruebas de los comprobantes automáticos."""

    async def test_record_auto_entry_is_posted(
        self,
        journal: JournalService,
        accountant_context: RequestContext,
        balanced_lines: list[JournalLine],
    ) -> None:
        entry = await journal.record_auto_entry(
            "ferreteria-norte",
            "Venta SETP00000001",
            balanced_lines,
            source=JournalEntrySource.INVOICE_SALE,
            document_id="doc-1",
        )
        assert entry.status == JournalEntryStatus.POSTED
        assert entry.posted_at is not None
        listed = await journal.list_entries(accountant_context, document_id="doc-1")
        assert [e.id for e in listed] == [entry.id]

    async def test_record_auto_entry_unbalanced(self, journal: JournalService) -> None:
        with pytest.raises(DianValidationError, match="descuadrado"):
            await journal.record_auto_entry(
                "ferreteria-norte",
                "Venta",
                _unbalanced(),
                source=JournalEntrySource.INVOICE_SALE,
            )
