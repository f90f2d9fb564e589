"""Pruebas de los modelos Django y su conversión hacia/desde Pydantic."""

from datetime import date
from decimal import Decimal

import pytest
from django.db import IntegrityError

from stockflow_dian.contrib.django.models import (
    Document,
    DocumentLine,
    JournalEntry,
    JournalLine,
    TenantDianConfig,
)
from stockflow_dian.errors import DianPreconditionError
from stockflow_dian.lifecycle.manager import LifecycleManager
from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.enums import (
    CreditNoteReason,
    CreditNoteScope,
    DebitNoteReason,
    DocumentStatus,
    JournalEntrySource,
    JournalEntryStatus,
)
from stockflow_dian.models.invoice import Invoice
from stockflow_dian.models.journal import JournalEntry as PydanticJournalEntry
from stockflow_dian.models.journal import JournalLine as PydanticJournalLine
from stockflow_dian.models.notes import CreditNote, DebitNote, NoteLine

TENANT_ID = "ferreteria-norte"


def _credit_note(invoice: Invoice) -> CreditNote:
    line = NoteLine.compute(
        invoice_item_id="line-tornillos",
        description="Caja de tornillos drywall x100",
        quantity=Decimal("1"),
        unit_price=Decimal("50"),
        tax_rate=Decimal("19"),
    )
    return CreditNote(
        tenant_id=TENANT_ID,
        invoice_id=invoice.id,
        invoice_number="SETP00000001",
        reason_code=CreditNoteReason.DEVOLUCION_PARCIAL,
        reason="Devolución de una caja",
        scope=CreditNoteScope.PARTIAL,
        lines=[line],
        subtotal=line.subtotal,
        tax=line.tax,
        total=line.total,
    )


class TestDocument:
    """Pruebas del modelo Document."""

    def test_invoice_round_trip(self, db, sample_invoice: Invoice) -> None:
        Document.save_from_pydantic(sample_invoice)

        row = Document.objects.get(document_id=sample_invoice.id)
        assert row.family == "FACTURA_ELECTRONICA"
        assert row.status == "DRAFT"
        assert row.lines.count() == 2

        loaded = row.to_pydantic()
        assert isinstance(loaded, Invoice)
        assert loaded.id == sample_invoice.id
        assert loaded.total == Decimal("297.50")
        assert loaded.customer_document == "800765432"
        assert [line.id for line in loaded.lines] == ["line-tornillos", "line-martillo"]
        loaded.check_totals()

    def test_history_round_trip(self, db, sample_invoice: Invoice) -> None:
        sample_invoice.number = "SETP00000001"
        LifecycleManager(sample_invoice).transition(
            DocumentStatus.SENT, tracking_id="TRACK-000001"
        )
        Document.save_from_pydantic(sample_invoice)

        loaded = Document.objects.get(document_id=sample_invoice.id).to_pydantic()
        assert loaded.status == DocumentStatus.SENT
        assert loaded.tracking_id == "TRACK-000001"
        assert len(loaded.history) == 1
        assert loaded.history[0].status == DocumentStatus.SENT

    def test_lines_frozen_outside_draft(self, db, sample_invoice: Invoice) -> None:
        Document.save_from_pydantic(sample_invoice)
        sent = sample_invoice.model_copy(
            update={"status": DocumentStatus.SENT, "lines": sample_invoice.lines[:1]}
        )
        Document.save_from_pydantic(sent)
        assert Document.objects.get(document_id=sample_invoice.id).lines.count() == 2

    def test_xml_content_round_trip(self, db, sample_invoice: Invoice) -> None:
        xml = '<?xml version="1.0" encoding="UTF-8"?>\n<Invoice/>'
        Document.save_from_pydantic(sample_invoice.model_copy(update={"xml_content": xml}))
        loaded = Document.objects.get(document_id=sample_invoice.id).to_pydantic()
        assert loaded.xml_content == xml

    def test_save_is_scoped_by_tenant(self, db, sample_invoice: Invoice) -> None:
        """Otro inquilino no puede sobrescribir un documento con el mismo id."""
        Document.save_from_pydantic(sample_invoice)
        intruder = sample_invoice.model_copy(
            update={"tenant_id": "ferreteria-sur", "number": "SETP00000099"}
        )

        with pytest.raises(IntegrityError):
            Document.save_from_pydantic(intruder)

        row = Document.objects.get(document_id=sample_invoice.id)
        assert row.tenant_id == TENANT_ID
        assert row.number is None

    def test_sent_totals_refused(self, db, sample_invoice: Invoice) -> None:
        sample_invoice.number = "SETP00000001"
        LifecycleManager(sample_invoice).transition(
            DocumentStatus.SENT, tracking_id="TRACK-000001"
        )
        Document.save_from_pydantic(sample_invoice)

        discounted = sample_invoice.model_copy(
            update={"discount": Decimal("10"), "total": Decimal("287.50")}
        )

        with pytest.raises(DianPreconditionError, match="inmutables"):
            Document.save_from_pydantic(discounted)
        assert Document.objects.get(document_id=sample_invoice.id).total == Decimal("297.50")

    def test_credit_note_round_trip(self, db, sample_invoice: Invoice) -> None:
        note = _credit_note(sample_invoice)
        Document.save_from_pydantic(note)

        loaded = Document.objects.get(document_id=note.id).to_pydantic()
        assert isinstance(loaded, CreditNote)
        assert loaded.reason_code == CreditNoteReason.DEVOLUCION_PARCIAL
        assert loaded.scope == CreditNoteScope.PARTIAL
        assert loaded.invoice_id == sample_invoice.id
        assert loaded.lines[0].invoice_item_id == "line-tornillos"
        assert loaded.lines[0].total == Decimal("59.50")
        assert loaded.total == Decimal("59.50")

    def test_debit_note_round_trip(self, db, sample_invoice: Invoice) -> None:
        line = NoteLine.compute(
            description="Flete",
            quantity=Decimal("1"),
            unit_price=Decimal("20000"),
            tax_rate=Decimal("19"),
        )
        note = DebitNote(
            tenant_id=TENANT_ID,
            invoice_id=sample_invoice.id,
            reason_code=DebitNoteReason.GASTOS,
            lines=[line],
            subtotal=line.subtotal,
            tax=line.tax,
            total=line.total,
        )
        Document.save_from_pydantic(note)

        loaded = Document.objects.get(document_id=note.id).to_pydantic()
        assert isinstance(loaded, DebitNote)
        assert loaded.reason_code == DebitNoteReason.GASTOS
        assert loaded.total == Decimal("23800.00")

    def test_unique_number_per_family(self, db, sample_invoice: Invoice) -> None:
        first = sample_invoice.model_copy(update={"number": "SETP00000001"})
        second = sample_invoice.model_copy(update={"id": "otra", "number": "SETP00000001"})
        Document.save_from_pydantic(first)
        with pytest.raises(IntegrityError):
            Document.save_from_pydantic(second)

    def test_same_number_other_tenant(self, db, sample_invoice: Invoice) -> None:
        Document.save_from_pydantic(sample_invoice.model_copy(update={"number": "SETP00000001"}))
        Document.save_from_pydantic(
            sample_invoice.model_copy(
                update={"id": "otra", "tenant_id": "ferreteria-sur", "number": "SETP00000001"}
            )
        )
        assert Document.objects.filter(number="SETP00000001").count() == 2

    def test_str(self, db, sample_invoice: Invoice) -> None:
        row = Document.save_from_pydantic(sample_invoice.model_copy(update={"number": "SETP00000007"}))
        assert str(row) == "Factura electrónica de venta SETP00000007"

    def test_line_str(self, db, sample_invoice: Invoice) -> None:
        row = Document.save_from_pydantic(sample_invoice)
        assert str(DocumentLine.objects.filter(document=row).first()) == (
            "Línea 1 : Caja de tornillos drywall x100"
        )


class TestTenantDianConfig:
    """Pruebas del modelo TenantDianConfig."""

    def test_round_trip(self, db, dian_config: DianConfig) -> None:
        TenantDianConfig.save_from_pydantic(dian_config)
        loaded = TenantDianConfig.objects.get(tenant_id=TENANT_ID).to_pydantic()
        assert loaded == dian_config
        assert loaded.is_fully_configured

    def test_update_in_place(self, db, dian_config: DianConfig) -> None:
        TenantDianConfig.save_from_pydantic(dian_config)
        TenantDianConfig.save_from_pydantic(
            dian_config.model_copy(update={"resolution_range_to": 5000})
        )
        assert TenantDianConfig.objects.count() == 1
        assert TenantDianConfig.objects.get().resolution_range_to == 5000


class TestJournalEntry:
    """Pruebas del modelo JournalEntry."""

    def _entry(self) -> PydanticJournalEntry:
        return PydanticJournalEntry(
            tenant_id=TENANT_ID,
            entry_number="CE-00001",
            entry_date=date(2026, 10, 19),
            description="Compra de inventario",
            source=JournalEntrySource.MANUAL,
            status=JournalEntryStatus.POSTED,
            lines=[
                PydanticJournalLine(account_code="143505", debit=Decimal("1000000")),
                PydanticJournalLine(account_code="240802", debit=Decimal("190000")),
                PydanticJournalLine(account_code="110505", credit=Decimal("1190000")),
            ],
        )

    def test_round_trip(self, db) -> None:
        entry = self._entry()
        JournalEntry.save_from_pydantic(entry)

        loaded = JournalEntry.objects.get(entry_id=entry.id).to_pydantic()
        assert loaded.entry_number == "CE-00001"
        assert loaded.status == JournalEntryStatus.POSTED
        assert [line.account_code for line in loaded.lines] == ["143505", "240802", "110505"]
        assert loaded.is_balanced

    def test_line_one_side_constraint(self, db) -> None:
        row = JournalEntry.save_from_pydantic(self._entry())
        with pytest.raises(IntegrityError):
            JournalLine.objects.create(
                entry=row,
                position=4,
                account_code="110505",
                debit=Decimal("1"),
                credit=Decimal("1"),
            )

    def test_save_is_scoped_by_tenant(self, db) -> None:
        entry = self._entry()
        JournalEntry.save_from_pydantic(entry)
        with pytest.raises(IntegrityError):
            JournalEntry.save_from_pydantic(
                entry.model_copy(update={"tenant_id": "ferreteria-sur"})
            )
        assert JournalEntry.objects.get(entry_id=entry.id).tenant_id == TENANT_ID
