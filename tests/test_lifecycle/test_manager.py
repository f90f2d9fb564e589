"""Pruebas del gestor del ciclo de vida de documentos.

ES: Verifica el grafo de transiciones, los motivos obligatorios, el
    historial de eventos y los metadatos de los estados.
EN: Verifies the transition graph, required reasons, event history
    and status metadata.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from stockflow_dian.errors import DianPreconditionError
from stockflow_dian.lifecycle.manager import (
    STATUS_METADATA,
    TERMINAL_STATUSES,
    TRANSITIONS,
    LifecycleManager,
)
from stockflow_dian.models.enums import DocumentStatus
from stockflow_dian.models.invoice import Invoice, InvoiceLine


def _document(status: DocumentStatus = DocumentStatus.DRAFT) -> Invoice:
    invoice = Invoice.create_draft(
        "ferreteria-norte",
        [
            InvoiceLine(
                description="Llave inglesa 10",
                quantity=Decimal("2"),
                unit_price=Decimal("35000"),
            )
        ],
    )
    invoice.status = status
    return invoice


class TestTransitions:
    """Pruebas de transiciones válidas e inválidas."""

    @pytest.mark.parametrize(
        "source,target",
        [
            (DocumentStatus.DRAFT, DocumentStatus.SENT),
            (DocumentStatus.DRAFT, DocumentStatus.REJECTED),
            (DocumentStatus.DRAFT, DocumentStatus.VOIDED),
            (DocumentStatus.SENT, DocumentStatus.ACCEPTED),
            (DocumentStatus.SENT, DocumentStatus.REJECTED),
        ],
    )
    def test_valid_transition(self, source: DocumentStatus, target: DocumentStatus) -> None:
        """Cada transición del grafo se aplica sobre el documento."""
        mgr = LifecycleManager(_document(source))
        reason = "Motivo de prueba" if STATUS_METADATA[target].reason_required else None
        event = mgr.transition(target, reason=reason)
        assert mgr.status == target
        assert event.status == target
        assert event.previous_status == source

    @pytest.mark.parametrize(
        "source,target",
        [
            (DocumentStatus.DRAFT, DocumentStatus.ACCEPTED),
            (DocumentStatus.SENT, DocumentStatus.VOIDED),
            (DocumentStatus.SENT, DocumentStatus.DRAFT),
            (DocumentStatus.ACCEPTED, DocumentStatus.REJECTED),
            (DocumentStatus.REJECTED, DocumentStatus.SENT),
            (DocumentStatus.VOIDED, DocumentStatus.DRAFT),
        ],
    )
    def test_invalid_transition(
        self, source: DocumentStatus, target: DocumentStatus
    ) -> None:
        mgr = LifecycleManager(_document(source))
        with pytest.raises(DianPreconditionError, match="no autorizada"):
            mgr.transition(target, reason="Motivo")
        assert mgr.status == source

    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == {
            DocumentStatus.ACCEPTED,
            DocumentStatus.REJECTED,
            DocumentStatus.VOIDED,
        }
        for status in TERMINAL_STATUSES:
            assert TRANSITIONS[status] == []
            assert LifecycleManager(_document(status)).is_terminal()

    def test_can_transition(self) -> None:
        mgr = LifecycleManager(_document())
        assert mgr.can_transition(DocumentStatus.SENT)
        assert not mgr.can_transition(DocumentStatus.ACCEPTED)


class TestReasons:
    """Pruebas de los motivos obligatorios."""

    @pytest.mark.parametrize("target", [DocumentStatus.REJECTED, DocumentStatus.VOIDED])
    def test_reason_required(self, target: DocumentStatus) -> None:
        mgr = LifecycleManager(_document())
        with pytest.raises(DianPreconditionError, match="motivo"):
            mgr.transition(target)
        with pytest.raises(DianPreconditionError, match="motivo"):
            mgr.transition(target, reason="   ")
        assert mgr.status == DocumentStatus.DRAFT

    def test_rejection_reason_stored(self) -> None:
        invoice = _document(DocumentStatus.SENT)
        LifecycleManager(invoice).transition(
            DocumentStatus.REJECTED, reason="FAK24: Documento duplicado"
        )
        assert invoice.rejection_reason == "FAK24: Documento duplicado"


class TestDocumentUpdates:
    """Pruebas de los campos actualizados por cada transición."""

    def test_sent_sets_timestamp_and_tracking(self) -> None:
        invoice = _document()
        invoice.last_error = "Timeout de red"
        ts = datetime(2026, 10, 19, 14, 30, tzinfo=UTC)

        LifecycleManager(invoice).transition(
            DocumentStatus.SENT, tracking_id="TRACK-000042", timestamp=ts
        )

        assert invoice.sent_at == ts
        assert invoice.tracking_id == "TRACK-000042"
        assert invoice.last_error is None

    def test_accepted_sets_timestamp(self) -> None:
        invoice = _document(DocumentStatus.SENT)
        LifecycleManager(invoice).transition(DocumentStatus.ACCEPTED)
        assert invoice.accepted_at is not None

    def test_history_is_appended(self) -> None:
        invoice = _document()
        mgr = LifecycleManager(invoice)
        mgr.transition(DocumentStatus.SENT, tracking_id="TRACK-000001")
        mgr.transition(DocumentStatus.ACCEPTED)

        assert [e.status for e in mgr.history] == [
            DocumentStatus.SENT,
            DocumentStatus.ACCEPTED,
        ]
        assert invoice.history[1].previous_status == DocumentStatus.SENT


class TestMetadata:
    """Pruebas de los metadatos de los estados."""

    def test_all_statuses_have_metadata(self) -> None:
        for status in DocumentStatus:
            assert status in STATUS_METADATA
            assert status in TRANSITIONS

    @pytest.mark.parametrize(
        "status,allowed",
        [
            (DocumentStatus.DRAFT, False),
            (DocumentStatus.SENT, True),
            (DocumentStatus.ACCEPTED, True),
            (DocumentStatus.REJECTED, False),
            (DocumentStatus.VOIDED, False),
        ],
    )
    def test_can_parent_notes(self, status: DocumentStatus, allowed: bool) -> None:
        assert LifecycleManager(_document(status)).can_parent_notes() is allowed
