"""Fixtures de las pruebas de notas crédito y débito."""

import pytest

from stockflow_dian.context import RequestContext
from stockflow_dian.lifecycle.service import InvoiceLifecycle
from stockflow_dian.models.invoice import Invoice
from stockflow_dian.notes.issuer import NoteIssuer
from stockflow_dian.store.memory import MemoryDocumentStore


@pytest.fixture
def note_issuer(lifecycle: InvoiceLifecycle) -> NoteIssuer:
    """Emisor de notas sobre el ciclo de vida en memoria."""
    return NoteIssuer(lifecycle)


@pytest.fixture
async def sent_simple_invoice(
    lifecycle: InvoiceLifecycle,
    admin_context: RequestContext,
    store: MemoryDocumentStore,
    simple_invoice: Invoice,
) -> Invoice:
    """Factura de total 119 ya enviada."""
    await store.save_document(simple_invoice)
    await lifecycle.send(admin_context, simple_invoice.id)
    return await lifecycle.get_document(admin_context, simple_invoice.id)
