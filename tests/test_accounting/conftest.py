"""Fixtures de las pruebas contables."""

from decimal import Decimal

import pytest

from stockflow_dian.accounting.bridge import AccountingBridge
from stockflow_dian.accounting.journal import JournalService
from stockflow_dian.context import RequestContext, Role
from stockflow_dian.gateway.connectors.memory import MemoryDianGateway
from stockflow_dian.lifecycle.service import InvoiceLifecycle
from stockflow_dian.models.journal import JournalLine
from stockflow_dian.numbering.memory import MemorySequenceAllocator
from stockflow_dian.store.memory import MemoryDocumentStore


@pytest.fixture
def journal(
    store: MemoryDocumentStore, allocator: MemorySequenceAllocator
) -> JournalService:
    """Servicio de comprobantes sobre el almacén en memoria."""
    return JournalService(store, allocator)


@pytest.fixture
def accountant_context() -> RequestContext:
    """Contexto de un contador del inquilino."""
    return RequestContext.for_role("ferreteria-norte", Role.ACCOUNTANT, user_id="u-contador")


@pytest.fixture
def balanced_lines() -> list[JournalLine]:
    """Compra de inventario de contado : 1.190.000 = 1.000.000 + IVA 190.000."""
    return [
        JournalLine(account_code="143505", description="Inventario", debit=Decimal("1000000")),
        JournalLine(account_code="240802", description="IVA descontable", debit=Decimal("190000")),
        JournalLine(account_code="110505", description="Caja general", credit=Decimal("1190000")),
    ]


@pytest.fixture
def bridged_lifecycle(
    store: MemoryDocumentStore,
    allocator: MemorySequenceAllocator,
    gateway: MemoryDianGateway,
    journal: JournalService,
) -> InvoiceLifecycle:
    """Ciclo de vida con registro contable automático."""
    return InvoiceLifecycle(
        store=store,
        allocator=allocator,
        gateway=gateway,
        bridge=AccountingBridge(journal),
    )
