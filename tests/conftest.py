"""Fixtures compartidas de las pruebas del núcleo DIAN.

ES: Configuración DIAN completa, almacén y asignador en memoria, conector
    DIAN en memoria y facturas de prueba de una ferretería.
EN: Full DIAN configuration, in-memory store and allocator, in-memory
    DIAN connector and sample hardware-store invoices.
"""

from datetime import date
from decimal import Decimal

import pytest

from stockflow_dian.context import RequestContext, Role
from stockflow_dian.gateway.connectors.memory import MemoryDianGateway
from stockflow_dian.lifecycle.service import InvoiceLifecycle
from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.invoice import Invoice, InvoiceLine
from stockflow_dian.numbering.memory import MemorySequenceAllocator
from stockflow_dian.store.memory import MemoryDocumentStore

TENANT_ID = "ferreteria-norte"


@pytest.fixture
def dian_config() -> DianConfig:
    """Configuración DIAN completa (resolución 1..1000, prefijo SETP)."""
    return DianConfig(
        tenant_id=TENANT_ID,
        nit="900123456",
        dv="7",
        business_name="Ferretería del Norte SAS",
        test_mode=True,
        software_id="56f2ae4e-9812-4fad-9255-08fcfcd5ccb0",
        software_pin="12345",
        technical_key="fc8eac422eba16e22ffd8c6f94b3f40a6e38162c",
        resolution_number="18760000001",
        resolution_date=date(2026, 1, 19),
        resolution_prefix="SETP",
        resolution_range_from=1,
        resolution_range_to=1000,
        certificate_ref="certs/ferreteria-norte.p12",
        credit_note_prefix="NC",
        debit_note_prefix="ND",
    )


@pytest.fixture
def admin_context() -> RequestContext:
    """Contexto de un administrador del inquilino."""
    return RequestContext.for_role(TENANT_ID, Role.ADMIN, user_id="u-admin")


@pytest.fixture
async def store(dian_config: DianConfig) -> MemoryDocumentStore:
    """Almacén en memoria con la configuración DIAN del inquilino."""
    memory_store = MemoryDocumentStore()
    await memory_store.save_config(dian_config)
    return memory_store


@pytest.fixture
def allocator() -> MemorySequenceAllocator:
    """Asignador de consecutivos en memoria."""
    return MemorySequenceAllocator()


@pytest.fixture
def gateway() -> MemoryDianGateway:
    """Conector DIAN en memoria (acepta todo por defecto)."""
    return MemoryDianGateway()


@pytest.fixture
def lifecycle(
    store: MemoryDocumentStore,
    allocator: MemorySequenceAllocator,
    gateway: MemoryDianGateway,
) -> InvoiceLifecycle:
    """Servicio de ciclo de vida sobre los componentes en memoria."""
    return InvoiceLifecycle(store=store, allocator=allocator, gateway=gateway)


@pytest.fixture
def simple_invoice() -> Invoice:
    """Factura de una línea: subtotal 100, IVA 19, total 119."""
    return Invoice.create_draft(
        TENANT_ID,
        [
            InvoiceLine(
                id="line-taladro",
                description="Taladro percutor 1/2",
                quantity=Decimal("1"),
                unit_price=Decimal("100"),
                tax_rate=Decimal("19"),
            )
        ],
        customer_id="c-001",
        customer_document="1020304050",
        issue_date=date(2026, 10, 19),
    )


@pytest.fixture
def sample_invoice() -> Invoice:
    """Factura de dos líneas: subtotal 250, IVA 47.50, total 297.50."""
    return Invoice.create_draft(
        TENANT_ID,
        [
            InvoiceLine(
                id="line-tornillos",
                product_id="p-tornillo",
                description="Caja de tornillos drywall x100",
                quantity=Decimal("3"),
                unit_price=Decimal("50"),
                tax_rate=Decimal("19"),
            ),
            InvoiceLine(
                id="line-martillo",
                product_id="p-martillo",
                description="Martillo de uña 16 oz",
                quantity=Decimal("1"),
                unit_price=Decimal("100"),
                tax_rate=Decimal("19"),
            ),
        ],
        customer_id="c-002",
        customer_document="800765432",
        issue_date=date(2026, 10, 19),
    )


@pytest.fixture
async def draft_invoice(store: MemoryDocumentStore, sample_invoice: Invoice) -> Invoice:
    """Factura de dos líneas guardada en DRAFT."""
    await store.save_document(sample_invoice)
    return sample_invoice


@pytest.fixture
async def sent_invoice(
    lifecycle: InvoiceLifecycle,
    admin_context: RequestContext,
    draft_invoice: Invoice,
) -> Invoice:
    """Factura de dos líneas ya enviada (SENT, SETP00000001)."""
    await lifecycle.send(admin_context, draft_invoice.id)
    return await lifecycle.get_document(admin_context, draft_invoice.id)
