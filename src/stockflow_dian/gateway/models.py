"""Modelos de datos de los intercambios con el gateway DIAN.

ES: DocumentPayload es lo que el núcleo entrega al gateway; la firma XML
    y el transporte SOAP pertenecen al adaptador concreto.
EN: DocumentPayload is what the core hands over to the gateway; XML
    signing and SOAP transport belong to the concrete adapter.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from stockflow_dian.models.enums import DocumentFamily, GatewayOutcome


class PayloadLine(BaseModel):
    """Línea de documento tal como se transmite."""

    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    subtotal: Decimal
    tax: Decimal


class DocumentPayload(BaseModel):
    """Documento electrónico listo para transmitir.

    ES: Para notas crédito/débito, billing_reference lleva el número de la
        factura origen y reason_code el código de concepto DIAN.
    EN: For notes, billing_reference carries the parent invoice number and
        reason_code the DIAN response code.
    """

    document_id: str
    tenant_id: str
    family: DocumentFamily
    number: str
    issue_date: date
    cufe: str | None = None
    issuer_nit: str
    issuer_name: str
    customer_document: str | None = None
    subtotal: Decimal
    tax: Decimal
    discount: Decimal = Decimal("0")
    total: Decimal
    currency: str = "COP"
    test_mode: bool = True
    lines: list[PayloadLine] = Field(default_factory=list)
    billing_reference: str | None = None
    reason_code: str | None = None
    reason: str | None = None


class GatewayResponse(BaseModel):
    """Respuesta del gateway a submit() o check_status().

    ES: outcome ACCEPTED en submit() significa "recibido para validación";
        la aceptación definitiva llega por check_status().
    EN: ACCEPTED on submit() means "received for validation"; final
        acceptance is reported by check_status().
    """

    tracking_id: str | None = None
    outcome: GatewayOutcome
    reason: str | None = None
    errors: list[str] = Field(default_factory=list)
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
