"""Modelos de notas crédito y débito.

ES: Cada nota referencia exactamente una factura (referencia en un solo
    sentido: la factura no conoce sus notas) y lleva su propio consecutivo
    tomado del prefijo de su familia.
EN: Each note references exactly one invoice (one-way reference) and
    carries its own sequence number from its family's prefix.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from stockflow_dian.models.document import ElectronicDocument, quantize_money
from stockflow_dian.models.enums import (
    CreditNoteReason,
    CreditNoteScope,
    DebitNoteReason,
    DocumentFamily,
)


class CreditNoteItem(BaseModel):
    """Línea solicitada para una nota crédito parcial."""

    invoice_item_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(
        ...,
        ge=0,
        description="Cantidad a acreditar (<= cantidad original)",
    )


class DebitNoteItem(BaseModel):
    """Cargo adicional de una nota débito (sin relación con las líneas originales)."""

    description: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., gt=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "La descripción no puede estar vacía."
            raise ValueError(msg)
        return value


class NoteLine(BaseModel):
    """Línea recalculada de una nota.

    ES: subtotal = cantidad × precio unitario ;
        impuesto = subtotal × tarifa / 100 ; total = subtotal + impuesto.
    EN: subtotal = quantity × unit price; tax = subtotal × rate / 100.
    """

    invoice_item_id: str | None = None
    product_id: str | None = None
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = Decimal("0")
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def compute(
        cls,
        *,
        description: str,
        quantity: Decimal,
        unit_price: Decimal,
        tax_rate: Decimal,
        invoice_item_id: str | None = None,
        product_id: str | None = None,
    ) -> "NoteLine":
        """Construye una línea calculando subtotal, impuesto y total."""
        subtotal = quantize_money(quantity * unit_price)
        tax = quantize_money(subtotal * tax_rate / Decimal("100"))
        return cls(
            invoice_item_id=invoice_item_id,
            product_id=product_id,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            tax_rate=tax_rate,
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
        )


class CreditNote(ElectronicDocument):
    """Nota crédito: reduce o anula el valor de una factura emitida."""

    family: DocumentFamily = DocumentFamily.CREDIT_NOTE
    invoice_id: str
    invoice_number: str | None = None
    reason_code: CreditNoteReason
    reason: str | None = Field(
        default=None,
        description="Texto libre que precisa el motivo / Free-text refinement",
    )
    description: str | None = None
    scope: CreditNoteScope = CreditNoteScope.TOTAL
    lines: list[NoteLine] = Field(default_factory=list)


class DebitNote(ElectronicDocument):
    """Nota débito: agrega cargos adicionales a una factura emitida."""

    family: DocumentFamily = DocumentFamily.DEBIT_NOTE
    invoice_id: str
    invoice_number: str | None = None
    reason_code: DebitNoteReason
    reason: str | None = None
    description: str | None = None
    lines: list[NoteLine] = Field(default_factory=list)
