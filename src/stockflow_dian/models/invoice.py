"""Modelos de factura electrónica de venta.

ES: Factura y líneas de factura. El total cumple
    total == subtotal + impuesto - descuento desde la creación y nunca
    se recalcula después del envío.
EN: Invoice and invoice lines. total == subtotal + tax - discount holds
    from creation and is never recomputed after sending.
"""

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

from stockflow_dian.errors import DianValidationError
from stockflow_dian.models.document import (
    ElectronicDocument,
    _new_id,
    quantize_money,
)
from stockflow_dian.models.enums import DocumentFamily


class InvoiceLine(BaseModel):
    """Línea de factura.

    ES: Producto, cantidad, precio unitario, tarifa de IVA y descuento.
        Inmutable una vez la factura sale de borrador.
    EN: Product, quantity, unit price, tax rate and discount.
    """

    id: str = Field(default_factory=_new_id)
    product_id: str | None = Field(default=None, description="Producto / Product")
    description: str = Field(..., min_length=1, description="Descripción / Description")
    quantity: Decimal = Field(..., gt=0, description="Cantidad / Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Precio unitario / Unit price")
    tax_rate: Decimal = Field(
        default=Decimal("19"),
        ge=0,
        description="Tarifa de IVA en % / Tax rate in %",
    )
    discount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Descuento de la línea / Line discount amount",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def subtotal(self) -> Decimal:
        """Base gravable de la línea / Line subtotal."""
        return quantize_money(self.quantity * self.unit_price)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tax(self) -> Decimal:
        """IVA de la línea / Line tax."""
        return quantize_money(self.subtotal * self.tax_rate / Decimal("100"))


class Invoice(ElectronicDocument):
    """Factura electrónica de venta.

    ES: Creada en DRAFT por el flujo CRUD; el número se asigna en el envío
        a partir del rango de la resolución del inquilino.
    EN: Created in DRAFT by the CRUD flow; the number is assigned on send
        from the tenant's resolution range.
    """

    family: DocumentFamily = DocumentFamily.INVOICE
    customer_id: str | None = None
    lines: list[InvoiceLine] = Field(default_factory=list)

    @classmethod
    def create_draft(
        cls,
        tenant_id: str,
        lines: Iterable[InvoiceLine],
        *,
        discount: Decimal = Decimal("0"),
        **kwargs: object,
    ) -> "Invoice":
        """Crea una factura en borrador calculando sus totales desde las líneas.

        Args:
            tenant_id: Inquilino propietario.
            lines: Líneas de la factura.
            discount: Descuento global adicional a los descuentos de línea.
            **kwargs: Otros campos del modelo (customer_id, issue_date...).
        """
        lines = list(lines)
        subtotal = sum((line.subtotal for line in lines), Decimal("0"))
        tax = sum((line.tax for line in lines), Decimal("0"))
        total_discount = quantize_money(
            discount + sum((line.discount for line in lines), Decimal("0"))
        )
        return cls(
            tenant_id=tenant_id,
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            discount=total_discount,
            total=subtotal + tax - total_discount,
            **kwargs,
        )

    def get_line(self, line_id: str) -> InvoiceLine | None:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def check_totals(self) -> None:
        """Revalida los totales almacenados contra las líneas.

        Raises:
            DianValidationError: Si no hay líneas o los totales no cuadran.
        """
        if not self.lines:
            msg = f"La factura {self.id} no tiene líneas."
            raise DianValidationError(msg, errors=["lines: al menos una línea"])

        errors: list[str] = []
        computed_subtotal = sum((line.subtotal for line in self.lines), Decimal("0"))
        computed_tax = sum((line.tax for line in self.lines), Decimal("0"))
        computed_total = computed_subtotal + computed_tax - self.discount

        if quantize_money(computed_subtotal) != quantize_money(self.subtotal):
            errors.append(f"subtotal: {self.subtotal} != {computed_subtotal}")
        if quantize_money(computed_tax) != quantize_money(self.tax):
            errors.append(f"tax: {self.tax} != {computed_tax}")
        if quantize_money(computed_total) != quantize_money(self.total):
            errors.append(f"total: {self.total} != {computed_total}")

        if errors:
            msg = f"Totales inconsistentes en la factura {self.id}"
            raise DianValidationError(msg, errors=errors)
