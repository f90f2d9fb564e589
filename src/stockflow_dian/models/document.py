"""Modelo base de los documentos electrónicos (factura, nota crédito, nota débito).

ES: Campos comunes a las tres familias: numeración, estado, totales,
    seguimiento DIAN e historial de eventos del ciclo de vida.
EN: Fields shared by the three families: numbering, status, totals,
    DIAN tracking and lifecycle event history.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from stockflow_dian.errors import DianPreconditionError
from stockflow_dian.models.enums import DocumentFamily, DocumentStatus

CENT = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """Redondea un monto a centavos."""
    return amount.quantize(CENT)


def _new_id() -> str:
    return uuid4().hex


class LifecycleEvent(BaseModel):
    """Evento del ciclo de vida de un documento.

    ES: Cambio de estado con fecha, motivo (rechazo, anulación) y
        el identificador de seguimiento DIAN si existe.
    EN: Timestamped status change with reason and DIAN tracking id.
    """

    timestamp: datetime
    status: DocumentStatus
    previous_status: DocumentStatus | None = None
    reason: str | None = None
    tracking_id: str | None = None


class ElectronicDocument(BaseModel):
    """Documento electrónico numerado y sujeto a la máquina de estados."""

    # --- Identificación ---
    id: str = Field(default_factory=_new_id)
    tenant_id: str = Field(..., min_length=1)
    family: DocumentFamily
    number: str | None = Field(
        default=None,
        description="Prefijo + consecutivo con ceros / Prefix + padded sequence",
    )
    sequence: int | None = Field(
        default=None,
        ge=0,
        description="Consecutivo numérico asignado / Allocated integer",
    )
    series: str | None = Field(
        default=None,
        description="Resolución o prefijo del que proviene el número",
    )
    issue_date: date = Field(default_factory=date.today)
    customer_document: str | None = Field(
        default=None,
        description="Documento del adquiriente (NIT/CC) / Customer document",
    )

    # --- Estado ---
    status: DocumentStatus = DocumentStatus.DRAFT

    # --- Totales (inmutables fuera de DRAFT) ---
    subtotal: Decimal = Field(default=Decimal("0"), ge=0)
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal = Field(default=Decimal("0"), ge=0)

    # --- Seguimiento DIAN ---
    cufe: str | None = Field(
        default=None,
        description="CUFE (factura) o CUDE (notas) / Unique document code",
    )
    tracking_id: str | None = None
    rejection_reason: str | None = None
    last_error: str | None = None
    send_attempts: int = Field(default=0, ge=0)
    sent_at: datetime | None = None
    accepted_at: datetime | None = None
    xml_content: str | None = Field(
        default=None,
        description="Último XML UBL enviado / Last UBL XML submitted",
    )

    history: list[LifecycleEvent] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_total(self) -> "ElectronicDocument":
        expected = self.subtotal + self.tax - self.discount
        if quantize_money(expected) != quantize_money(self.total):
            msg = (
                f"Total inconsistente : {self.total} != subtotal ({self.subtotal}) "
                f"+ impuesto ({self.tax}) - descuento ({self.discount})"
            )
            raise ValueError(msg)
        return self

    @property
    def is_draft(self) -> bool:
        return self.status == DocumentStatus.DRAFT

    def ensure_mutable(self) -> None:
        """Verifica que el documento siga en borrador.

        Raises:
            DianPreconditionError: Si el documento ya salió de DRAFT.
        """
        if not self.is_draft:
            msg = (
                f"El documento {self.number or self.id} está en estado "
                f"{self.status.value} : líneas y totales son inmutables."
            )
            raise DianPreconditionError(msg)

    def content_key(self) -> tuple:
        """Totales y líneas (descripción, cantidad, precio, tarifa)."""
        lines = tuple(
            (line.description, line.quantity, line.unit_price, line.tax_rate)
            for line in getattr(self, "lines", [])
        )
        return (self.subtotal, self.tax, self.discount, self.total, lines)

    def ensure_same_content(self, stored: "ElectronicDocument") -> None:
        """Rechaza la escritura si cambia líneas o totales de un documento emitido.

        ES: stored es la versión persistida; solo se admiten cambios de
            contenido mientras esa versión siga en DRAFT.
        EN: stored is the persisted version; content changes are only
            allowed while it is still DRAFT.

        Raises:
            DianPreconditionError: Si el contenido difiere fuera de DRAFT.
        """
        if self.content_key() != stored.content_key():
            stored.ensure_mutable()
