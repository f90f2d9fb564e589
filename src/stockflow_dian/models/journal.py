"""Modelos de comprobantes contables (partida doble).

ES: Un comprobante está cuadrado cuando la suma de débitos es igual a la
    suma de créditos. Estados DRAFT → POSTED → VOIDED, en un solo sentido.
EN: An entry is balanced when sum(debit) == sum(credit).
    Statuses DRAFT → POSTED → VOIDED, one-way.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field, model_validator

from stockflow_dian.models.document import _new_id, quantize_money
from stockflow_dian.models.enums import JournalEntrySource, JournalEntryStatus


class JournalLine(BaseModel):
    """Línea de comprobante: un solo lado (débito o crédito) estrictamente positivo."""

    account_code: str = Field(..., min_length=1, description="Cuenta PUC / Account code")
    description: str | None = None
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def _one_side(self) -> "JournalLine":
        if self.debit > 0 and self.credit > 0:
            msg = "Cada línea debe tener débito o crédito, no ambos."
            raise ValueError(msg)
        if self.debit == 0 and self.credit == 0:
            msg = "Cada línea debe tener un débito o crédito mayor a 0."
            raise ValueError(msg)
        return self


class JournalEntry(BaseModel):
    """Comprobante contable."""

    id: str = Field(default_factory=_new_id)
    tenant_id: str = Field(..., min_length=1)
    entry_number: str | None = None
    entry_date: date = Field(default_factory=date.today)
    description: str
    source: JournalEntrySource = JournalEntrySource.MANUAL
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    document_id: str | None = Field(
        default=None,
        description="Documento electrónico de origen / Source document",
    )
    lines: list[JournalLine] = Field(..., min_length=2)
    posted_at: datetime | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_debit(self) -> Decimal:
        return quantize_money(sum((line.debit for line in self.lines), Decimal("0")))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_credit(self) -> Decimal:
        return quantize_money(sum((line.credit for line in self.lines), Decimal("0")))

    @property
    def imbalance(self) -> Decimal:
        """Diferencia débito - crédito."""
        return self.total_debit - self.total_credit

    @property
    def is_balanced(self) -> bool:
        return self.imbalance == 0
