"""Emisión de notas crédito y débito a partir de una factura.

ES: La factura origen debe estar SENT o ACCEPTED y nunca se modifica.
    Cada nota toma su consecutivo del prefijo de su familia, se guarda en
    DRAFT y luego se envía por el mismo ciclo de vida que las facturas
    (mismo contrato SENT/REJECTED).
EN: The parent invoice must be SENT or ACCEPTED and is never mutated.
    Each note draws its number from its family prefix, is saved as DRAFT
    and then submitted through the same lifecycle as invoices.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from stockflow_dian.context import Permission, RequestContext
from stockflow_dian.errors import DianPreconditionError, DianValidationError
from stockflow_dian.lifecycle.manager import LifecycleManager
from stockflow_dian.lifecycle.service import InvoiceLifecycle, SubmissionResult
from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.enums import (
    CreditNoteReason,
    CreditNoteScope,
    DebitNoteReason,
    DocumentFamily,
)
from stockflow_dian.models.invoice import Invoice
from stockflow_dian.models.notes import (
    CreditNote,
    CreditNoteItem,
    DebitNote,
    DebitNoteItem,
    NoteLine,
)

logger = logging.getLogger(__name__)

_CREDIT_ITEMS = TypeAdapter(list[CreditNoteItem])
_DEBIT_ITEMS = TypeAdapter(list[DebitNoteItem])


def _format_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]


class NoteIssueResult(BaseModel):
    """Nota emitida y resultado de su envío."""

    note: CreditNote | DebitNote
    submission: SubmissionResult


class NoteIssuer:
    """Emisor de notas crédito y débito."""

    def __init__(self, lifecycle: InvoiceLifecycle) -> None:
        self.lifecycle = lifecycle

    async def _load_parent(self, context: RequestContext, invoice_id: str) -> Invoice:
        document = await self.lifecycle.get_document(context, invoice_id)
        if not isinstance(document, Invoice):
            msg = f"El documento {invoice_id} no es una factura electrónica."
            raise DianPreconditionError(msg)
        if not LifecycleManager(document).can_parent_notes():
            msg = (
                f"Solo se pueden emitir notas sobre facturas enviadas o aceptadas "
                f"({document.number or document.id} está en {document.status.value})."
            )
            raise DianPreconditionError(msg)
        return document

    async def issue_credit_note(
        self,
        context: RequestContext,
        invoice_id: str,
        reason_code: CreditNoteReason | str,
        reason: str | None = None,
        description: str | None = None,
        items: Iterable[CreditNoteItem | dict[str, Any]] | None = None,
    ) -> NoteIssueResult:
        """Emite una nota crédito total o parcial.

        ES: Sin items, la nota refleja el 100 % de la factura (subtotal,
            impuesto, descuento y total). Con items, solo las líneas
            seleccionadas con cantidades en [0, cantidad original].
        EN: Without items, the note mirrors 100% of the invoice. With
            items, only the selected lines with quantities in
            [0, original quantity].

        Raises:
            DianPreconditionError: Si la factura no está SENT o ACCEPTED.
            DianConfigurationError: Si falta el prefijo o la configuración DIAN.
            DianValidationError: Si las líneas solicitadas son inválidas.
        """
        context.require(Permission.DIAN_SEND)
        invoice = await self._load_parent(context, invoice_id)
        config = await self.lifecycle.require_config(context.tenant_id)
        self.lifecycle.number_range(config, DocumentFamily.CREDIT_NOTE)

        try:
            reason_code = CreditNoteReason(reason_code)
        except ValueError as exc:
            msg = f"Motivo de nota crédito inválido : {reason_code}"
            raise DianValidationError(msg, errors=[f"reason_code: {reason_code}"]) from exc

        if items is None:
            note = self._total_credit_note(invoice, reason_code, reason, description)
        else:
            try:
                parsed = _CREDIT_ITEMS.validate_python(list(items))
            except ValidationError as exc:
                msg = "Líneas de nota crédito inválidas"
                raise DianValidationError(msg, errors=_format_errors(exc)) from exc
            note = self._partial_credit_note(invoice, reason_code, reason, description, parsed)

        return await self._issue(context, note, config)

    def _total_credit_note(
        self,
        invoice: Invoice,
        reason_code: CreditNoteReason,
        reason: str | None,
        description: str | None,
    ) -> CreditNote:
        lines = [
            NoteLine.compute(
                invoice_item_id=line.id,
                product_id=line.product_id,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
            )
            for line in invoice.lines
        ]
        return CreditNote(
            tenant_id=invoice.tenant_id,
            invoice_id=invoice.id,
            invoice_number=invoice.number,
            customer_document=invoice.customer_document,
            reason_code=reason_code,
            reason=reason,
            description=description,
            scope=CreditNoteScope.TOTAL,
            lines=lines,
            subtotal=invoice.subtotal,
            tax=invoice.tax,
            discount=invoice.discount,
            total=invoice.total,
        )

    def _partial_credit_note(
        self,
        invoice: Invoice,
        reason_code: CreditNoteReason,
        reason: str | None,
        description: str | None,
        items: list[CreditNoteItem],
    ) -> CreditNote:
        errors: list[str] = []
        seen: set[str] = set()
        lines: list[NoteLine] = []

        for item in items:
            if item.invoice_item_id in seen:
                errors.append(f"{item.invoice_item_id}: línea repetida")
                continue
            seen.add(item.invoice_item_id)

            original = invoice.get_line(item.invoice_item_id)
            if original is None:
                errors.append(f"{item.invoice_item_id}: la línea no pertenece a la factura")
                continue
            if item.quantity > original.quantity:
                errors.append(
                    f"{item.invoice_item_id}: cantidad {item.quantity} "
                    f"mayor a la facturada ({original.quantity})"
                )
                continue
            if item.quantity == 0:
                continue
            lines.append(
                NoteLine.compute(
                    invoice_item_id=original.id,
                    product_id=original.product_id,
                    description=original.description,
                    quantity=item.quantity,
                    unit_price=original.unit_price,
                    tax_rate=original.tax_rate,
                )
            )

        if not errors and not lines:
            errors.append("items: al menos una línea con cantidad mayor a 0")
        if errors:
            msg = "Líneas de nota crédito inválidas"
            raise DianValidationError(msg, errors=errors)

        subtotal = sum((line.subtotal for line in lines), Decimal("0"))
        tax = sum((line.tax for line in lines), Decimal("0"))
        return CreditNote(
            tenant_id=invoice.tenant_id,
            invoice_id=invoice.id,
            invoice_number=invoice.number,
            customer_document=invoice.customer_document,
            reason_code=reason_code,
            reason=reason,
            description=description,
            scope=CreditNoteScope.PARTIAL,
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
        )

    async def issue_debit_note(
        self,
        context: RequestContext,
        invoice_id: str,
        reason_code: DebitNoteReason | str,
        reason: str | None = None,
        description: str | None = None,
        items: Iterable[DebitNoteItem | dict[str, Any]] = (),
    ) -> NoteIssueResult:
        """Emite una nota débito con cargos adicionales.

        ES: total = Σ cantidad × precio × (1 + tarifa / 100).
        EN: total = Σ quantity × price × (1 + rate / 100).

        Raises:
            DianPreconditionError: Si la factura no está SENT o ACCEPTED.
            DianConfigurationError: Si falta el prefijo o la configuración DIAN.
            DianValidationError: Si no hay cargos o alguno es inválido.
        """
        context.require(Permission.DIAN_SEND)
        invoice = await self._load_parent(context, invoice_id)
        config = await self.lifecycle.require_config(context.tenant_id)
        self.lifecycle.number_range(config, DocumentFamily.DEBIT_NOTE)

        try:
            reason_code = DebitNoteReason(reason_code)
        except ValueError as exc:
            msg = f"Motivo de nota débito inválido : {reason_code}"
            raise DianValidationError(msg, errors=[f"reason_code: {reason_code}"]) from exc

        try:
            parsed = _DEBIT_ITEMS.validate_python(list(items))
        except ValidationError as exc:
            msg = "Cargos de nota débito inválidos"
            raise DianValidationError(msg, errors=_format_errors(exc)) from exc
        if not parsed:
            msg = "La nota débito requiere al menos un cargo."
            raise DianValidationError(msg, errors=["items: al menos un cargo"])

        lines = [
            NoteLine.compute(
                description=item.description,
                quantity=Decimal(item.quantity),
                unit_price=item.unit_price,
                tax_rate=item.tax_rate,
            )
            for item in parsed
        ]
        subtotal = sum((line.subtotal for line in lines), Decimal("0"))
        tax = sum((line.tax for line in lines), Decimal("0"))
        note = DebitNote(
            tenant_id=invoice.tenant_id,
            invoice_id=invoice.id,
            invoice_number=invoice.number,
            customer_document=invoice.customer_document,
            reason_code=reason_code,
            reason=reason,
            description=description,
            lines=lines,
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
        )
        return await self._issue(context, note, config)

    async def _issue(
        self,
        context: RequestContext,
        note: CreditNote | DebitNote,
        config: DianConfig,
    ) -> NoteIssueResult:
        await self.lifecycle.assign_number(note, config)
        await self.lifecycle.store.save_document(note)
        logger.info(
            "Nota %s (%s) emitida sobre la factura %s",
            note.number,
            note.reason_code.value,
            note.invoice_number,
        )

        submission = await self.lifecycle.send(context, note.id)
        stored = await self.lifecycle.get_document(context, note.id)
        return NoteIssueResult(note=stored, submission=submission)  # type: ignore[arg-type]
