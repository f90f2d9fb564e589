"""Servicio de comprobantes contables (partida doble).

ES: Un comprobante se crea en DRAFT (puede estar descuadrado), se
    contabiliza solo si Σ débitos == Σ créditos exactamente, y se anula
    solo desde POSTED con un motivo. Las transiciones son en un solo
    sentido: DRAFT → POSTED → VOIDED.
EN: An entry is created DRAFT (may be unbalanced), posted only when
    sum(debit) == sum(credit) exactly, and voided only from POSTED with a
    reason. Transitions are one-way: DRAFT → POSTED → VOIDED.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Any

from pydantic import ValidationError

from stockflow_dian.context import Permission, RequestContext
from stockflow_dian.errors import (
    DianNotFoundError,
    DianPreconditionError,
    DianValidationError,
)
from stockflow_dian.models.config import JOURNAL_NUMBER_RANGE
from stockflow_dian.models.enums import (
    DocumentFamily,
    JournalEntrySource,
    JournalEntryStatus,
)
from stockflow_dian.models.journal import JournalEntry, JournalLine
from stockflow_dian.numbering.allocator import (
    BaseSequenceAllocator,
    NumberingScope,
    format_document_number,
)
from stockflow_dian.settings import LifecycleSettings
from stockflow_dian.store.base import BaseDocumentStore

logger = logging.getLogger(__name__)


class JournalService:
    """Creación, contabilización y anulación de comprobantes contables."""

    def __init__(
        self,
        store: BaseDocumentStore,
        allocator: BaseSequenceAllocator,
        settings: LifecycleSettings | None = None,
    ) -> None:
        self.store = store
        self.allocator = allocator
        self.settings = settings or LifecycleSettings()

    async def _next_number(self, tenant_id: str) -> str:
        scope = NumberingScope(
            tenant_id=tenant_id,
            family=DocumentFamily.JOURNAL_ENTRY,
            series=JOURNAL_NUMBER_RANGE.series,
        )
        sequence = await self.allocator.allocate(scope, JOURNAL_NUMBER_RANGE)
        return format_document_number(
            JOURNAL_NUMBER_RANGE.prefix, sequence, self.settings.journal_number_width
        )

    def _build(
        self,
        tenant_id: str,
        description: str,
        lines: Iterable[JournalLine | dict[str, Any]],
        entry_date: date | None,
        source: JournalEntrySource,
        document_id: str | None,
    ) -> JournalEntry:
        data: dict[str, Any] = {
            "tenant_id": tenant_id,
            "description": description,
            "lines": list(lines),
            "source": source,
            "document_id": document_id,
        }
        if entry_date is not None:
            data["entry_date"] = entry_date
        try:
            return JournalEntry.model_validate(data)
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
            msg = "Comprobante contable inválido"
            raise DianValidationError(msg, errors=errors) from exc

    async def get_entry(self, context: RequestContext, entry_id: str) -> JournalEntry:
        context.require(Permission.ACCOUNTING_VIEW)
        return await self._load(context.tenant_id, entry_id)

    async def list_entries(
        self, context: RequestContext, document_id: str | None = None
    ) -> list[JournalEntry]:
        context.require(Permission.ACCOUNTING_VIEW)
        return await self.store.list_journal_entries(context.tenant_id, document_id)

    async def _load(self, tenant_id: str, entry_id: str) -> JournalEntry:
        entry = await self.store.get_journal_entry(tenant_id, entry_id)
        if entry is None:
            msg = f"Comprobante no encontrado : {entry_id}"
            raise DianNotFoundError(msg)
        return entry

    async def create_entry(
        self,
        context: RequestContext,
        description: str,
        lines: Iterable[JournalLine | dict[str, Any]],
        *,
        entry_date: date | None = None,
        source: JournalEntrySource = JournalEntrySource.MANUAL,
        document_id: str | None = None,
    ) -> JournalEntry:
        """Crea un comprobante en DRAFT.

        Raises:
            DianValidationError: Si una línea no tiene exactamente un lado
                positivo o hay menos de dos líneas.
        """
        context.require(Permission.ACCOUNTING_CREATE)
        entry = self._build(
            context.tenant_id, description, lines, entry_date, source, document_id
        )
        entry.entry_number = await self._next_number(context.tenant_id)
        await self.store.save_journal_entry(entry)
        logger.info("Comprobante %s creado en borrador", entry.entry_number)
        return entry

    async def post(self, context: RequestContext, entry_id: str) -> JournalEntry:
        """Contabiliza un comprobante cuadrado (DRAFT → POSTED).

        Raises:
            DianPreconditionError: Si el comprobante no está en DRAFT.
            DianValidationError: Si Σ débitos != Σ créditos; el mensaje
                indica la diferencia.
        """
        context.require(Permission.ACCOUNTING_EDIT)
        entry = await self._load(context.tenant_id, entry_id)
        if entry.status != JournalEntryStatus.DRAFT:
            msg = (
                f"Solo se pueden contabilizar comprobantes en borrador "
                f"({entry.entry_number} está en {entry.status.value})."
            )
            raise DianPreconditionError(msg)

        if not entry.is_balanced:
            msg = (
                f"El comprobante {entry.entry_number} no está cuadrado : "
                f"débitos {entry.total_debit}, créditos {entry.total_credit}, "
                f"diferencia {entry.imbalance}"
            )
            raise DianValidationError(msg, errors=[f"diferencia: {entry.imbalance}"])

        entry.status = JournalEntryStatus.POSTED
        entry.posted_at = datetime.now(UTC)
        await self.store.save_journal_entry(entry)
        logger.info("Comprobante %s contabilizado", entry.entry_number)
        return entry

    async def void(
        self, context: RequestContext, entry_id: str, reason: str
    ) -> JournalEntry:
        """Anula un comprobante contabilizado (POSTED → VOIDED).

        Raises:
            DianValidationError: Si el motivo está vacío.
            DianPreconditionError: Si el comprobante no está POSTED.
        """
        context.require(Permission.ACCOUNTING_EDIT)
        if not reason or not reason.strip():
            msg = "Se requiere un motivo de anulación."
            raise DianValidationError(msg, errors=["reason: obligatorio"])

        entry = await self._load(context.tenant_id, entry_id)
        if entry.status != JournalEntryStatus.POSTED:
            msg = (
                f"Solo se pueden anular comprobantes contabilizados "
                f"({entry.entry_number} está en {entry.status.value})."
            )
            raise DianPreconditionError(msg)

        entry.status = JournalEntryStatus.VOIDED
        entry.voided_at = datetime.now(UTC)
        entry.void_reason = reason.strip()
        await self.store.save_journal_entry(entry)
        logger.info("Comprobante %s anulado : %s", entry.entry_number, entry.void_reason)
        return entry

    async def record_auto_entry(
        self,
        tenant_id: str,
        description: str,
        lines: Iterable[JournalLine | dict[str, Any]],
        *,
        source: JournalEntrySource,
        document_id: str | None = None,
        entry_date: date | None = None,
    ) -> JournalEntry:
        """Registra un comprobante automático ya contabilizado.

        Raises:
            DianValidationError: Si las líneas son inválidas o no cuadran.
        """
        entry = self._build(tenant_id, description, lines, entry_date, source, document_id)
        if not entry.is_balanced:
            msg = f"Comprobante automático descuadrado : diferencia {entry.imbalance}"
            raise DianValidationError(msg, errors=[f"diferencia: {entry.imbalance}"])

        entry.entry_number = await self._next_number(tenant_id)
        entry.status = JournalEntryStatus.POSTED
        entry.posted_at = datetime.now(UTC)
        await self.store.save_journal_entry(entry)
        logger.info(
            "Comprobante automático %s registrado (%s)", entry.entry_number, source.value
        )
        return entry
