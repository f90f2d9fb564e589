"""Almacén y asignador de consecutivos respaldados por el ORM de Django.

ES: Cada método async delega en su versión síncrona a través de
    asgiref.sync.sync_to_async. La asignación de números hace la
    lectura-incremento-escritura dentro de transaction.atomic() con
    select_for_update() sobre la fila del contador: dos procesos que
    envían en paralelo para el mismo inquilino nunca reciben el mismo
    número.
EN: Every async method delegates to its sync version through
    sync_to_async. Number allocation runs the read-increment-write inside
    transaction.atomic() with select_for_update() on the counter row.
"""

from __future__ import annotations

import logging
from datetime import date

from asgiref.sync import sync_to_async
from django.db import transaction
from django.db.models import QuerySet

from stockflow_dian.contrib.django.models import (
    Document,
    JournalEntry,
    NumberingSequence,
    TenantDianConfig,
)
from stockflow_dian.models.config import DianConfig, NumberRange
from stockflow_dian.models.document import ElectronicDocument
from stockflow_dian.models.enums import DocumentFamily, DocumentStatus
from stockflow_dian.models.journal import JournalEntry as PydanticJournalEntry
from stockflow_dian.numbering.allocator import (
    BaseSequenceAllocator,
    NumberingScope,
    exhausted_error,
)
from stockflow_dian.store.base import BaseDocumentStore

logger = logging.getLogger(__name__)


class DjangoDocumentStore(BaseDocumentStore):
    """Almacén de documentos sobre los modelos Django."""

    # --- Versiones síncronas ---

    def get_document_sync(
        self, tenant_id: str, document_id: str
    ) -> ElectronicDocument | None:
        row = (
            Document.objects.prefetch_related("lines")
            .filter(tenant_id=tenant_id, document_id=document_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def save_document_sync(self, document: ElectronicDocument) -> None:
        Document.save_from_pydantic(document)

    @transaction.atomic
    def claim_for_send_sync(
        self, document: ElectronicDocument, expected_attempts: int
    ) -> bool:
        """Reclama el borrador bajo select_for_update() sobre su fila."""
        row = (
            Document.objects.select_for_update()
            .filter(tenant_id=document.tenant_id, document_id=document.id)
            .first()
        )
        if (
            row is None
            or row.status != DocumentStatus.DRAFT
            or row.send_attempts != expected_attempts
        ):
            logger.debug("Documento %s ya reclamado por otro envío", document.id)
            return False
        Document.save_from_pydantic(document)
        return True

    def _documents(
        self,
        tenant_id: str,
        family: DocumentFamily | None,
        status: DocumentStatus | None,
        issued_from: date | None,
        issued_to: date | None,
    ) -> QuerySet[Document]:
        queryset = Document.objects.filter(tenant_id=tenant_id)
        if family is not None:
            queryset = queryset.filter(family=family.value)
        if status is not None:
            queryset = queryset.filter(status=status.value)
        if issued_from is not None:
            queryset = queryset.filter(issue_date__gte=issued_from)
        if issued_to is not None:
            queryset = queryset.filter(issue_date__lte=issued_to)
        return queryset

    def list_documents_sync(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ElectronicDocument]:
        queryset = (
            self._documents(tenant_id, family, status, issued_from, issued_to)
            .prefetch_related("lines")
            .order_by("-created_at", "-pk")
        )
        end = None if limit is None else offset + limit
        return [row.to_pydantic() for row in queryset[offset:end]]

    def count_documents_sync(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
    ) -> int:
        return self._documents(tenant_id, family, status, issued_from, issued_to).count()

    def get_config_sync(self, tenant_id: str) -> DianConfig | None:
        row = TenantDianConfig.objects.filter(tenant_id=tenant_id).first()
        return row.to_pydantic() if row else None

    def save_config_sync(self, config: DianConfig) -> None:
        TenantDianConfig.save_from_pydantic(config)

    def get_journal_entry_sync(
        self, tenant_id: str, entry_id: str
    ) -> PydanticJournalEntry | None:
        row = (
            JournalEntry.objects.prefetch_related("lines")
            .filter(tenant_id=tenant_id, entry_id=entry_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def save_journal_entry_sync(self, entry: PydanticJournalEntry) -> None:
        JournalEntry.save_from_pydantic(entry)

    def list_journal_entries_sync(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[PydanticJournalEntry]:
        queryset = JournalEntry.objects.prefetch_related("lines").filter(tenant_id=tenant_id)
        if document_id is not None:
            queryset = queryset.filter(document_id=document_id)
        return [row.to_pydantic() for row in queryset.order_by("pk")]

    # --- Interfaz async ---

    async def get_document(
        self, tenant_id: str, document_id: str
    ) -> ElectronicDocument | None:
        return await sync_to_async(self.get_document_sync)(tenant_id, document_id)

    async def save_document(self, document: ElectronicDocument) -> None:
        await sync_to_async(self.save_document_sync)(document)

    async def claim_for_send(
        self, document: ElectronicDocument, expected_attempts: int
    ) -> bool:
        return await sync_to_async(self.claim_for_send_sync)(document, expected_attempts)

    async def list_documents(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ElectronicDocument]:
        return await sync_to_async(self.list_documents_sync)(
            tenant_id,
            family,
            status=status,
            issued_from=issued_from,
            issued_to=issued_to,
            offset=offset,
            limit=limit,
        )

    async def count_documents(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
    ) -> int:
        return await sync_to_async(self.count_documents_sync)(
            tenant_id,
            family,
            status=status,
            issued_from=issued_from,
            issued_to=issued_to,
        )

    async def get_config(self, tenant_id: str) -> DianConfig | None:
        return await sync_to_async(self.get_config_sync)(tenant_id)

    async def save_config(self, config: DianConfig) -> None:
        await sync_to_async(self.save_config_sync)(config)

    async def get_journal_entry(
        self, tenant_id: str, entry_id: str
    ) -> PydanticJournalEntry | None:
        return await sync_to_async(self.get_journal_entry_sync)(tenant_id, entry_id)

    async def save_journal_entry(self, entry: PydanticJournalEntry) -> None:
        await sync_to_async(self.save_journal_entry_sync)(entry)

    async def list_journal_entries(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[PydanticJournalEntry]:
        return await sync_to_async(self.list_journal_entries_sync)(tenant_id, document_id)


class DjangoSequenceAllocator(BaseSequenceAllocator):
    """Asignador de consecutivos con bloqueo de fila en base de datos."""

    @transaction.atomic
    def allocate_sync(self, scope: NumberingScope, number_range: NumberRange) -> int:
        """Reserva el siguiente número bajo select_for_update()."""
        NumberingSequence.objects.get_or_create(
            tenant_id=scope.tenant_id,
            family=scope.family.value,
            series=scope.series,
            defaults={"next_number": number_range.start},
        )
        counter = NumberingSequence.objects.select_for_update().get(
            tenant_id=scope.tenant_id,
            family=scope.family.value,
            series=scope.series,
        )
        number = max(counter.next_number, number_range.start)
        if not number_range.contains(number):
            raise exhausted_error(scope, number_range)

        counter.next_number = number + 1
        counter.save(update_fields=["next_number", "updated_at"])
        logger.debug("Consecutivo %s asignado en %s", number, scope)
        return number

    def peek_sync(self, scope: NumberingScope, number_range: NumberRange) -> int:
        counter = NumberingSequence.objects.filter(
            tenant_id=scope.tenant_id,
            family=scope.family.value,
            series=scope.series,
        ).first()
        if counter is None:
            return number_range.start
        return max(counter.next_number, number_range.start)

    async def allocate(self, scope: NumberingScope, number_range: NumberRange) -> int:
        return await sync_to_async(self.allocate_sync)(scope, number_range)

    async def peek(self, scope: NumberingScope, number_range: NumberRange) -> int:
        return await sync_to_async(self.peek_sync)(scope, number_range)
