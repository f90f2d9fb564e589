"""Almacén en memoria para pruebas y desarrollo.

ES: Devuelve siempre copias profundas: modificar un documento leído no
    altera el almacén hasta llamar a save_document().
EN: Always returns deep copies: mutating a loaded document does not
    touch the store until save_document() is called.
"""

from __future__ import annotations

import asyncio
from datetime import date

from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.document import ElectronicDocument
from stockflow_dian.models.enums import DocumentFamily, DocumentStatus
from stockflow_dian.models.journal import JournalEntry
from stockflow_dian.store.base import BaseDocumentStore


class MemoryDocumentStore(BaseDocumentStore):
    """Almacén de documentos en memoria."""

    def __init__(self) -> None:
        self._documents: dict[tuple[str, str], ElectronicDocument] = {}
        self._configs: dict[str, DianConfig] = {}
        self._entries: dict[tuple[str, str], JournalEntry] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    # --- Documentos electrónicos ---

    async def get_document(
        self, tenant_id: str, document_id: str
    ) -> ElectronicDocument | None:
        document = self._documents.get((tenant_id, document_id))
        return document.model_copy(deep=True) if document else None

    async def save_document(self, document: ElectronicDocument) -> None:
        key = (document.tenant_id, document.id)
        stored = self._documents.get(key)
        if stored is not None:
            document.ensure_same_content(stored)
        self._documents[key] = document.model_copy(deep=True)

    async def claim_for_send(
        self, document: ElectronicDocument, expected_attempts: int
    ) -> bool:
        key = (document.tenant_id, document.id)
        async with self._locks.setdefault(key, asyncio.Lock()):
            stored = self._documents.get(key)
            if (
                stored is None
                or not stored.is_draft
                or stored.send_attempts != expected_attempts
            ):
                return False
            await self.save_document(document)
            return True

    def _matching(
        self,
        tenant_id: str,
        family: DocumentFamily | None,
        status: DocumentStatus | None,
        issued_from: date | None,
        issued_to: date | None,
    ) -> list[ElectronicDocument]:
        # Orden de creación inverso : el más reciente primero
        return [
            document
            for (owner, _), document in reversed(self._documents.items())
            if owner == tenant_id
            and (family is None or document.family == family)
            and (status is None or document.status == status)
            and (issued_from is None or document.issue_date >= issued_from)
            and (issued_to is None or document.issue_date <= issued_to)
        ]

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
        documents = self._matching(tenant_id, family, status, issued_from, issued_to)
        end = None if limit is None else offset + limit
        return [document.model_copy(deep=True) for document in documents[offset:end]]

    async def count_documents(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
    ) -> int:
        return len(self._matching(tenant_id, family, status, issued_from, issued_to))

    # --- Configuración DIAN ---

    async def get_config(self, tenant_id: str) -> DianConfig | None:
        config = self._configs.get(tenant_id)
        return config.model_copy(deep=True) if config else None

    async def save_config(self, config: DianConfig) -> None:
        self._configs[config.tenant_id] = config.model_copy(deep=True)

    # --- Comprobantes contables ---

    async def get_journal_entry(
        self, tenant_id: str, entry_id: str
    ) -> JournalEntry | None:
        entry = self._entries.get((tenant_id, entry_id))
        return entry.model_copy(deep=True) if entry else None

    async def save_journal_entry(self, entry: JournalEntry) -> None:
        self._entries[(entry.tenant_id, entry.id)] = entry.model_copy(deep=True)

    async def list_journal_entries(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[JournalEntry]:
        return [
            entry.model_copy(deep=True)
            for (owner, _), entry in self._entries.items()
            if owner == tenant_id
            and (document_id is None or entry.document_id == document_id)
        ]
