"""Interfaz abstracta de persistencia de documentos, configuración y comprobantes.

ES: Toda lectura y escritura se delimita por tenant_id. Los servicios del
    núcleo solo dependen de esta interfaz; la implementación en memoria
    sirve a las pruebas y la de Django a producción.
EN: Every read and write is scoped by tenant_id. Core services only
    depend on this interface.
"""

from abc import ABCMeta, abstractmethod
from datetime import date

from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.document import ElectronicDocument
from stockflow_dian.models.enums import DocumentFamily, DocumentStatus
from stockflow_dian.models.journal import JournalEntry


class BaseDocumentStore(metaclass=ABCMeta):
    """Clase base abstracta de los almacenes de documentos."""

    # --- Documentos electrónicos ---

    @abstractmethod
    async def get_document(
        self, tenant_id: str, document_id: str
    ) -> ElectronicDocument | None:
        """Devuelve el documento del inquilino, o None si no existe."""
        ...

    @abstractmethod
    async def save_document(self, document: ElectronicDocument) -> None:
        """Crea o reemplaza el documento (número, estado, seguimiento, historial).

        Raises:
            DianPreconditionError: Si cambia líneas o totales de un
                documento guardado fuera de DRAFT.
        """
        ...

    @abstractmethod
    async def claim_for_send(
        self, document: ElectronicDocument, expected_attempts: int
    ) -> bool:
        """Guarda el documento solo si la versión persistida sigue disponible.

        ES: Comparar-y-guardar atómico: escribe el documento únicamente si
            la versión almacenada está en DRAFT con expected_attempts
            intentos de envío. Dos procesos que envían el mismo borrador
            leen el mismo contador; solo el primero lo reclama.
        EN: Atomic compare-and-set: writes the document only when the
            stored version is DRAFT with expected_attempts send attempts.

        Returns:
            True si el documento quedó reclamado, False en caso contrario.
        """
        ...

    @abstractmethod
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
        """Lista los documentos del inquilino, del más reciente al más antiguo.

        Los filtros son opcionales; las fechas de emisión son inclusivas.
        """
        ...

    @abstractmethod
    async def count_documents(
        self,
        tenant_id: str,
        family: DocumentFamily | None = None,
        *,
        status: DocumentStatus | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
    ) -> int:
        """Cuenta los documentos del inquilino con los mismos filtros que list_documents."""
        ...

    # --- Configuración DIAN ---

    @abstractmethod
    async def get_config(self, tenant_id: str) -> DianConfig | None:
        ...

    @abstractmethod
    async def save_config(self, config: DianConfig) -> None:
        ...

    # --- Comprobantes contables ---

    @abstractmethod
    async def get_journal_entry(
        self, tenant_id: str, entry_id: str
    ) -> JournalEntry | None:
        ...

    @abstractmethod
    async def save_journal_entry(self, entry: JournalEntry) -> None:
        ...

    @abstractmethod
    async def list_journal_entries(
        self, tenant_id: str, document_id: str | None = None
    ) -> list[JournalEntry]:
        """Lista los comprobantes del inquilino, opcionalmente de un documento origen."""
        ...
