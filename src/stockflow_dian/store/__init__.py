"""Persistencia de documentos, configuración DIAN y comprobantes contables."""

from stockflow_dian.store.base import BaseDocumentStore
from stockflow_dian.store.memory import MemoryDocumentStore

__all__ = ["BaseDocumentStore", "MemoryDocumentStore"]
