"""Numeración consecutiva de documentos por inquilino y familia."""

from stockflow_dian.numbering.allocator import (
    BaseSequenceAllocator,
    NumberingScope,
    format_document_number,
)
from stockflow_dian.numbering.memory import MemorySequenceAllocator

__all__ = [
    "BaseSequenceAllocator",
    "MemorySequenceAllocator",
    "NumberingScope",
    "format_document_number",
]
