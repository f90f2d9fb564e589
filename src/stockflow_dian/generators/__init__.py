"""Generadores de documentos electrónicos (UBL 2.1 DIAN, CUFE/CUDE)."""

from stockflow_dian.generators.base import BaseGenerator, GenerationResult
from stockflow_dian.generators.cufe import compute_cufe
from stockflow_dian.generators.ubl import UBLGenerator

__all__ = [
    "BaseGenerator",
    "GenerationResult",
    "UBLGenerator",
    "compute_cufe",
]
