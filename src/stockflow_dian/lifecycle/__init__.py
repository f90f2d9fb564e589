"""Ciclo de vida de los documentos electrónicos.

ES: Máquina de estados DRAFT/SENT/ACCEPTED/REJECTED/VOIDED y servicio de
    envío y consulta ante la DIAN.
EN: DRAFT/SENT/ACCEPTED/REJECTED/VOIDED state machine and the DIAN
    send/status service.
"""

from stockflow_dian.lifecycle.manager import (
    STATUS_METADATA,
    TERMINAL_STATUSES,
    TRANSITIONS,
    LifecycleManager,
    StatusInfo,
)
from stockflow_dian.lifecycle.service import (
    InvoiceLifecycle,
    NumberingStats,
    StatusResult,
    SubmissionResult,
)

__all__ = [
    "InvoiceLifecycle",
    "LifecycleManager",
    "NumberingStats",
    "STATUS_METADATA",
    "StatusInfo",
    "StatusResult",
    "SubmissionResult",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
]
