"""Máquina de estados del ciclo de vida de los documentos electrónicos.

ES: Grafo de transiciones DRAFT → SENT → ACCEPTED/REJECTED, con
    DRAFT → VOIDED para anular un borrador que nunca se enviará y
    DRAFT → REJECTED cuando la DIAN rechaza el documento en el mismo envío.
    Cada transición se valida, el motivo es obligatorio para REJECTED y
    VOIDED, y se conserva un historial fechado de eventos.
EN: DRAFT → SENT → ACCEPTED/REJECTED transition graph, plus
    DRAFT → VOIDED and DRAFT → REJECTED. Every transition is validated,
    a reason is required for REJECTED and VOIDED, and a timestamped
    event history is kept.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import NamedTuple

from stockflow_dian.errors import DianPreconditionError
from stockflow_dian.models.document import ElectronicDocument, LifecycleEvent
from stockflow_dian.models.enums import DocumentStatus

# ---------------------------------------------------------------------------
# Grafo de transiciones autorizadas
# ---------------------------------------------------------------------------

TRANSITIONS: dict[DocumentStatus, list[DocumentStatus]] = {
    DocumentStatus.DRAFT: [
        DocumentStatus.SENT,
        DocumentStatus.REJECTED,
        DocumentStatus.VOIDED,
    ],
    DocumentStatus.SENT: [
        DocumentStatus.ACCEPTED,
        DocumentStatus.REJECTED,
    ],
    # Terminales (sin transición de salida)
    DocumentStatus.ACCEPTED: [],
    DocumentStatus.REJECTED: [],
    DocumentStatus.VOIDED: [],
}

# ---------------------------------------------------------------------------
# Metadatos de los estados
# ---------------------------------------------------------------------------


class StatusInfo(NamedTuple):
    """Metadatos de un estado del ciclo de vida."""

    label: str
    reason_required: bool = False
    note_parent_allowed: bool = False


STATUS_METADATA: dict[DocumentStatus, StatusInfo] = {
    DocumentStatus.DRAFT: StatusInfo(label="Borrador"),
    DocumentStatus.SENT: StatusInfo(label="Enviado", note_parent_allowed=True),
    DocumentStatus.ACCEPTED: StatusInfo(label="Aceptado", note_parent_allowed=True),
    DocumentStatus.REJECTED: StatusInfo(label="Rechazado", reason_required=True),
    DocumentStatus.VOIDED: StatusInfo(label="Anulado", reason_required=True),
}

# Estados terminales (sin transición de salida)
TERMINAL_STATUSES: frozenset[DocumentStatus] = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)


class LifecycleManager:
    """Gestor del ciclo de vida de un documento.

    ES: Aplica las transiciones directamente sobre el documento (estado,
        fechas de envío y aceptación, motivo de rechazo) y agrega cada
        evento a su historial.
    EN: Applies transitions on the document itself and appends every
        event to its history.
    """

    def __init__(self, document: ElectronicDocument) -> None:
        self.document = document

    @property
    def status(self) -> DocumentStatus:
        return self.document.status

    @property
    def history(self) -> list[LifecycleEvent]:
        return self.document.history

    def can_transition(self, target: DocumentStatus) -> bool:
        """Verifica si la transición hacia el estado destino está autorizada."""
        return target in TRANSITIONS.get(self.status, [])

    def transition(
        self,
        target: DocumentStatus,
        *,
        reason: str | None = None,
        tracking_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> LifecycleEvent:
        """Efectúa la transición hacia el estado destino.

        Args:
            target: Estado destino.
            reason: Motivo (obligatorio para REJECTED y VOIDED).
            tracking_id: trackId DIAN asociado al evento.
            timestamp: Fecha del evento (UTC now por defecto).

        Returns:
            El evento creado.

        Raises:
            DianPreconditionError: Si la transición no está autorizada o
                falta un motivo obligatorio.
        """
        if not self.can_transition(target):
            allowed = [s.value for s in TRANSITIONS.get(self.status, [])]
            msg = (
                f"Transición no autorizada : {self.status.value} → {target.value}. "
                f"Transiciones posibles : {allowed}"
            )
            raise DianPreconditionError(msg)

        metadata = STATUS_METADATA[target]
        if metadata.reason_required and not (reason and reason.strip()):
            msg = f"El estado {target.value} exige un motivo (parámetro 'reason')."
            raise DianPreconditionError(msg)

        if timestamp is None:
            timestamp = datetime.now(UTC)

        event = LifecycleEvent(
            timestamp=timestamp,
            status=target,
            previous_status=self.status,
            reason=reason,
            tracking_id=tracking_id,
        )

        document = self.document
        document.status = target
        if tracking_id is not None:
            document.tracking_id = tracking_id
        if target == DocumentStatus.SENT:
            document.sent_at = timestamp
            document.last_error = None
        elif target == DocumentStatus.ACCEPTED:
            document.accepted_at = timestamp
        elif target == DocumentStatus.REJECTED:
            document.rejection_reason = reason
        document.history.append(event)
        return event

    def is_terminal(self) -> bool:
        """Verifica si el estado actual es terminal."""
        return self.status in TERMINAL_STATUSES

    def can_parent_notes(self) -> bool:
        """Verifica si el documento puede ser origen de notas crédito/débito."""
        return STATUS_METADATA[self.status].note_parent_allowed
