"""Conector DIAN en memoria para pruebas y desarrollo.

ES: Guarda los documentos recibidos en memoria y permite programar los
    resultados (aceptación, rechazo, error, falla de transporte) y una
    latencia simulada. Útil para las pruebas unitarias, las pruebas de
    concurrencia y la demostración.
EN: Stores received documents in memory and lets tests script outcomes
    (acceptance, rejection, error, transport failure) and latency.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime

from stockflow_dian.gateway.base import BaseDianGateway
from stockflow_dian.gateway.errors import GatewayNotFoundError
from stockflow_dian.gateway.models import DocumentPayload, GatewayResponse
from stockflow_dian.models.enums import GatewayOutcome


@dataclass
class _StoredSubmission:
    """Documento recibido con el resultado que devolverá check_status()."""

    tracking_id: str
    payload: DocumentPayload
    xml_bytes: bytes
    submitted_at: datetime
    outcome: GatewayOutcome = GatewayOutcome.ACCEPTED
    reason: str | None = None


_Scripted = tuple[GatewayOutcome, str | None] | Exception


class MemoryDianGateway(BaseDianGateway):
    """Conector DIAN en memoria.

    ES: Sin guion, submit() recibe el documento y check_status() lo
        reporta aceptado.
    EN: Without a script, submit() receives the document and
        check_status() reports it accepted.
    """

    def __init__(self, latency: float = 0.0, **kwargs: object) -> None:
        super().__init__(api_key="memory", environment="test")
        self.latency = latency
        self._submissions: dict[str, _StoredSubmission] = {}
        self._submit_script: deque[_Scripted] = deque()
        self._status_script: deque[_Scripted] = deque()
        self._counter: int = 0
        self.submit_calls: int = 0
        self.status_calls: int = 0

    def _next_tracking_id(self) -> str:
        self._counter += 1
        return f"TRACK-{self._counter:06d}"

    def _get_stored(self, tracking_id: str) -> _StoredSubmission:
        stored = self._submissions.get(tracking_id)
        if stored is None:
            msg = f"trackId desconocido : {tracking_id}"
            raise GatewayNotFoundError(msg)
        return stored

    async def _wait(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    # --- Envío ---

    async def submit(
        self,
        payload: DocumentPayload,
        xml_bytes: bytes | None = None,
    ) -> GatewayResponse:
        """Recibe el documento y aplica el siguiente resultado programado."""
        self.submit_calls += 1
        await self._wait()

        outcome, reason = GatewayOutcome.ACCEPTED, None
        if self._submit_script:
            scripted = self._submit_script.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            outcome, reason = scripted

        if outcome == GatewayOutcome.ERROR:
            return GatewayResponse(outcome=outcome, reason=reason or "Error interno")

        tracking_id = self._next_tracking_id()
        self._submissions[tracking_id] = _StoredSubmission(
            tracking_id=tracking_id,
            payload=payload,
            xml_bytes=xml_bytes or b"<placeholder/>",
            submitted_at=datetime.now(UTC),
            outcome=outcome,
            reason=reason,
        )
        return GatewayResponse(tracking_id=tracking_id, outcome=outcome, reason=reason)

    # --- Consulta de estado ---

    async def check_status(self, tracking_id: str) -> GatewayResponse:
        """Devuelve el resultado programado o el almacenado para el trackId."""
        self.status_calls += 1
        await self._wait()
        stored = self._get_stored(tracking_id)

        if self._status_script:
            scripted = self._status_script.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            outcome, reason = scripted
            return GatewayResponse(tracking_id=tracking_id, outcome=outcome, reason=reason)

        return GatewayResponse(
            tracking_id=tracking_id, outcome=stored.outcome, reason=stored.reason
        )

    # --- Utilidades propias del conector en memoria ---

    def queue_submit(self, outcome: GatewayOutcome, reason: str | None = None) -> None:
        """Programa el resultado del próximo submit()."""
        self._submit_script.append((outcome, reason))

    def fail_next_submit(self, error: Exception) -> None:
        """Hace que el próximo submit() lance la excepción dada."""
        self._submit_script.append(error)

    def queue_status(self, outcome: GatewayOutcome, reason: str | None = None) -> None:
        """Programa el resultado del próximo check_status()."""
        self._status_script.append((outcome, reason))

    def fail_next_status(self, error: Exception) -> None:
        """Hace que el próximo check_status() lance la excepción dada."""
        self._status_script.append(error)

    def set_final_status(
        self,
        tracking_id: str,
        outcome: GatewayOutcome,
        reason: str | None = None,
    ) -> None:
        """Fija el resultado definitivo de un documento recibido."""
        stored = self._get_stored(tracking_id)
        stored.outcome = outcome
        stored.reason = reason

    @property
    def submissions(self) -> list[DocumentPayload]:
        """Documentos recibidos, en orden de llegada."""
        return [stored.payload for stored in self._submissions.values()]

    def get_xml(self, tracking_id: str) -> bytes:
        return self._get_stored(tracking_id).xml_bytes
