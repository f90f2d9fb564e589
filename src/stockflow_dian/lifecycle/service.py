"""Servicio del ciclo de vida: envío a la DIAN, consulta de estado y listados.

ES: Orquesta la numeración atómica, la generación UBL, la llamada al
    gateway y las transiciones de estado. El número se asigna y se guarda
    ANTES de la llamada externa, y ningún bloqueo se mantiene durante esa
    llamada. Los rechazos y fallos del gateway no son excepciones: se
    devuelven como resultado estructurado.
EN: Orchestrates atomic numbering, UBL generation, the gateway call and
    status transitions. The number is allocated and saved BEFORE the
    external call, and no lock is held across it. Gateway rejections and
    failures are returned as structured results, not raised.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, SerializeAsAny, computed_field

from stockflow_dian.context import Permission, RequestContext
from stockflow_dian.errors import (
    DianConfigurationError,
    DianError,
    DianNotFoundError,
    DianPreconditionError,
    DianValidationError,
)
from stockflow_dian.gateway.base import BaseDianGateway
from stockflow_dian.gateway.errors import GatewayError
from stockflow_dian.gateway.models import DocumentPayload, GatewayResponse, PayloadLine
from stockflow_dian.generators.cufe import compute_cufe
from stockflow_dian.generators.ubl import UBLGenerator
from stockflow_dian.lifecycle.manager import TERMINAL_STATUSES, LifecycleManager
from stockflow_dian.models.config import DianConfig, NumberRange
from stockflow_dian.models.document import ElectronicDocument
from stockflow_dian.models.enums import DocumentFamily, DocumentStatus, GatewayOutcome
from stockflow_dian.models.invoice import Invoice
from stockflow_dian.numbering.allocator import (
    BaseSequenceAllocator,
    NumberingScope,
    format_document_number,
)
from stockflow_dian.settings import LifecycleSettings, NumberingRetryPolicy
from stockflow_dian.store.base import BaseDocumentStore

if TYPE_CHECKING:
    from stockflow_dian.accounting.bridge import AccountingBridge

logger = logging.getLogger(__name__)


class SubmissionResult(BaseModel):
    """Resultado de un envío a la DIAN.

    ES: retryable=True indica un fallo de transporte o un ERROR del
        gateway: el documento sigue en DRAFT con su número y puede
        reenviarse con force=True.
    EN: retryable=True flags a transport failure or gateway ERROR: the
        document stays DRAFT with its number and may be resent with
        force=True.
    """

    document_id: str
    family: DocumentFamily
    number: str | None = None
    status: DocumentStatus
    outcome: GatewayOutcome | None = None
    tracking_id: str | None = None
    retryable: bool = False
    message: str | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def sent(self) -> bool:
        return self.status == DocumentStatus.SENT


class StatusResult(BaseModel):
    """Resultado de una consulta de estado."""

    document_id: str
    status: DocumentStatus
    previous_status: DocumentStatus
    outcome: GatewayOutcome | None = None
    tracking_id: str | None = None
    retryable: bool = False
    message: str | None = None

    @property
    def changed(self) -> bool:
        return self.status != self.previous_status


class NumberingStats(BaseModel):
    """Estado del rango de numeración de una familia."""

    family: DocumentFamily
    series: str
    prefix: str
    range_start: int
    range_end: int | None
    next_number: int
    remaining: int | None


class DocumentPage(BaseModel):
    """Página de documentos electrónicos, del más reciente al más antiguo."""

    items: list[SerializeAsAny[ElectronicDocument]]
    total: int
    page: int
    page_size: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)


class DocumentXml(BaseModel):
    """XML UBL de un documento, listo para descargar."""

    document_id: str
    file_name: str
    xml: str


class DocumentStats(BaseModel):
    """Conteo de documentos por estado.

    ES: pending agrupa los borradores y los enviados sin respuesta final;
        acceptance_rate es el porcentaje de aceptados sobre el total, con
        un decimal.
    EN: pending groups drafts and sent documents without a final verdict;
        acceptance_rate is accepted over total as a one-decimal percentage.
    """

    total: int
    accepted: int
    rejected: int
    pending: int
    voided: int
    acceptance_rate: Decimal


class InvoiceLifecycle:
    """Servicio de envío y seguimiento de documentos electrónicos.

    ES: Aplica a las tres familias (factura, nota crédito, nota débito).
        Cada operación recibe el RequestContext explícito de la petición.
    EN: Applies to the three families. Every operation receives the
        explicit RequestContext of the request.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        allocator: BaseSequenceAllocator,
        gateway: BaseDianGateway,
        settings: LifecycleSettings | None = None,
        generator: UBLGenerator | None = None,
        bridge: AccountingBridge | None = None,
    ) -> None:
        self.store = store
        self.allocator = allocator
        self.gateway = gateway
        self.settings = settings or LifecycleSettings()
        self.generator = generator or UBLGenerator()
        self.bridge = bridge

    # --- Carga y configuración ---

    async def get_document(
        self, context: RequestContext, document_id: str
    ) -> ElectronicDocument:
        """Carga un documento del inquilino del contexto.

        Raises:
            DianNotFoundError: Si el documento no existe para el inquilino.
        """
        document = await self.store.get_document(context.tenant_id, document_id)
        if document is None:
            msg = f"Documento no encontrado : {document_id}"
            raise DianNotFoundError(msg)
        return document

    async def require_config(self, tenant_id: str) -> DianConfig:
        """Devuelve la configuración DIAN completa del inquilino.

        Raises:
            DianConfigurationError: Si no existe o está incompleta.
        """
        config = await self.store.get_config(tenant_id)
        if config is None:
            msg = "La configuración DIAN no existe para este inquilino."
            raise DianConfigurationError(msg, missing=["configuración DIAN"])
        if not config.is_fully_configured:
            missing = config.missing_requirements()
            msg = f"La configuración DIAN está incompleta : {', '.join(missing)}"
            raise DianConfigurationError(msg, missing=missing)
        return config

    def number_range(self, config: DianConfig, family: DocumentFamily) -> NumberRange:
        """Rango vigente de la familia, o DianConfigurationError si falta."""
        number_range = config.number_range(family)
        if number_range is None:
            msg = f"Numeración no configurada para {family.value}"
            raise DianConfigurationError(msg, missing=[f"prefijo {family.value}"])
        return number_range

    # --- Numeración ---

    async def assign_number(
        self, document: ElectronicDocument, config: DianConfig
    ) -> str:
        """Asigna el siguiente consecutivo y el CUFE/CUDE al documento.

        ES: Solo modifica el documento en memoria; el llamador lo guarda
            antes de cualquier llamada externa.
        EN: Only mutates the in-memory document; the caller saves it
            before any external call.

        Raises:
            SequenceExhaustedError: Si el rango está agotado.
        """
        number_range = self.number_range(config, document.family)
        scope = NumberingScope(
            tenant_id=document.tenant_id,
            family=document.family,
            series=number_range.series,
        )
        sequence = await self.allocator.allocate(scope, number_range)
        document.sequence = sequence
        document.series = number_range.series
        document.number = format_document_number(
            number_range.prefix, sequence, self.settings.number_width
        )
        document.cufe = self.compute_cufe(document, config)
        logger.info(
            "Número %s asignado al documento %s (%s)",
            document.number,
            document.id,
            scope,
        )
        return document.number

    def compute_cufe(self, document: ElectronicDocument, config: DianConfig) -> str:
        """CUFE para facturas (clave técnica), CUDE para notas (PIN del software)."""
        if document.family == DocumentFamily.INVOICE:
            key = config.technical_key or config.software_pin
        else:
            key = config.software_pin or config.technical_key
        return compute_cufe(
            number=document.number or "",
            issue_date=document.issue_date,
            subtotal=document.subtotal,
            tax=document.tax,
            total=document.total,
            issuer_nit=config.nit or "",
            customer_document=document.customer_document,
            key=key or "",
            test_mode=config.test_mode,
        )

    def build_payload(
        self, document: ElectronicDocument, config: DianConfig
    ) -> DocumentPayload:
        """Construye el payload del gateway a partir del documento."""
        lines = [
            PayloadLine(
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
                subtotal=line.subtotal,
                tax=line.tax,
            )
            for line in getattr(document, "lines", [])
        ]
        reason_code = getattr(document, "reason_code", None)
        return DocumentPayload(
            document_id=document.id,
            tenant_id=document.tenant_id,
            family=document.family,
            number=document.number or "",
            issue_date=document.issue_date,
            cufe=document.cufe,
            issuer_nit=config.nit or "",
            issuer_name=config.business_name or "",
            customer_document=document.customer_document,
            subtotal=document.subtotal,
            tax=document.tax,
            discount=document.discount,
            total=document.total,
            test_mode=config.test_mode,
            lines=lines,
            billing_reference=getattr(document, "invoice_number", None),
            reason_code=reason_code.response_code if reason_code else None,
            reason=getattr(document, "reason", None) or getattr(document, "description", None),
        )

    # --- Envío ---

    async def send(
        self,
        context: RequestContext,
        document_id: str,
        *,
        force: bool = False,
    ) -> SubmissionResult:
        """Envía un documento en DRAFT a la DIAN.

        ES: El borrador se reclama en el almacén (comparar-y-guardar sobre
            su contador de intentos) antes de asignar el número: de dos
            envíos simultáneos solo uno llega al gateway. Un número que ya
            no pertenece a la numeración vigente se reemplaza y queda
            registrado como hueco.
        EN: The draft is claimed in the store (compare-and-set on its
            attempt counter) before numbering: of two concurrent sends only
            one reaches the gateway. A number outside the current numbering
            is replaced and logged as a gap.

        Args:
            context: Contexto de la petición (requiere dian:send).
            document_id: Documento a enviar.
            force: Obligatorio para reenviar tras un intento fallido.

        Returns:
            SubmissionResult con el estado resultante. Un rechazo de la
            DIAN o un fallo de transporte NO levantan excepción.

        Raises:
            DianPermissionError: Si falta el permiso.
            DianNotFoundError: Si el documento no existe.
            DianPreconditionError: Si el documento no está en DRAFT o ya
                falló sin force=True, o si otro envío ya lo reclamó.
            DianValidationError: Si la factura no tiene líneas o sus
                totales no cuadran.
            DianConfigurationError: Si la configuración DIAN está incompleta.
            SequenceExhaustedError: Si el rango de numeración está agotado.
        """
        context.require(Permission.DIAN_SEND)
        document = await self.get_document(context, document_id)

        if not document.is_draft:
            msg = (
                f"Solo se pueden enviar documentos en DRAFT "
                f"({document.number or document.id} está en {document.status.value})."
            )
            raise DianPreconditionError(msg)

        self._check_content(document)
        config = await self.require_config(context.tenant_id)
        number_range = self.number_range(config, document.family)

        if document.send_attempts > 0 and not force:
            msg = (
                f"El envío anterior del documento {document.number or document.id} "
                f"falló ({document.last_error}). Reintente con force=True."
            )
            raise DianPreconditionError(msg)

        renumber = self._renumber_reason(document, number_range)
        attempts = document.send_attempts
        document.send_attempts += 1
        if not await self.store.claim_for_send(document, attempts):
            msg = f"El documento {document_id} ya tiene un envío en curso."
            raise DianPreconditionError(msg)

        try:
            if document.number is None or renumber:
                abandoned = document.number
                await self.assign_number(document, config)
                if abandoned:
                    logger.warning(
                        "Hueco de numeración : %s abandonado por el documento %s (%s)",
                        abandoned,
                        document.id,
                        renumber,
                    )
            payload = self.build_payload(document, config)
            xml_bytes = self.generator.generate_xml(payload)
        except (DianError, ValueError):
            # Libera el borrador reclamado
            document.send_attempts = attempts
            await self.store.save_document(document)
            raise

        document.xml_content = xml_bytes.decode("utf-8")
        # El número queda confirmado antes de la llamada externa
        await self.store.save_document(document)

        try:
            async with asyncio.timeout(self.settings.gateway_timeout):
                response = await self.gateway.submit(payload, xml_bytes)
        except TimeoutError:
            msg = f"Tiempo de espera agotado ({self.settings.gateway_timeout}s) al enviar a la DIAN"
            return await self._record_failure(document, msg)
        except GatewayError as exc:
            return await self._record_failure(document, str(exc), exc.errors)

        return await self._apply_submission(document, response)

    def _renumber_reason(
        self, document: ElectronicDocument, number_range: NumberRange
    ) -> str | None:
        """Motivo para descartar el número ya asignado, o None si se conserva."""
        if document.number is None:
            return None
        if (
            document.series != number_range.series
            or document.sequence is None
            or not number_range.contains(document.sequence)
            or not document.number.startswith(number_range.prefix)
        ):
            return f"fuera de la numeración vigente {number_range.series}"
        if (
            document.send_attempts > 0
            and self.settings.retry_policy == NumberingRetryPolicy.REALLOCATE
        ):
            return "reintento con nueva numeración"
        return None

    def _check_content(self, document: ElectronicDocument) -> None:
        if isinstance(document, Invoice):
            document.check_totals()
            return
        if not getattr(document, "lines", None):
            msg = f"El documento {document.number or document.id} no tiene líneas."
            raise DianValidationError(msg, errors=["lines: al menos una línea"])

    async def _apply_submission(
        self, document: ElectronicDocument, response: GatewayResponse
    ) -> SubmissionResult:
        manager = LifecycleManager(document)

        if response.outcome == GatewayOutcome.ERROR:
            return await self._record_failure(
                document,
                response.reason or "Error del servicio DIAN",
                response.errors,
            )

        if response.outcome == GatewayOutcome.ACCEPTED:
            manager.transition(DocumentStatus.SENT, tracking_id=response.tracking_id)
            logger.info(
                "Documento %s enviado a la DIAN (trackId %s)",
                document.number,
                response.tracking_id,
            )
        else:
            reason = response.reason or "Rechazado por la DIAN"
            manager.transition(
                DocumentStatus.REJECTED,
                reason=reason,
                tracking_id=response.tracking_id,
            )
            logger.info("Documento %s rechazado por la DIAN : %s", document.number, reason)

        await self.store.save_document(document)
        return SubmissionResult(
            document_id=document.id,
            family=document.family,
            number=document.number,
            status=document.status,
            outcome=response.outcome,
            tracking_id=document.tracking_id,
            message=response.reason,
            errors=response.errors,
        )

    async def _record_failure(
        self,
        document: ElectronicDocument,
        message: str,
        errors: list[str] | None = None,
    ) -> SubmissionResult:
        document.last_error = message
        await self.store.save_document(document)
        logger.warning(
            "Envío fallido del documento %s (intento %s) : %s",
            document.number,
            document.send_attempts,
            message,
        )
        return SubmissionResult(
            document_id=document.id,
            family=document.family,
            number=document.number,
            status=document.status,
            outcome=GatewayOutcome.ERROR,
            retryable=True,
            message=message,
            errors=errors or [],
        )

    # --- Consulta de estado ---

    async def check_status(
        self, context: RequestContext, document_id: str
    ) -> StatusResult:
        """Consulta a la DIAN el estado de un documento enviado.

        ES: Un documento terminal se devuelve sin llamar al gateway. Un
            documento SENT pasa a ACCEPTED o REJECTED según la respuesta;
            ante un ERROR o fallo de transporte sigue en SENT.
        EN: Terminal documents are returned without a gateway call. SENT
            documents move to ACCEPTED or REJECTED; an ERROR or transport
            failure leaves them SENT.

        Raises:
            DianPreconditionError: Si el documento sigue en DRAFT.
        """
        context.require(Permission.DIAN_VIEW)
        document = await self.get_document(context, document_id)
        previous = document.status

        if previous in TERMINAL_STATUSES:
            return StatusResult(
                document_id=document.id,
                status=previous,
                previous_status=previous,
                tracking_id=document.tracking_id,
            )

        if previous == DocumentStatus.DRAFT or not document.tracking_id:
            msg = f"El documento {document.number or document.id} no ha sido enviado."
            raise DianPreconditionError(msg)

        try:
            async with asyncio.timeout(self.settings.gateway_timeout):
                response = await self.gateway.check_status(document.tracking_id)
        except TimeoutError:
            msg = f"Tiempo de espera agotado ({self.settings.gateway_timeout}s) al consultar la DIAN"
            return self._status_failure(document, msg)
        except GatewayError as exc:
            return self._status_failure(document, str(exc))

        if response.outcome == GatewayOutcome.ERROR:
            return self._status_failure(
                document, response.reason or "Error del servicio DIAN"
            )

        manager = LifecycleManager(document)
        if response.outcome == GatewayOutcome.ACCEPTED:
            manager.transition(DocumentStatus.ACCEPTED)
            if self.bridge is not None:
                await self.bridge.record_document(document)
            logger.info("Documento %s aceptado por la DIAN", document.number)
        else:
            reason = response.reason or "Rechazado por la DIAN"
            manager.transition(DocumentStatus.REJECTED, reason=reason)
            logger.info("Documento %s rechazado por la DIAN : %s", document.number, reason)

        await self.store.save_document(document)
        return StatusResult(
            document_id=document.id,
            status=document.status,
            previous_status=previous,
            outcome=response.outcome,
            tracking_id=document.tracking_id,
            message=response.reason,
        )

    def _status_failure(self, document: ElectronicDocument, message: str) -> StatusResult:
        logger.warning(
            "Consulta de estado fallida del documento %s : %s", document.number, message
        )
        return StatusResult(
            document_id=document.id,
            status=document.status,
            previous_status=document.status,
            outcome=GatewayOutcome.ERROR,
            tracking_id=document.tracking_id,
            retryable=True,
            message=message,
        )

    # --- Anulación de borradores ---

    async def void(
        self, context: RequestContext, document_id: str, reason: str
    ) -> ElectronicDocument:
        """Anula un borrador que nunca se enviará (DRAFT → VOIDED).

        Raises:
            DianPreconditionError: Si el documento no está en DRAFT o falta
                el motivo.
        """
        context.require(Permission.DIAN_SEND)
        document = await self.get_document(context, document_id)
        LifecycleManager(document).transition(DocumentStatus.VOIDED, reason=reason)
        if document.number:
            logger.warning(
                "Hueco de numeración : %s anulado antes de su envío", document.number
            )
        await self.store.save_document(document)
        logger.info("Documento %s anulado : %s", document.number or document.id, reason)
        return document

    # --- Estadísticas ---

    async def numbering_stats(
        self,
        context: RequestContext,
        family: DocumentFamily = DocumentFamily.INVOICE,
    ) -> NumberingStats:
        """Números restantes en el rango vigente de una familia."""
        context.require(Permission.DIAN_VIEW)
        config = await self.store.get_config(context.tenant_id)
        if config is None:
            msg = "La configuración DIAN no existe para este inquilino."
            raise DianConfigurationError(msg, missing=["configuración DIAN"])
        number_range = self.number_range(config, family)
        scope = NumberingScope(
            tenant_id=context.tenant_id, family=family, series=number_range.series
        )
        return NumberingStats(
            family=family,
            series=number_range.series,
            prefix=number_range.prefix,
            range_start=number_range.start,
            range_end=number_range.end,
            next_number=await self.allocator.peek(scope, number_range),
            remaining=await self.allocator.remaining(scope, number_range),
        )

    async def document_stats(
        self,
        context: RequestContext,
        family: DocumentFamily | None = None,
    ) -> DocumentStats:
        """Conteo de documentos del inquilino por estado, con la tasa de aceptación."""
        context.require(Permission.DIAN_VIEW)
        counts = {
            status: await self.store.count_documents(
                context.tenant_id, family, status=status
            )
            for status in DocumentStatus
        }
        total = sum(counts.values())
        accepted = counts[DocumentStatus.ACCEPTED]
        rate = Decimal(accepted * 100) / total if total else Decimal("0")
        return DocumentStats(
            total=total,
            accepted=accepted,
            rejected=counts[DocumentStatus.REJECTED],
            pending=counts[DocumentStatus.DRAFT] + counts[DocumentStatus.SENT],
            voided=counts[DocumentStatus.VOIDED],
            acceptance_rate=rate.quantize(Decimal("0.1")),
        )

    # --- Consultas ---

    async def list_documents(
        self,
        context: RequestContext,
        *,
        status: DocumentStatus | None = None,
        family: DocumentFamily | None = None,
        issued_from: date | None = None,
        issued_to: date | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> DocumentPage:
        """Lista paginada de documentos del inquilino.

        ES: Filtra por estado, familia y rango de fechas de emisión
            (inclusivo). Orden: del más reciente al más antiguo.
        EN: Filters by status, family and inclusive issue-date range,
            newest first.

        Raises:
            DianValidationError: Si la página, el tamaño de página o el
                rango de fechas no son válidos.
        """
        context.require(Permission.DIAN_VIEW)
        errors = []
        if page < 1:
            errors.append("page: debe ser mayor o igual a 1")
        if page_size < 1:
            errors.append("page_size: debe ser mayor o igual a 1")
        if issued_from and issued_to and issued_from > issued_to:
            errors.append("issued_from: posterior a issued_to")
        if errors:
            raise DianValidationError("Consulta de documentos inválida", errors=errors)

        filters = {"status": status, "issued_from": issued_from, "issued_to": issued_to}
        total = await self.store.count_documents(context.tenant_id, family, **filters)
        items = await self.store.list_documents(
            context.tenant_id,
            family,
            offset=(page - 1) * page_size,
            limit=page_size,
            **filters,
        )
        return DocumentPage(items=items, total=total, page=page, page_size=page_size)

    async def get_xml(self, context: RequestContext, document_id: str) -> DocumentXml:
        """Devuelve el último XML UBL enviado del documento.

        Raises:
            DianNotFoundError: Si el documento no existe.
            DianPreconditionError: Si el documento nunca generó XML.
        """
        context.require(Permission.DIAN_VIEW)
        document = await self.get_document(context, document_id)
        if document.xml_content is None:
            msg = f"El documento {document.number or document.id} no tiene XML generado."
            raise DianPreconditionError(msg)
        return DocumentXml(
            document_id=document.id,
            file_name=f"{document.family.value}_{document.number}.xml",
            xml=document.xml_content,
        )
