"""Tareas Celery de la facturación electrónica.

ES: Tareas asíncronas de envío a la DIAN y de consulta de estado. Un
    fallo de transporte deja el documento en DRAFT con su número; la
    tarea se reprograma y el reintento usa force=True.
EN: Async tasks for DIAN submission and status checks. A transport
    failure leaves the document DRAFT with its number; the task is
    retried with force=True.
"""

import asyncio
import logging

from celery import shared_task

from stockflow_dian.context import RequestContext, Role

logger = logging.getLogger(__name__)


def _system_context(tenant_id: str, user_id: str | None = None) -> RequestContext:
    """Contexto de las tareas en segundo plano (permisos de administrador)."""
    return RequestContext.for_role(tenant_id, Role.ADMIN, user_id=user_id)


@shared_task(bind=True, max_retries=3)
def send_document(
    self,
    tenant_id: str,
    document_id: str,
    force: bool = False,
    user_id: str | None = None,
) -> dict:
    """Envía un documento a la DIAN.

    ES: Ensambla el ciclo de vida configurado y ejecuta send() vía
        asyncio.run(). Un resultado reintentable reprograma la tarea.
    EN: Wires the configured lifecycle and runs send() via asyncio.run().
        A retryable result reschedules the task.
    """
    from stockflow_dian.contrib.django.conf import get_lifecycle

    context = _system_context(tenant_id, user_id)
    try:
        lifecycle = get_lifecycle()
        result = asyncio.run(lifecycle.send(context, document_id, force=force))
    except Exception:
        logger.exception("Error de envío DIAN del documento %s", document_id)
        raise

    if result.retryable:
        logger.warning(
            "Envío del documento %s reintentable : %s", result.number, result.message
        )
        raise self.retry(
            kwargs={
                "tenant_id": tenant_id,
                "document_id": document_id,
                "force": True,
                "user_id": user_id,
            },
            countdown=60 * (self.request.retries + 1),
        )

    logger.info(
        "Documento %s enviado : %s (%s)",
        result.number,
        result.status.value,
        result.tracking_id,
    )
    return result.model_dump(mode="json")


@shared_task
def check_document_status(tenant_id: str, document_id: str) -> str:
    """Consulta el estado de un documento en la DIAN.

    ES: Actualiza el documento si la DIAN ya lo aceptó o rechazó y
        devuelve el estado resultante.
    EN: Updates the document once DIAN accepted or rejected it and
        returns the resulting status.
    """
    from stockflow_dian.contrib.django.conf import get_lifecycle

    try:
        lifecycle = get_lifecycle()
        result = asyncio.run(
            lifecycle.check_status(_system_context(tenant_id), document_id)
        )
    except Exception:
        logger.exception("Error de consulta de estado del documento %s", document_id)
        raise

    if result.changed:
        logger.info(
            "Documento %s : estado actualizado %s → %s",
            document_id,
            result.previous_status.value,
            result.status.value,
        )
    return result.status.value
