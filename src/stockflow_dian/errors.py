"""Jerarquía de excepciones del núcleo de facturación electrónica.

ES: Errores síncronos levantados antes de cualquier mutación de estado o
    llamada externa: entrada inválida, estado de origen incorrecto,
    configuración DIAN incompleta, rango de numeración agotado.
    Los rechazos de la DIAN y los fallos de transporte NO son excepciones :
    se devuelven como resultado estructurado.
EN: Synchronous errors raised before any state mutation or external call.
    DIAN rejections and transport failures are not exceptions: they are
    returned as structured results.
"""


class DianError(Exception):
    """Error base de todas las operaciones del núcleo."""


class DianValidationError(DianError):
    """Entrada inválida (campo faltante, cantidad fuera de rango, asiento descuadrado).

    ES: Recuperable corrigiendo la entrada.
    EN: Recoverable by correcting the input.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []


class DianPreconditionError(DianError):
    """Estado de origen incorrecto para la operación solicitada.

    ES: Por ejemplo enviar una factura que no está en borrador, emitir una
        nota sobre un borrador o anular un comprobante no contabilizado.
    EN: E.g. sending a non-DRAFT invoice or voiding a non-POSTED entry.
    """


class DianConfigurationError(DianError):
    """Configuración DIAN del inquilino incompleta.

    ES: Se levanta antes de reservar un número: ningún consecutivo se consume.
    EN: Raised before number allocation: no sequence number is consumed.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing: list[str] = missing or []


class SequenceExhaustedError(DianError):
    """Rango de numeración de la resolución agotado.

    ES: Fatal para la resolución; un operador debe configurar una nueva.
        No se reintenta automáticamente.
    EN: Fatal for the resolution; requires a new one. Not retryable.
    """


class DianNotFoundError(DianError):
    """Documento, configuración o comprobante inexistente para el inquilino."""


class DianPermissionError(DianError):
    """El contexto de la petición no tiene el permiso requerido."""
