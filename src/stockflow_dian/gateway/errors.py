"""Jerarquía de excepciones del gateway DIAN.

ES: Excepciones tipadas para fallas de transporte, autenticación y
    recursos inexistentes en el proveedor tecnológico. Un rechazo de la
    DIAN por reglas de negocio NO es una excepción: llega como
    GatewayResponse con outcome REJECTED.
EN: Typed exceptions for transport, authentication and not-found
    failures. A business rejection is not an exception: it arrives as a
    GatewayResponse with outcome REJECTED.
"""


class GatewayError(Exception):
    """Error base de todas las operaciones del gateway.

    ES: Cualquier GatewayError durante un envío es reintentable: el
        documento queda en DRAFT con su número conservado.
    EN: Any GatewayError during a send is retryable.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []


class GatewayAuthenticationError(GatewayError):
    """Fallo de autenticación ante el proveedor tecnológico.

    ES: Clave API inválida, token vencido o certificado rechazado.
    EN: Invalid API key, expired token or rejected certificate.
    """


class GatewayNotFoundError(GatewayError):
    """Recurso inexistente en el gateway (trackId desconocido)."""


class GatewayTransportError(GatewayError):
    """Error de red o 5xx hacia el gateway.

    ES: Timeout, DNS, TLS u otro error de transporte.
    EN: Timeout, DNS, TLS or other transport error.
    """
