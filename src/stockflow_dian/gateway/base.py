"""Interfaz abstracta de los conectores hacia la DIAN.

ES: Define el contrato mínimo que el núcleo espera del proveedor
    tecnológico: envío de un documento y consulta de su estado.
EN: Defines the minimal contract the core expects from the technology
    provider: document submission and status lookup.
"""

from abc import ABCMeta, abstractmethod

from stockflow_dian.gateway.models import DocumentPayload, GatewayResponse


class BaseDianGateway(metaclass=ABCMeta):
    """Clase base abstracta de los conectores DIAN.

    ES: Los conectores concretos (proveedor tecnológico, servicio web
        directo) heredan de esta clase. Los reintentos de transporte les
        pertenecen; el núcleo solo distingue ACCEPTED, REJECTED y ERROR.
    EN: Concrete connectors inherit from this class. Transport retries
        belong to them; the core only distinguishes the three outcomes.
    """

    def __init__(
        self,
        api_key: str,
        environment: str = "habilitacion",
        base_url: str | None = None,
    ) -> None:
        self.api_key = api_key
        self.environment = environment
        self.base_url = base_url

    @abstractmethod
    async def submit(
        self,
        payload: DocumentPayload,
        xml_bytes: bytes | None = None,
    ) -> GatewayResponse:
        """Envía un documento a la DIAN.

        Args:
            payload: El documento a transmitir.
            xml_bytes: UBL pre-generado (opcional, si no el gateway lo genera).

        Returns:
            Respuesta con el trackId y el resultado.

        Raises:
            GatewayAuthenticationError: Si la autenticación falla.
            GatewayTransportError: Si la conexión de red falla.
        """
        ...

    @abstractmethod
    async def check_status(self, tracking_id: str) -> GatewayResponse:
        """Consulta el estado de un documento enviado.

        Args:
            tracking_id: El trackId devuelto por submit().

        Returns:
            Respuesta con el resultado actual.

        Raises:
            GatewayNotFoundError: Si el trackId no existe.
            GatewayTransportError: Si la conexión de red falla.
        """
        ...
