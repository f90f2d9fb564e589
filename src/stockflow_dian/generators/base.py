"""Interfaz abstracta de los generadores de documentos electrónicos."""

from abc import ABC, abstractmethod

from stockflow_dian.gateway.models import DocumentPayload


class GenerationResult:
    """Resultado de la generación de un documento.

    ES: Contiene el XML generado y el perfil usado.
    EN: Contains the generated XML and the profile used.
    """

    def __init__(self, xml_bytes: bytes, profile: str = "") -> None:
        self.xml_bytes = xml_bytes
        self.profile = profile

    def save(self, path: str) -> None:
        """Guarda el XML en un archivo."""
        with open(path, "wb") as f:
            f.write(self.xml_bytes)


class BaseGenerator(ABC):
    """Clase base abstracta de los generadores."""

    def __init__(self, profile: str = "DIAN 2.1") -> None:
        self.profile = profile

    @abstractmethod
    def generate(self, payload: DocumentPayload, **kwargs: object) -> GenerationResult:
        """Genera el documento en el formato destino.

        Args:
            payload: El documento a generar.
            **kwargs: Opciones propias del generador.

        Returns:
            GenerationResult con los datos generados.
        """
        ...

    @abstractmethod
    def generate_xml(self, payload: DocumentPayload) -> bytes:
        """Genera únicamente el XML del documento."""
        ...
