"""Asignación atómica de consecutivos.

ES: Contrato de asignación del siguiente número de una familia de
    documentos. La lectura-incremento-escritura del contador debe ser una
    sola operación atómica (bloqueo de fila, actualización condicional):
    dos envíos concurrentes del mismo inquilino nunca reciben el mismo
    número. El contador se aísla por inquilino, familia y serie
    (resolución o prefijo) para no serializar operaciones ajenas.
EN: Contract for allocating the next number of a document family. The
    read-increment-write must be a single atomic operation. Counters are
    scoped by tenant, family and series.
"""

from abc import ABCMeta, abstractmethod

from pydantic import BaseModel, ConfigDict

from stockflow_dian.errors import SequenceExhaustedError
from stockflow_dian.models.config import NumberRange
from stockflow_dian.models.enums import DocumentFamily


class NumberingScope(BaseModel):
    """Clave de un contador: inquilino + familia + serie."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    family: DocumentFamily
    series: str

    def __str__(self) -> str:
        return f"{self.tenant_id}/{self.family.value}/{self.series}"


def format_document_number(prefix: str, number: int, width: int = 8) -> str:
    """Formatea un consecutivo : prefijo + entero con ceros a la izquierda."""
    return f"{prefix}{number:0{width}d}"


def exhausted_error(scope: NumberingScope, number_range: NumberRange) -> SequenceExhaustedError:
    """Construye el error de rango agotado para un contador."""
    msg = (
        f"Rango de numeración agotado para {scope} "
        f"[{number_range.start}, {number_range.end}]. "
        "Configure una nueva resolución."
    )
    return SequenceExhaustedError(msg)


class BaseSequenceAllocator(metaclass=ABCMeta):
    """Clase base abstracta de los asignadores de consecutivos.

    ES: Las implementaciones concretas (memoria, Django) garantizan que
        allocate() es atómico por contador y que el rango nunca se
        desborda ni da la vuelta.
    EN: Concrete implementations guarantee allocate() is atomic per
        counter and the range never wraps around.
    """

    @abstractmethod
    async def allocate(self, scope: NumberingScope, number_range: NumberRange) -> int:
        """Reserva y devuelve el siguiente número del contador.

        Args:
            scope: Contador a incrementar.
            number_range: Rango declarado; el primer número es number_range.start.

        Returns:
            El número asignado, dentro de [start, end].

        Raises:
            SequenceExhaustedError: Si el rango está agotado.
        """
        ...

    @abstractmethod
    async def peek(self, scope: NumberingScope, number_range: NumberRange) -> int:
        """Devuelve el número que asignaría allocate() sin consumirlo."""
        ...

    async def remaining(
        self, scope: NumberingScope, number_range: NumberRange
    ) -> int | None:
        """Números aún disponibles en el rango (None si no hay límite)."""
        if number_range.end is None:
            return None
        next_number = await self.peek(scope, number_range)
        return max(number_range.end - next_number + 1, 0)
