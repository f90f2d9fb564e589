"""Asignador de consecutivos en memoria para pruebas y desarrollo.

ES: Un asyncio.Lock por contador serializa la lectura-incremento-escritura
    dentro de un mismo proceso. io_delay simula la latencia de la base de
    datos entre la lectura y la escritura.
EN: One asyncio.Lock per counter serialises the read-increment-write in
    a single process. io_delay simulates database latency.
"""

from __future__ import annotations

import asyncio
import logging

from stockflow_dian.models.config import NumberRange
from stockflow_dian.numbering.allocator import (
    BaseSequenceAllocator,
    NumberingScope,
    exhausted_error,
)

logger = logging.getLogger(__name__)


class MemorySequenceAllocator(BaseSequenceAllocator):
    """Asignador de consecutivos en memoria."""

    def __init__(self, io_delay: float = 0.0) -> None:
        self.io_delay = io_delay
        self._counters: dict[NumberingScope, int] = {}
        self._locks: dict[NumberingScope, asyncio.Lock] = {}

    def _lock_for(self, scope: NumberingScope) -> asyncio.Lock:
        lock = self._locks.get(scope)
        if lock is None:
            lock = self._locks[scope] = asyncio.Lock()
        return lock

    def _current(self, scope: NumberingScope, number_range: NumberRange) -> int:
        return max(self._counters.get(scope, number_range.start), number_range.start)

    async def allocate(self, scope: NumberingScope, number_range: NumberRange) -> int:
        """Reserva el siguiente número bajo el bloqueo del contador."""
        async with self._lock_for(scope):
            number = self._current(scope, number_range)
            if self.io_delay:
                await asyncio.sleep(self.io_delay)
            else:
                await asyncio.sleep(0)
            if not number_range.contains(number):
                raise exhausted_error(scope, number_range)
            self._counters[scope] = number + 1

        logger.debug("Consecutivo %s asignado en %s", number, scope)
        return number

    async def peek(self, scope: NumberingScope, number_range: NumberRange) -> int:
        return self._current(scope, number_range)

    def set_next(self, scope: NumberingScope, number: int) -> None:
        """Fija el siguiente número de un contador (migraciones, pruebas)."""
        self._counters[scope] = number
