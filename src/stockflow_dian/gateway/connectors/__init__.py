"""Conectores concretos del gateway DIAN."""

from stockflow_dian.gateway.connectors.memory import MemoryDianGateway

__all__ = ["MemoryDianGateway"]
