"""Clientes del gateway DIAN (proveedor tecnológico).

ES: Interfaz abstracta y modelos de datos de los intercambios con la DIAN.
EN: Abstract interface and data models for exchanges with DIAN.
"""

from stockflow_dian.gateway.base import BaseDianGateway
from stockflow_dian.gateway.errors import (
    GatewayAuthenticationError,
    GatewayError,
    GatewayNotFoundError,
    GatewayTransportError,
)
from stockflow_dian.gateway.models import DocumentPayload, GatewayResponse, PayloadLine

__all__ = [
    "BaseDianGateway",
    "DocumentPayload",
    "GatewayAuthenticationError",
    "GatewayError",
    "GatewayNotFoundError",
    "GatewayResponse",
    "GatewayTransportError",
    "PayloadLine",
]
