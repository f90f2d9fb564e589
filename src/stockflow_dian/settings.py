"""Parámetros del ciclo de vida de documentos.

ES: Tiempo máximo de espera del servicio DIAN, ancho de los consecutivos
    y política de numeración al reintentar un envío fallido.
EN: Gateway timeout, number width and numbering policy on retries.
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class NumberingRetryPolicy(StrEnum):
    """Política de numeración al reenviar tras un fallo de transporte.

    ES: Los huecos en la numeración DIAN son eventos reportables, por eso
        REUSE es el valor por defecto: el número queda ligado al borrador
        y el reenvío (force=True) lo reutiliza. REALLOCATE toma un número
        nuevo y registra el abandonado como hueco.
    EN: Numbering gaps are reportable events, hence REUSE by default.
    """

    REUSE = "reuse"
    REALLOCATE = "reallocate"


class LifecycleSettings(BaseModel):
    """Configuración del servicio de ciclo de vida."""

    gateway_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Segundos máximos por llamada a la DIAN / Gateway timeout",
    )
    number_width: int = Field(
        default=8,
        ge=1,
        le=20,
        description="Dígitos del consecutivo (relleno con ceros) / Number width",
    )
    journal_number_width: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Dígitos del número de comprobante contable",
    )
    retry_policy: NumberingRetryPolicy = Field(
        default=NumberingRetryPolicy.REUSE,
        description="Política de numeración al reintentar / Retry numbering policy",
    )
