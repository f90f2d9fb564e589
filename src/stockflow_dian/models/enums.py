"""Enumeraciones para la facturación electrónica colombiana.

ES: Estados de documentos, familias de numeración, motivos de notas crédito
    y débito (con su código ResponseCode DIAN) y estados contables.
EN: Document statuses, numbering families, credit/debit note reasons
    (with their DIAN ResponseCode) and accounting statuses.
"""

from enum import StrEnum


class DocumentStatus(StrEnum):
    """Estado de un documento electrónico.

    ES: DRAFT es el único estado editable; ACCEPTED, REJECTED y VOIDED
        son terminales.
    EN: DRAFT is the only editable status; ACCEPTED, REJECTED and VOIDED
        are terminal.
    """

    DRAFT = "DRAFT"
    """Borrador / Draft"""

    SENT = "SENT"
    """Enviado a la DIAN, en espera de validación / Sent, awaiting outcome"""

    ACCEPTED = "ACCEPTED"
    """Aceptado por la DIAN / Accepted by DIAN"""

    REJECTED = "REJECTED"
    """Rechazado por la DIAN / Rejected by DIAN"""

    VOIDED = "VOIDED"
    """Anulado antes de su envío / Voided before submission"""


class DocumentFamily(StrEnum):
    """Familia de documento, cada una con su propio consecutivo.

    ES: El contador de numeración se aísla por inquilino y por familia.
    EN: The numbering counter is isolated per tenant and per family.
    """

    INVOICE = "FACTURA_ELECTRONICA"
    CREDIT_NOTE = "NOTA_CREDITO"
    DEBIT_NOTE = "NOTA_DEBITO"
    JOURNAL_ENTRY = "COMPROBANTE_CONTABLE"


class GatewayOutcome(StrEnum):
    """Resultado devuelto por el servicio web de la DIAN."""

    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    ERROR = "ERROR"


class CreditNoteReason(StrEnum):
    """Motivo de nota crédito (anexo técnico DIAN, campo ResponseCode)."""

    DEVOLUCION_PARCIAL = "DEVOLUCION_PARCIAL"
    """Devolución parcial de bienes / Partial return"""

    ANULACION = "ANULACION"
    """Anulación de la factura / Invoice cancellation"""

    DESCUENTO = "DESCUENTO"
    """Rebaja o descuento parcial o total / Discount"""

    AJUSTE_PRECIO = "AJUSTE_PRECIO"
    """Ajuste de precio / Price adjustment"""

    OTRO = "OTRO"
    """Otros / Other"""

    @property
    def response_code(self) -> str:
        """Código ResponseCode DIAN del motivo."""
        return _CREDIT_NOTE_RESPONSE_CODES[self]


class DebitNoteReason(StrEnum):
    """Motivo de nota débito (anexo técnico DIAN, campo ResponseCode)."""

    INTERESES = "INTERESES"
    """Intereses / Interest"""

    GASTOS = "GASTOS"
    """Gastos por cobrar / Charges"""

    CAMBIO_VALOR = "CAMBIO_VALOR"
    """Cambio del valor / Value change"""

    OTRO = "OTRO"
    """Otros / Other"""

    @property
    def response_code(self) -> str:
        """Código ResponseCode DIAN del motivo."""
        return _DEBIT_NOTE_RESPONSE_CODES[self]


_CREDIT_NOTE_RESPONSE_CODES: dict[CreditNoteReason, str] = {
    CreditNoteReason.DEVOLUCION_PARCIAL: "1",
    CreditNoteReason.ANULACION: "2",
    CreditNoteReason.DESCUENTO: "3",
    CreditNoteReason.AJUSTE_PRECIO: "4",
    CreditNoteReason.OTRO: "5",
}

_DEBIT_NOTE_RESPONSE_CODES: dict[DebitNoteReason, str] = {
    DebitNoteReason.INTERESES: "1",
    DebitNoteReason.GASTOS: "2",
    DebitNoteReason.CAMBIO_VALOR: "3",
    DebitNoteReason.OTRO: "4",
}


class CreditNoteScope(StrEnum):
    """Alcance de una nota crédito."""

    TOTAL = "total"
    """Refleja el 100 % de la factura / Mirrors the whole invoice"""

    PARTIAL = "partial"
    """Subconjunto de líneas / Subset of the original lines"""


class JournalEntryStatus(StrEnum):
    """Estado de un comprobante contable (transición en un solo sentido)."""

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    VOIDED = "VOIDED"


class JournalEntrySource(StrEnum):
    """Origen de un comprobante contable."""

    MANUAL = "MANUAL"
    INVOICE_SALE = "INVOICE_SALE"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"
