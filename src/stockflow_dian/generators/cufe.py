"""Código único de factura (CUFE) y de documento (CUDE).

ES: SHA-384 sobre la concatenación definida por el anexo técnico DIAN :
    número + fecha + hora + subtotal + 01 + IVA + 04 + INC + 03 + ICA
    + total + NIT emisor + documento adquiriente + clave + ambiente.
    Las facturas usan la clave técnica de la resolución; las notas usan
    el PIN del software.
EN: SHA-384 over the DIAN-defined concatenation. Invoices use the
    resolution technical key, notes use the software PIN.
"""

import hashlib
from datetime import date
from decimal import Decimal

from stockflow_dian.models.enums import DocumentFamily

# Códigos de impuesto del anexo técnico
TAX_CODE_IVA = "01"
TAX_CODE_INC = "04"
TAX_CODE_ICA = "03"

DEFAULT_ISSUE_TIME = "00:00:00-05:00"


def _fmt(amount: Decimal) -> str:
    return f"{amount:.2f}"


def environment_code(test_mode: bool) -> str:
    """1 = producción, 2 = pruebas (habilitación)."""
    return "2" if test_mode else "1"


def compute_cufe(
    *,
    number: str,
    issue_date: date,
    subtotal: Decimal,
    tax: Decimal,
    total: Decimal,
    issuer_nit: str,
    customer_document: str | None,
    key: str,
    test_mode: bool,
    issue_time: str = DEFAULT_ISSUE_TIME,
) -> str:
    """Calcula el CUFE/CUDE de un documento.

    Args:
        number: Número completo del documento (prefijo + consecutivo).
        issue_date: Fecha de emisión.
        subtotal: Valor antes de impuestos.
        tax: Valor del IVA.
        total: Valor a pagar.
        issuer_nit: NIT del emisor sin dígito de verificación.
        customer_document: Documento del adquiriente ("222222222222"
            para consumidor final).
        key: Clave técnica (factura) o PIN del software (notas).
        test_mode: Ambiente de pruebas.
        issue_time: Hora de emisión con zona horaria.

    Returns:
        El hash SHA-384 en hexadecimal (96 caracteres).
    """
    parts = [
        number,
        issue_date.isoformat(),
        issue_time,
        _fmt(subtotal),
        TAX_CODE_IVA,
        _fmt(tax),
        TAX_CODE_INC,
        _fmt(Decimal("0")),
        TAX_CODE_ICA,
        _fmt(Decimal("0")),
        _fmt(total),
        issuer_nit,
        customer_document or "222222222222",
        key,
        environment_code(test_mode),
    ]
    return hashlib.sha384("".join(parts).encode("utf-8")).hexdigest()


def scheme_name(family: DocumentFamily) -> str:
    """Nombre del esquema del UUID en el XML (CUFE para facturas, CUDE para notas)."""
    if family == DocumentFamily.INVOICE:
        return "CUFE-SHA384"
    return "CUDE-SHA384"
