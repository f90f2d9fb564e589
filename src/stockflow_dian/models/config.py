"""Configuración DIAN por inquilino.

ES: Resolución de facturación (número, fecha, prefijo, rango), credenciales
    del software, referencia al certificado de firma, modo de pruebas y
    numeración de notas crédito/débito.
EN: Invoicing resolution, software credentials, signing certificate
    reference, test mode flag and note numbering.
"""

from datetime import date

from pydantic import BaseModel, Field

from stockflow_dian.models.enums import DocumentFamily


class NumberRange(BaseModel):
    """Rango de numeración de una familia de documentos.

    ES: series identifica el contador (número de resolución para facturas,
        prefijo para notas). end=None significa sin límite superior.
    EN: series identifies the counter. end=None means unbounded.
    """

    series: str
    prefix: str
    start: int = Field(..., ge=0)
    end: int | None = Field(default=None, ge=0)

    def contains(self, number: int) -> bool:
        if number < self.start:
            return False
        return self.end is None or number <= self.end


# Comprobantes contables : CE-00001, CE-00002...
JOURNAL_NUMBER_RANGE = NumberRange(series="CE", prefix="CE-", start=1)


class DianConfig(BaseModel):
    """Configuración DIAN de un inquilino (singleton por inquilino)."""

    tenant_id: str = Field(..., min_length=1)

    # --- Emisor ---
    nit: str | None = None
    dv: str | None = None
    business_name: str | None = None
    test_mode: bool = True

    # --- Software registrado ante la DIAN ---
    software_id: str | None = None
    software_pin: str | None = None
    technical_key: str | None = None

    # --- Resolución de facturación ---
    resolution_number: str | None = None
    resolution_date: date | None = None
    resolution_prefix: str | None = None
    resolution_range_from: int | None = Field(default=None, ge=0)
    resolution_range_to: int | None = Field(default=None, ge=0)

    # --- Certificado de firma digital ---
    certificate_ref: str | None = Field(
        default=None,
        description="Referencia al certificado (.p12) almacenado / Certificate reference",
    )

    # --- Numeración de notas ---
    credit_note_prefix: str | None = None
    credit_note_start_number: int = Field(default=1, ge=0)
    debit_note_prefix: str | None = None
    debit_note_start_number: int = Field(default=1, ge=0)

    @property
    def has_resolution(self) -> bool:
        return bool(
            self.resolution_number
            and self.resolution_prefix
            and self.resolution_range_from is not None
            and self.resolution_range_to is not None
            and self.resolution_range_from <= self.resolution_range_to
        )

    @property
    def has_software_config(self) -> bool:
        return bool(self.software_id and (self.software_pin or self.technical_key))

    @property
    def has_certificate(self) -> bool:
        return bool(self.certificate_ref)

    @property
    def is_fully_configured(self) -> bool:
        return self.has_resolution and self.has_software_config and self.has_certificate

    def missing_requirements(self) -> list[str]:
        """Lista legible de lo que falta para poder enviar documentos."""
        missing: list[str] = []
        if not self.has_resolution:
            missing.append("resolución de facturación")
        if not self.has_software_config:
            missing.append("credenciales de software")
        if not self.has_certificate:
            missing.append("certificado digital")
        return missing

    def note_prefix(self, family: DocumentFamily) -> str | None:
        if family == DocumentFamily.CREDIT_NOTE:
            return self.credit_note_prefix
        if family == DocumentFamily.DEBIT_NOTE:
            return self.debit_note_prefix
        return None

    def number_range(self, family: DocumentFamily) -> NumberRange | None:
        """Rango de numeración vigente para una familia, o None si no está configurado."""
        if family == DocumentFamily.INVOICE:
            if not self.has_resolution:
                return None
            return NumberRange(
                series=self.resolution_number,  # type: ignore[arg-type]
                prefix=self.resolution_prefix,  # type: ignore[arg-type]
                start=self.resolution_range_from,  # type: ignore[arg-type]
                end=self.resolution_range_to,
            )
        if family == DocumentFamily.CREDIT_NOTE and self.credit_note_prefix:
            return NumberRange(
                series=self.credit_note_prefix,
                prefix=self.credit_note_prefix,
                start=self.credit_note_start_number,
            )
        if family == DocumentFamily.DEBIT_NOTE and self.debit_note_prefix:
            return NumberRange(
                series=self.debit_note_prefix,
                prefix=self.debit_note_prefix,
                start=self.debit_note_start_number,
            )
        if family == DocumentFamily.JOURNAL_ENTRY:
            return JOURNAL_NUMBER_RANGE
        return None


class DianConfigUpdate(BaseModel):
    """Actualización parcial de la configuración DIAN.

    ES: Solo se aplican los campos presentes en la entrada. Un None
        explícito borra el campo; un campo ausente no se toca.
    EN: Only fields present in the input are applied. An explicit None
        clears the field; an absent field is left untouched.
    """

    nit: str | None = None
    dv: str | None = None
    business_name: str | None = None
    test_mode: bool | None = None
    software_id: str | None = None
    software_pin: str | None = None
    technical_key: str | None = None
    resolution_number: str | None = None
    resolution_date: date | None = None
    resolution_prefix: str | None = None
    resolution_range_from: int | None = Field(default=None, ge=0)
    resolution_range_to: int | None = Field(default=None, ge=0)
    certificate_ref: str | None = None
    credit_note_prefix: str | None = None
    credit_note_start_number: int | None = Field(default=None, ge=0)
    debit_note_prefix: str | None = None
    debit_note_start_number: int | None = Field(default=None, ge=0)

    def apply_to(self, config: DianConfig) -> DianConfig:
        """Devuelve una copia de la configuración con los cambios aplicados.

        Raises:
            ValueError: Si se intenta borrar un campo obligatorio (test_mode
                o números iniciales de notas).
        """
        changes = self.model_dump(include=self.model_fields_set)
        for field in ("test_mode", "credit_note_start_number", "debit_note_start_number"):
            if field in changes and changes[field] is None:
                msg = f"El campo {field} no admite null."
                raise ValueError(msg)
        return config.model_copy(update=changes)
