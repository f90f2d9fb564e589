"""Modelos Django de la facturación electrónica DIAN.

ES: Modelos Django mapeados sobre los modelos Pydantic del núcleo. Una
    sola tabla Document para las tres familias (factura, nota crédito,
    nota débito), con los campos propios de las notas en columnas planas.
EN: Django models mapped to the core Pydantic models. A single Document
    table for the three families, with note-specific fields as flat
    columns.
"""

from __future__ import annotations

from django.db import models, transaction

from stockflow_dian.models.config import DianConfig
from stockflow_dian.models.document import ElectronicDocument, LifecycleEvent
from stockflow_dian.models.enums import (
    CreditNoteScope,
    DocumentFamily,
    DocumentStatus,
    JournalEntrySource,
    JournalEntryStatus,
)
from stockflow_dian.models.invoice import Invoice as PydanticInvoice
from stockflow_dian.models.invoice import InvoiceLine as PydanticInvoiceLine
from stockflow_dian.models.journal import JournalEntry as PydanticJournalEntry
from stockflow_dian.models.journal import JournalLine as PydanticJournalLine
from stockflow_dian.models.notes import CreditNote, DebitNote, NoteLine


class DocumentFamilyChoices(models.TextChoices):
    """Familias de documento con consecutivo propio."""

    INVOICE = DocumentFamily.INVOICE.value, "Factura electrónica de venta"
    CREDIT_NOTE = DocumentFamily.CREDIT_NOTE.value, "Nota crédito"
    DEBIT_NOTE = DocumentFamily.DEBIT_NOTE.value, "Nota débito"


class DocumentStatusChoices(models.TextChoices):
    """Estados del ciclo de vida."""

    DRAFT = DocumentStatus.DRAFT.value, "Borrador"
    SENT = DocumentStatus.SENT.value, "Enviado"
    ACCEPTED = DocumentStatus.ACCEPTED.value, "Aceptado"
    REJECTED = DocumentStatus.REJECTED.value, "Rechazado"
    VOIDED = DocumentStatus.VOIDED.value, "Anulado"


class TenantDianConfig(models.Model):
    """Configuración DIAN de un inquilino (una fila por inquilino)."""

    tenant_id = models.CharField("inquilino", max_length=64, unique=True)

    # --- Emisor ---
    nit = models.CharField("NIT", max_length=20, blank=True, null=True)
    dv = models.CharField("dígito de verificación", max_length=1, blank=True, null=True)
    business_name = models.CharField("razón social", max_length=200, blank=True, null=True)
    test_mode = models.BooleanField("modo de pruebas", default=True)

    # --- Software ---
    software_id = models.CharField("id del software", max_length=100, blank=True, null=True)
    software_pin = models.CharField("PIN del software", max_length=100, blank=True, null=True)
    technical_key = models.CharField("clave técnica", max_length=200, blank=True, null=True)

    # --- Resolución ---
    resolution_number = models.CharField("número de resolución", max_length=50, blank=True, null=True)
    resolution_date = models.DateField("fecha de resolución", blank=True, null=True)
    resolution_prefix = models.CharField("prefijo", max_length=10, blank=True, null=True)
    resolution_range_from = models.PositiveBigIntegerField("rango desde", blank=True, null=True)
    resolution_range_to = models.PositiveBigIntegerField("rango hasta", blank=True, null=True)

    # --- Certificado ---
    certificate_ref = models.CharField("certificado", max_length=255, blank=True, null=True)

    # --- Notas ---
    credit_note_prefix = models.CharField("prefijo notas crédito", max_length=10, blank=True, null=True)
    credit_note_start_number = models.PositiveBigIntegerField("inicio notas crédito", default=1)
    debit_note_prefix = models.CharField("prefijo notas débito", max_length=10, blank=True, null=True)
    debit_note_start_number = models.PositiveBigIntegerField("inicio notas débito", default=1)

    updated_at = models.DateTimeField("fecha de modificación", auto_now=True)

    class Meta:
        verbose_name = "configuración DIAN"
        verbose_name_plural = "configuraciones DIAN"

    def __str__(self) -> str:
        return f"Configuración DIAN {self.tenant_id}"

    def to_pydantic(self) -> DianConfig:
        """Convierte la fila en el modelo Pydantic DianConfig."""
        return DianConfig.model_validate(
            {name: getattr(self, name) for name in DianConfig.model_fields}
        )

    @classmethod
    def save_from_pydantic(cls, config: DianConfig) -> TenantDianConfig:
        """Crea o actualiza la configuración del inquilino."""
        values = config.model_dump(exclude={"tenant_id"})
        row, _ = cls.objects.update_or_create(tenant_id=config.tenant_id, defaults=values)
        return row


class Document(models.Model):
    """Documento electrónico (factura, nota crédito o nota débito).

    ES: Convertible hacia/desde los modelos Pydantic del núcleo. Los
        totales se guardan tal como se calcularon al crear el documento
        y nunca se recalculan aquí.
    EN: Convertible to/from the core Pydantic models. Totals are stored
        as computed at creation and never recomputed here.
    """

    # --- Identificación ---
    document_id = models.CharField("identificador", max_length=32, unique=True)
    tenant_id = models.CharField("inquilino", max_length=64)
    family = models.CharField(
        "familia", max_length=30, choices=DocumentFamilyChoices.choices
    )
    number = models.CharField("número", max_length=50, blank=True, null=True)
    sequence = models.PositiveBigIntegerField("consecutivo", blank=True, null=True)
    series = models.CharField("serie", max_length=50, blank=True, null=True)
    issue_date = models.DateField("fecha de emisión")
    customer_id = models.CharField("cliente", max_length=64, blank=True, null=True)
    customer_document = models.CharField(
        "documento del adquiriente", max_length=30, blank=True, null=True
    )

    # --- Estado ---
    status = models.CharField(
        "estado",
        max_length=10,
        choices=DocumentStatusChoices.choices,
        db_default=DocumentStatus.DRAFT.value,
    )

    # --- Totales ---
    subtotal = models.DecimalField("subtotal", max_digits=18, decimal_places=2)
    tax = models.DecimalField("impuesto", max_digits=18, decimal_places=2)
    discount = models.DecimalField("descuento", max_digits=18, decimal_places=2, default=0)
    total = models.DecimalField("total", max_digits=18, decimal_places=2)

    # --- Seguimiento DIAN ---
    cufe = models.CharField("CUFE/CUDE", max_length=96, blank=True, null=True)
    tracking_id = models.CharField("trackId", max_length=100, blank=True, null=True)
    rejection_reason = models.TextField("motivo de rechazo", blank=True, null=True)
    last_error = models.TextField("último error", blank=True, null=True)
    send_attempts = models.PositiveIntegerField("intentos de envío", default=0)
    sent_at = models.DateTimeField("fecha de envío", blank=True, null=True)
    accepted_at = models.DateTimeField("fecha de aceptación", blank=True, null=True)
    xml_content = models.TextField("XML UBL", blank=True, null=True)
    history = models.JSONField("historial", default=list, blank=True)

    # --- Notas crédito/débito ---
    invoice_id = models.CharField("factura origen", max_length=32, blank=True, null=True)
    invoice_number = models.CharField("número factura origen", max_length=50, blank=True, null=True)
    reason_code = models.CharField("concepto", max_length=30, blank=True, null=True)
    reason = models.TextField("motivo", blank=True, null=True)
    description = models.TextField("descripción", blank=True, null=True)
    scope = models.CharField("alcance", max_length=10, blank=True, null=True)

    # --- Metadatos ---
    created_at = models.DateTimeField("fecha de creación", auto_now_add=True)
    updated_at = models.DateTimeField("fecha de modificación", auto_now=True)

    class Meta:
        verbose_name = "documento electrónico"
        verbose_name_plural = "documentos electrónicos"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "family", "number"],
                condition=models.Q(number__isnull=False),
                name="uniq_document_number",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="document_total_non_negative",
            ),
        ]
        indexes = [
            models.Index(
                fields=["tenant_id", "family", "status"],
                name="idx_tenant_family_status",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_family_display()} {self.number or self.document_id}"

    def to_pydantic(self) -> ElectronicDocument:
        """Convierte el modelo Django en el modelo Pydantic de su familia."""
        common = {
            "id": self.document_id,
            "tenant_id": self.tenant_id,
            "number": self.number,
            "sequence": self.sequence,
            "series": self.series,
            "issue_date": self.issue_date,
            "customer_document": self.customer_document,
            "status": DocumentStatus(self.status),
            "subtotal": self.subtotal,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
            "cufe": self.cufe,
            "tracking_id": self.tracking_id,
            "rejection_reason": self.rejection_reason,
            "last_error": self.last_error,
            "send_attempts": self.send_attempts,
            "sent_at": self.sent_at,
            "accepted_at": self.accepted_at,
            "xml_content": self.xml_content,
            "history": [LifecycleEvent.model_validate(e) for e in self.history],
        }
        lines = list(self.lines.all())

        if self.family == DocumentFamily.INVOICE:
            return PydanticInvoice(
                customer_id=self.customer_id,
                lines=[line.to_invoice_line() for line in lines],
                **common,
            )

        note_fields = {
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "reason_code": self.reason_code,
            "reason": self.reason,
            "description": self.description,
            "lines": [line.to_note_line() for line in lines],
        }
        if self.family == DocumentFamily.CREDIT_NOTE:
            return CreditNote(
                scope=CreditNoteScope(self.scope or CreditNoteScope.TOTAL),
                **note_fields,
                **common,
            )
        return DebitNote(**note_fields, **common)

    @classmethod
    def field_values(cls, document: ElectronicDocument) -> dict[str, object]:
        """Valores de columna de un documento Pydantic (sin el inquilino ni las líneas)."""
        reason_code = getattr(document, "reason_code", None)
        scope = getattr(document, "scope", None)
        return {
            "family": document.family.value,
            "number": document.number,
            "sequence": document.sequence,
            "series": document.series,
            "issue_date": document.issue_date,
            "customer_id": getattr(document, "customer_id", None),
            "customer_document": document.customer_document,
            "status": document.status.value,
            "subtotal": document.subtotal,
            "tax": document.tax,
            "discount": document.discount,
            "total": document.total,
            "cufe": document.cufe,
            "tracking_id": document.tracking_id,
            "rejection_reason": document.rejection_reason,
            "last_error": document.last_error,
            "send_attempts": document.send_attempts,
            "sent_at": document.sent_at,
            "accepted_at": document.accepted_at,
            "xml_content": document.xml_content,
            "history": [e.model_dump(mode="json") for e in document.history],
            "invoice_id": getattr(document, "invoice_id", None),
            "invoice_number": getattr(document, "invoice_number", None),
            "reason_code": reason_code.value if reason_code else None,
            "reason": getattr(document, "reason", None),
            "description": getattr(document, "description", None),
            "scope": scope.value if scope else None,
        }

    @classmethod
    def from_pydantic(cls, document: ElectronicDocument) -> Document:
        """Crea una instancia Django (no guardada) desde un modelo Pydantic."""
        return cls(
            document_id=document.id,
            tenant_id=document.tenant_id,
            **cls.field_values(document),
        )

    @classmethod
    @transaction.atomic
    def save_from_pydantic(cls, document: ElectronicDocument) -> Document:
        """Crea o actualiza el documento con sus líneas en una transacción.

        ES: La fila existente se bloquea con select_for_update(). Fuera de
            DRAFT las líneas y los totales son inmutables: una escritura
            que los cambie se rechaza y las líneas no se reescriben.
        EN: The existing row is locked with select_for_update(). Outside
            DRAFT lines and totals are immutable: a write that changes
            them is refused and lines are never rewritten.

        Raises:
            DianPreconditionError: Si cambia líneas o totales de un
                documento guardado fuera de DRAFT.
        """
        stored = (
            cls.objects.select_for_update()
            .filter(tenant_id=document.tenant_id, document_id=document.id)
            .first()
        )
        if stored is not None and stored.status != DocumentStatus.DRAFT:
            document.ensure_same_content(stored.to_pydantic())

        row, created = cls.objects.update_or_create(
            tenant_id=document.tenant_id,
            document_id=document.id,
            defaults=cls.field_values(document),
        )
        if created or document.status == DocumentStatus.DRAFT:
            row.lines.all().delete()
            DocumentLine.objects.bulk_create(
                DocumentLine.from_pydantic(line, row, idx)
                for idx, line in enumerate(getattr(document, "lines", []), start=1)
            )
        return row


class DocumentLine(models.Model):
    """Línea de documento (factura o nota)."""

    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name="lines",
        verbose_name="documento",
    )
    position = models.PositiveIntegerField("posición")
    line_id = models.CharField("identificador de línea", max_length=32, blank=True, null=True)
    invoice_item_id = models.CharField("línea de factura origen", max_length=32, blank=True, null=True)
    product_id = models.CharField("producto", max_length=64, blank=True, null=True)
    description = models.CharField("descripción", max_length=500)
    quantity = models.DecimalField("cantidad", max_digits=18, decimal_places=4)
    unit_price = models.DecimalField("precio unitario", max_digits=18, decimal_places=4)
    tax_rate = models.DecimalField("tarifa IVA (%)", max_digits=5, decimal_places=2, default=19)
    discount = models.DecimalField("descuento", max_digits=18, decimal_places=2, default=0)

    class Meta:
        verbose_name = "línea de documento"
        verbose_name_plural = "líneas de documento"
        ordering = ["position"]

    def __str__(self) -> str:
        return f"Línea {self.position} : {self.description}"

    def to_invoice_line(self) -> PydanticInvoiceLine:
        """Convierte la línea en una línea de factura Pydantic."""
        return PydanticInvoiceLine(
            id=self.line_id or str(self.pk),
            product_id=self.product_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
            discount=self.discount,
        )

    def to_note_line(self) -> NoteLine:
        """Convierte la línea en una línea de nota Pydantic (montos recalculados)."""
        return NoteLine.compute(
            invoice_item_id=self.invoice_item_id,
            product_id=self.product_id,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
        )

    @classmethod
    def from_pydantic(
        cls,
        line: PydanticInvoiceLine | NoteLine,
        document: Document,
        idx: int = 1,
    ) -> DocumentLine:
        """Crea una instancia Django (no guardada) desde una línea Pydantic."""
        return cls(
            document=document,
            position=idx,
            line_id=getattr(line, "id", None),
            invoice_item_id=getattr(line, "invoice_item_id", None),
            product_id=line.product_id,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate,
            discount=getattr(line, "discount", 0),
        )


class NumberingSequence(models.Model):
    """Contador de numeración por inquilino, familia y serie.

    ES: next_number es el siguiente número a asignar. La lectura e
        incremento se hace bajo select_for_update().
    EN: next_number is the next number to hand out, read and incremented
        under select_for_update().
    """

    tenant_id = models.CharField("inquilino", max_length=64)
    family = models.CharField("familia", max_length=30)
    series = models.CharField("serie", max_length=50)
    next_number = models.PositiveBigIntegerField("siguiente número")
    updated_at = models.DateTimeField("fecha de modificación", auto_now=True)

    class Meta:
        verbose_name = "secuencia de numeración"
        verbose_name_plural = "secuencias de numeración"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "family", "series"],
                name="uniq_numbering_scope",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.tenant_id}/{self.family}/{self.series} → {self.next_number}"


class JournalEntry(models.Model):
    """Comprobante contable."""

    entry_id = models.CharField("identificador", max_length=32, unique=True)
    tenant_id = models.CharField("inquilino", max_length=64)
    entry_number = models.CharField("número", max_length=20, blank=True, null=True)
    entry_date = models.DateField("fecha")
    description = models.TextField("descripción")
    source = models.CharField(
        "origen",
        max_length=20,
        choices=[(s.value, s.value) for s in JournalEntrySource],
        db_default=JournalEntrySource.MANUAL.value,
    )
    status = models.CharField(
        "estado",
        max_length=10,
        choices=[(s.value, s.value) for s in JournalEntryStatus],
        db_default=JournalEntryStatus.DRAFT.value,
    )
    document_id = models.CharField("documento origen", max_length=32, blank=True, null=True)
    posted_at = models.DateTimeField("fecha de contabilización", blank=True, null=True)
    voided_at = models.DateTimeField("fecha de anulación", blank=True, null=True)
    void_reason = models.TextField("motivo de anulación", blank=True, null=True)

    class Meta:
        verbose_name = "comprobante contable"
        verbose_name_plural = "comprobantes contables"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "entry_number"],
                condition=models.Q(entry_number__isnull=False),
                name="uniq_journal_entry_number",
            ),
        ]

    def __str__(self) -> str:
        return f"Comprobante {self.entry_number or self.entry_id}"

    def to_pydantic(self) -> PydanticJournalEntry:
        return PydanticJournalEntry(
            id=self.entry_id,
            tenant_id=self.tenant_id,
            entry_number=self.entry_number,
            entry_date=self.entry_date,
            description=self.description,
            source=JournalEntrySource(self.source),
            status=JournalEntryStatus(self.status),
            document_id=self.document_id,
            lines=[line.to_pydantic() for line in self.lines.all()],
            posted_at=self.posted_at,
            voided_at=self.voided_at,
            void_reason=self.void_reason,
        )

    @classmethod
    @transaction.atomic
    def save_from_pydantic(cls, entry: PydanticJournalEntry) -> JournalEntry:
        """Crea o actualiza el comprobante con sus líneas en una transacción."""
        row, _ = cls.objects.update_or_create(
            tenant_id=entry.tenant_id,
            entry_id=entry.id,
            defaults={
                "entry_number": entry.entry_number,
                "entry_date": entry.entry_date,
                "description": entry.description,
                "source": entry.source.value,
                "status": entry.status.value,
                "document_id": entry.document_id,
                "posted_at": entry.posted_at,
                "voided_at": entry.voided_at,
                "void_reason": entry.void_reason,
            },
        )
        row.lines.all().delete()
        JournalLine.objects.bulk_create(
            JournalLine(
                entry=row,
                position=idx,
                account_code=line.account_code,
                description=line.description or "",
                debit=line.debit,
                credit=line.credit,
            )
            for idx, line in enumerate(entry.lines, start=1)
        )
        return row


class JournalLine(models.Model):
    """Línea de comprobante contable."""

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
        verbose_name="comprobante",
    )
    position = models.PositiveIntegerField("posición")
    account_code = models.CharField("cuenta PUC", max_length=20)
    description = models.CharField("descripción", max_length=255, blank=True, default="")
    debit = models.DecimalField("débito", max_digits=18, decimal_places=2, default=0)
    credit = models.DecimalField("crédito", max_digits=18, decimal_places=2, default=0)

    class Meta:
        verbose_name = "línea de comprobante"
        verbose_name_plural = "líneas de comprobante"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(debit__gt=0, credit=0) | models.Q(debit=0, credit__gt=0)
                ),
                name="journal_line_one_side",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.account_code} D {self.debit} C {self.credit}"

    def to_pydantic(self) -> PydanticJournalLine:
        return PydanticJournalLine(
            account_code=self.account_code,
            description=self.description or None,
            debit=self.debit,
            credit=self.credit,
        )
