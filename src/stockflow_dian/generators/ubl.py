"""Generador UBL 2.1 (anexo técnico DIAN).

ES: Produce el XML UBL 2.1 de facturas electrónicas de venta, notas
    crédito y notas débito según el anexo técnico de la DIAN. La firma
    XAdES y el transporte SOAP pertenecen al adaptador del gateway.
EN: Produces the UBL 2.1 XML of invoices, credit notes and debit notes
    following the DIAN technical annex. XAdES signing and SOAP transport
    belong to the gateway adapter.
"""

from collections import defaultdict
from decimal import Decimal

from lxml import etree

from stockflow_dian.gateway.models import DocumentPayload, PayloadLine
from stockflow_dian.generators.base import BaseGenerator, GenerationResult
from stockflow_dian.generators.cufe import environment_code, scheme_name
from stockflow_dian.models.enums import DocumentFamily

# --- Namespaces UBL 2.1 ---
INV_NS = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
CN_NS = "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2"
DN_NS = "urn:oasis:names:specification:ubl:schema:xsd:DebitNote-2"
CAC = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
CBC = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"

# --- Perfiles ---
PROFILES = {
    "DIAN 2.1": {
        DocumentFamily.INVOICE: "DIAN 2.1: Factura Electrónica de Venta",
        DocumentFamily.CREDIT_NOTE: "DIAN 2.1: Nota Crédito de Factura Electrónica de Venta",
        DocumentFamily.DEBIT_NOTE: "DIAN 2.1: Nota Débito de Factura Electrónica de Venta",
    },
}


class _DocumentShape:
    """Etiquetas UBL propias de cada familia de documento."""

    def __init__(
        self,
        namespace: str,
        root_tag: str,
        line_tag: str,
        quantity_tag: str,
        type_tag: str | None,
        type_code: str | None,
        total_tag: str,
        customization_id: str,
    ) -> None:
        self.namespace = namespace
        self.root_tag = root_tag
        self.line_tag = line_tag
        self.quantity_tag = quantity_tag
        self.type_tag = type_tag
        self.type_code = type_code
        self.total_tag = total_tag
        self.customization_id = customization_id


_SHAPES = {
    DocumentFamily.INVOICE: _DocumentShape(
        INV_NS, "Invoice", "InvoiceLine", "InvoicedQuantity",
        "InvoiceTypeCode", "01", "LegalMonetaryTotal", "10",
    ),
    DocumentFamily.CREDIT_NOTE: _DocumentShape(
        CN_NS, "CreditNote", "CreditNoteLine", "CreditedQuantity",
        "CreditNoteTypeCode", "91", "LegalMonetaryTotal", "20",
    ),
    DocumentFamily.DEBIT_NOTE: _DocumentShape(
        DN_NS, "DebitNote", "DebitNoteLine", "DebitedQuantity",
        None, None, "RequestedMonetaryTotal", "30",
    ),
}


def _cac(tag: str) -> str:
    """Construye un nombre calificado en el namespace CAC."""
    return f"{{{CAC}}}{tag}"


def _cbc(tag: str) -> str:
    """Construye un nombre calificado en el namespace CBC."""
    return f"{{{CBC}}}{tag}"


def _fmt_amount(amount: Decimal) -> str:
    """Formatea un monto con 2 decimales."""
    return f"{amount:.2f}"


def _amount(parent: etree._Element, tag: str, value: Decimal, currency: str) -> None:
    element = etree.SubElement(parent, _cbc(tag))
    element.set("currencyID", currency)
    element.text = _fmt_amount(value)


class UBLGenerator(BaseGenerator):
    """Generador de documentos electrónicos en UBL 2.1 DIAN.

    ES: Elige la raíz Invoice, CreditNote o DebitNote según la familia
        del documento.
    EN: Picks the Invoice, CreditNote or DebitNote root from the
        document family.
    """

    def generate(self, payload: DocumentPayload, **kwargs: object) -> GenerationResult:
        """Genera el documento UBL (solo XML)."""
        xml_bytes = self.generate_xml(payload)
        return GenerationResult(xml_bytes=xml_bytes, profile=self.profile)

    def generate_xml(self, payload: DocumentPayload) -> bytes:
        """Genera el XML UBL del documento."""
        shape = _SHAPES.get(payload.family)
        if shape is None:
            msg = f"Familia sin representación UBL : {payload.family.value}"
            raise ValueError(msg)
        self._shape = shape

        root = self._build_root()
        self._build_header(root, payload)
        if payload.family != DocumentFamily.INVOICE:
            self._build_discrepancy_response(root, payload)
            self._build_billing_reference(root, payload)
        self._build_supplier_party(root, payload)
        self._build_customer_party(root, payload)
        self._build_tax_total(root, payload)
        self._build_monetary_total(root, payload)
        for idx, line in enumerate(payload.lines, start=1):
            self._build_line(root, line, idx, payload.currency)
        return etree.tostring(
            root,
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )

    # --- Construcción del árbol XML ---

    def _build_root(self) -> etree._Element:
        """Construye el elemento raíz de la familia."""
        ns = self._shape.namespace
        nsmap = {None: ns, "cac": CAC, "cbc": CBC}
        return etree.Element(f"{{{ns}}}{self._shape.root_tag}", nsmap=nsmap)

    def _build_header(self, root: etree._Element, payload: DocumentPayload) -> None:
        """Construye el encabezado (versión, perfil, número, CUFE, fechas, tipo)."""
        profiles = PROFILES.get(self.profile.upper())
        if not profiles:
            msg = (
                f"Perfil desconocido : {self.profile}. "
                f"Perfiles disponibles : {', '.join(PROFILES)}"
            )
            raise ValueError(msg)

        env = environment_code(payload.test_mode)
        etree.SubElement(root, _cbc("UBLVersionID")).text = "UBL 2.1"
        etree.SubElement(root, _cbc("CustomizationID")).text = self._shape.customization_id
        etree.SubElement(root, _cbc("ProfileID")).text = profiles[payload.family]
        etree.SubElement(root, _cbc("ProfileExecutionID")).text = env
        etree.SubElement(root, _cbc("ID")).text = payload.number

        if payload.cufe:
            uuid = etree.SubElement(root, _cbc("UUID"))
            uuid.set("schemeID", env)
            uuid.set("schemeName", scheme_name(payload.family))
            uuid.text = payload.cufe

        etree.SubElement(root, _cbc("IssueDate")).text = payload.issue_date.isoformat()
        etree.SubElement(root, _cbc("IssueTime")).text = "00:00:00-05:00"

        if self._shape.type_tag:
            etree.SubElement(root, _cbc(self._shape.type_tag)).text = self._shape.type_code

        if payload.reason:
            etree.SubElement(root, _cbc("Note")).text = payload.reason

        etree.SubElement(root, _cbc("DocumentCurrencyCode")).text = payload.currency
        etree.SubElement(root, _cbc("LineCountNumeric")).text = str(len(payload.lines))

    def _build_discrepancy_response(
        self, root: etree._Element, payload: DocumentPayload
    ) -> None:
        """Construye DiscrepancyResponse (concepto de la nota)."""
        discrepancy = etree.SubElement(root, _cac("DiscrepancyResponse"))
        if payload.billing_reference:
            etree.SubElement(discrepancy, _cbc("ReferenceID")).text = payload.billing_reference
        if payload.reason_code:
            etree.SubElement(discrepancy, _cbc("ResponseCode")).text = payload.reason_code
        if payload.reason:
            etree.SubElement(discrepancy, _cbc("Description")).text = payload.reason

    def _build_billing_reference(
        self, root: etree._Element, payload: DocumentPayload
    ) -> None:
        """Construye BillingReference hacia la factura origen."""
        if not payload.billing_reference:
            return
        reference = etree.SubElement(root, _cac("BillingReference"))
        doc_ref = etree.SubElement(reference, _cac("InvoiceDocumentReference"))
        etree.SubElement(doc_ref, _cbc("ID")).text = payload.billing_reference

    # --- Partes ---

    def _build_supplier_party(
        self, root: etree._Element, payload: DocumentPayload
    ) -> None:
        """Construye AccountingSupplierParty (emisor)."""
        supplier = etree.SubElement(root, _cac("AccountingSupplierParty"))
        etree.SubElement(supplier, _cbc("AdditionalAccountID")).text = "1"
        party = etree.SubElement(supplier, _cac("Party"))
        scheme = etree.SubElement(party, _cac("PartyTaxScheme"))
        etree.SubElement(scheme, _cbc("RegistrationName")).text = payload.issuer_name
        company_id = etree.SubElement(scheme, _cbc("CompanyID"))
        company_id.set("schemeAgencyID", "195")
        company_id.set("schemeName", "31")
        company_id.text = payload.issuer_nit

    def _build_customer_party(
        self, root: etree._Element, payload: DocumentPayload
    ) -> None:
        """Construye AccountingCustomerParty (adquiriente)."""
        customer = etree.SubElement(root, _cac("AccountingCustomerParty"))
        party = etree.SubElement(customer, _cac("Party"))
        identification = etree.SubElement(party, _cac("PartyIdentification"))
        # Consumidor final cuando no hay documento del adquiriente
        etree.SubElement(identification, _cbc("ID")).text = (
            payload.customer_document or "222222222222"
        )

    # --- Impuestos ---

    def _build_tax_total(self, root: etree._Element, payload: DocumentPayload) -> None:
        """Construye TaxTotal con un TaxSubtotal por tarifa de IVA."""
        currency = payload.currency
        tax_total = etree.SubElement(root, _cac("TaxTotal"))
        _amount(tax_total, "TaxAmount", payload.tax, currency)

        by_rate: dict[Decimal, list[PayloadLine]] = defaultdict(list)
        for line in payload.lines:
            by_rate[line.tax_rate].append(line)

        for rate in sorted(by_rate):
            lines = by_rate[rate]
            subtotal = etree.SubElement(tax_total, _cac("TaxSubtotal"))
            _amount(subtotal, "TaxableAmount", sum((ln.subtotal for ln in lines), Decimal("0")), currency)
            _amount(subtotal, "TaxAmount", sum((ln.tax for ln in lines), Decimal("0")), currency)
            category = etree.SubElement(subtotal, _cac("TaxCategory"))
            etree.SubElement(category, _cbc("Percent")).text = _fmt_amount(rate)
            scheme = etree.SubElement(category, _cac("TaxScheme"))
            etree.SubElement(scheme, _cbc("ID")).text = "01"
            etree.SubElement(scheme, _cbc("Name")).text = "IVA"

    # --- Totales ---

    def _build_monetary_total(
        self, root: etree._Element, payload: DocumentPayload
    ) -> None:
        """Construye LegalMonetaryTotal (RequestedMonetaryTotal en notas débito)."""
        currency = payload.currency
        monetary = etree.SubElement(root, _cac(self._shape.total_tag))
        _amount(monetary, "LineExtensionAmount", payload.subtotal, currency)
        _amount(monetary, "TaxExclusiveAmount", payload.subtotal, currency)
        _amount(monetary, "TaxInclusiveAmount", payload.subtotal + payload.tax, currency)
        if payload.discount:
            _amount(monetary, "AllowanceTotalAmount", payload.discount, currency)
        _amount(monetary, "PayableAmount", payload.total, currency)

    # --- Líneas ---

    def _build_line(
        self,
        root: etree._Element,
        line: PayloadLine,
        idx: int,
        currency: str,
    ) -> None:
        """Construye InvoiceLine, CreditNoteLine o DebitNoteLine."""
        line_el = etree.SubElement(root, _cac(self._shape.line_tag))
        etree.SubElement(line_el, _cbc("ID")).text = str(idx)

        qty = etree.SubElement(line_el, _cbc(self._shape.quantity_tag))
        qty.set("unitCode", "94")
        qty.text = str(line.quantity)

        _amount(line_el, "LineExtensionAmount", line.subtotal, currency)

        tax_total = etree.SubElement(line_el, _cac("TaxTotal"))
        _amount(tax_total, "TaxAmount", line.tax, currency)

        item = etree.SubElement(line_el, _cac("Item"))
        etree.SubElement(item, _cbc("Description")).text = line.description

        price = etree.SubElement(line_el, _cac("Price"))
        _amount(price, "PriceAmount", line.unit_price, currency)
