"""Pruebas unitarias del generador UBL 2.1 DIAN.

ES: Verifica la raíz por familia, los namespaces, el encabezado, el CUFE,
    la agrupación del IVA por tarifa, los totales y la referencia a la
    factura origen en las notas.
EN: Verifies the root per family, namespaces, header, CUFE, VAT grouping
    per rate, totals and the parent invoice reference on notes.
"""

from datetime import date
from decimal import Decimal

import pytest
from lxml import etree

from stockflow_dian.gateway.models import DocumentPayload, PayloadLine
from stockflow_dian.generators.ubl import CAC, CBC, CN_NS, DN_NS, INV_NS, UBLGenerator
from stockflow_dian.models.enums import DocumentFamily

# Namespaces para las consultas XPath
NS = {"cac": CAC, "cbc": CBC}


def _parse(xml_bytes: bytes) -> etree._Element:
    """Parsea el XML y devuelve el elemento raíz."""
    return etree.fromstring(xml_bytes)


def _line(description: str, qty: str, price: str, rate: str) -> PayloadLine:
    subtotal = Decimal(qty) * Decimal(price)
    return PayloadLine(
        description=description,
        quantity=Decimal(qty),
        unit_price=Decimal(price),
        tax_rate=Decimal(rate),
        subtotal=subtotal,
        tax=(subtotal * Decimal(rate) / 100).quantize(Decimal("0.01")),
    )


@pytest.fixture
def invoice_payload() -> DocumentPayload:
    """Factura con dos tarifas de IVA (19 % y exenta)."""
    return DocumentPayload(
        document_id="doc-1",
        tenant_id="ferreteria-norte",
        family=DocumentFamily.INVOICE,
        number="SETP00000001",
        issue_date=date(2026, 10, 19),
        cufe="a" * 96,
        issuer_nit="900123456",
        issuer_name="Ferretería del Norte SAS",
        customer_document="800765432",
        subtotal=Decimal("330"),
        tax=Decimal("47.50"),
        total=Decimal("377.50"),
        lines=[
            _line("Tornillo drywall 6x1", "3", "50", "19"),
            _line("Martillo de uña 16 oz", "1", "100", "19"),
            _line("Manual de instalación", "1", "80", "0"),
        ],
    )


@pytest.fixture
def credit_payload(invoice_payload: DocumentPayload) -> DocumentPayload:
    """Nota crédito parcial sobre la factura."""
    return invoice_payload.model_copy(
        update={
            "document_id": "doc-2",
            "family": DocumentFamily.CREDIT_NOTE,
            "number": "NC00000001",
            "subtotal": Decimal("50"),
            "tax": Decimal("9.50"),
            "total": Decimal("59.50"),
            "lines": [_line("Tornillo drywall 6x1", "1", "50", "19")],
            "billing_reference": "SETP00000001",
            "reason_code": "1",
            "reason": "Devolución de una caja",
        }
    )


class TestInvoiceXML:
    """Pruebas de la estructura de la factura."""

    def test_root_and_namespaces(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        assert root.tag == f"{{{INV_NS}}}Invoice"
        assert root.nsmap[None] == INV_NS
        assert root.nsmap["cac"] == CAC
        assert root.nsmap["cbc"] == CBC

    def test_header(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        assert root.find("cbc:UBLVersionID", NS).text == "UBL 2.1"
        assert root.find("cbc:CustomizationID", NS).text == "10"
        assert root.find("cbc:ProfileExecutionID", NS).text == "2"
        assert root.find("cbc:ID", NS).text == "SETP00000001"
        assert root.find("cbc:IssueDate", NS).text == "2026-10-19"
        assert root.find("cbc:InvoiceTypeCode", NS).text == "01"
        assert root.find("cbc:DocumentCurrencyCode", NS).text == "COP"
        assert root.find("cbc:LineCountNumeric", NS).text == "3"

    def test_cufe(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        uuid = root.find("cbc:UUID", NS)
        assert uuid.text == "a" * 96
        assert uuid.get("schemeName") == "CUFE-SHA384"
        assert uuid.get("schemeID") == "2"

    def test_without_cufe(self, invoice_payload: DocumentPayload) -> None:
        payload = invoice_payload.model_copy(update={"cufe": None})
        root = _parse(UBLGenerator().generate_xml(payload))
        assert root.find("cbc:UUID", NS) is None

    def test_parties(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        company_id = root.find(
            "cac:AccountingSupplierParty/cac:Party/cac:PartyTaxScheme/cbc:CompanyID", NS
        )
        assert company_id.text == "900123456"
        customer_id = root.find(
            "cac:AccountingCustomerParty/cac:Party/cac:PartyIdentification/cbc:ID", NS
        )
        assert customer_id.text == "800765432"

    def test_final_consumer(self, invoice_payload: DocumentPayload) -> None:
        payload = invoice_payload.model_copy(update={"customer_document": None})
        root = _parse(UBLGenerator().generate_xml(payload))
        customer_id = root.find(
            "cac:AccountingCustomerParty/cac:Party/cac:PartyIdentification/cbc:ID", NS
        )
        assert customer_id.text == "222222222222"

    def test_tax_grouped_by_rate(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        tax_total = root.find("cac:TaxTotal", NS)
        assert tax_total.find("cbc:TaxAmount", NS).text == "47.50"

        subtotals = tax_total.findall("cac:TaxSubtotal", NS)
        assert len(subtotals) == 2
        exempt, standard = subtotals
        assert exempt.find("cac:TaxCategory/cbc:Percent", NS).text == "0.00"
        assert exempt.find("cbc:TaxableAmount", NS).text == "80.00"
        assert standard.find("cac:TaxCategory/cbc:Percent", NS).text == "19.00"
        assert standard.find("cbc:TaxableAmount", NS).text == "250.00"
        assert standard.find("cbc:TaxAmount", NS).text == "47.50"

    def test_monetary_total(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        monetary = root.find("cac:LegalMonetaryTotal", NS)
        assert monetary.find("cbc:LineExtensionAmount", NS).text == "330.00"
        assert monetary.find("cbc:TaxInclusiveAmount", NS).text == "377.50"
        assert monetary.find("cbc:PayableAmount", NS).text == "377.50"
        assert monetary.find("cbc:PayableAmount", NS).get("currencyID") == "COP"
        assert monetary.find("cbc:AllowanceTotalAmount", NS) is None

    def test_discount(self, invoice_payload: DocumentPayload) -> None:
        payload = invoice_payload.model_copy(
            update={"discount": Decimal("10"), "total": Decimal("367.50")}
        )
        root = _parse(UBLGenerator().generate_xml(payload))
        monetary = root.find("cac:LegalMonetaryTotal", NS)
        assert monetary.find("cbc:AllowanceTotalAmount", NS).text == "10.00"

    def test_lines(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        lines = root.findall("cac:InvoiceLine", NS)
        assert [ln.find("cbc:ID", NS).text for ln in lines] == ["1", "2", "3"]
        first = lines[0]
        assert first.find("cbc:InvoicedQuantity", NS).text == "3"
        assert first.find("cbc:LineExtensionAmount", NS).text == "150.00"
        assert first.find("cac:Item/cbc:Description", NS).text == "Tornillo drywall 6x1"
        assert first.find("cac:Price/cbc:PriceAmount", NS).text == "50.00"

    def test_production_environment(self, invoice_payload: DocumentPayload) -> None:
        payload = invoice_payload.model_copy(update={"test_mode": False})
        root = _parse(UBLGenerator().generate_xml(payload))
        assert root.find("cbc:ProfileExecutionID", NS).text == "1"

    def test_xml_declaration(self, invoice_payload: DocumentPayload) -> None:
        xml_bytes = UBLGenerator().generate_xml(invoice_payload)
        assert xml_bytes.startswith(b"<?xml")


class TestNotesXML:
    """Pruebas de las notas crédito y débito."""

    def test_credit_note(self, credit_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(credit_payload))
        assert root.tag == f"{{{CN_NS}}}CreditNote"
        assert root.find("cbc:CustomizationID", NS).text == "20"
        assert root.find("cbc:CreditNoteTypeCode", NS).text == "91"
        assert root.find("cbc:UUID", NS).get("schemeName") == "CUDE-SHA384"
        assert root.find("cac:CreditNoteLine/cbc:CreditedQuantity", NS).text == "1"

    def test_discrepancy_and_billing_reference(self, credit_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(credit_payload))
        discrepancy = root.find("cac:DiscrepancyResponse", NS)
        assert discrepancy.find("cbc:ReferenceID", NS).text == "SETP00000001"
        assert discrepancy.find("cbc:ResponseCode", NS).text == "1"
        assert discrepancy.find("cbc:Description", NS).text == "Devolución de una caja"
        reference = root.find("cac:BillingReference/cac:InvoiceDocumentReference/cbc:ID", NS)
        assert reference.text == "SETP00000001"

    def test_debit_note(self, credit_payload: DocumentPayload) -> None:
        payload = credit_payload.model_copy(
            update={"family": DocumentFamily.DEBIT_NOTE, "number": "ND00000001"}
        )
        root = _parse(UBLGenerator().generate_xml(payload))
        assert root.tag == f"{{{DN_NS}}}DebitNote"
        assert root.find("cbc:CustomizationID", NS).text == "30"
        assert root.find("cac:RequestedMonetaryTotal", NS) is not None
        assert root.find("cac:LegalMonetaryTotal", NS) is None
        assert root.find("cac:DebitNoteLine/cbc:DebitedQuantity", NS) is not None

    def test_invoice_has_no_billing_reference(self, invoice_payload: DocumentPayload) -> None:
        root = _parse(UBLGenerator().generate_xml(invoice_payload))
        assert root.find("cac:BillingReference", NS) is None
        assert root.find("cac:DiscrepancyResponse", NS) is None


class TestErrors:
    """Pruebas de los casos no soportados."""

    def test_journal_entry_has_no_ubl(self, invoice_payload: DocumentPayload) -> None:
        payload = invoice_payload.model_copy(update={"family": DocumentFamily.JOURNAL_ENTRY})
        with pytest.raises(ValueError, match="sin representación UBL"):
            UBLGenerator().generate_xml(payload)

    def test_invalid_profile(self, invoice_payload: DocumentPayload) -> None:
        with pytest.raises(ValueError, match="Perfil desconocido"):
            UBLGenerator(profile="PEPPOL").generate_xml(invoice_payload)

    def test_generate_result(self, invoice_payload: DocumentPayload, tmp_path) -> None:
        result = UBLGenerator().generate(invoice_payload)
        assert result.profile == "DIAN 2.1"
        target = tmp_path / "SETP00000001.xml"
        result.save(str(target))
        assert target.read_bytes() == result.xml_bytes
