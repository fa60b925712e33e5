"""Tests for the XRechnung and ZUGFeRD document layout and self-checks."""

from __future__ import annotations

from datetime import datetime, timezone
from xml.etree import ElementTree as ET

import pytest

from agents.einvoice import (
    XRECHNUNG_CUSTOMIZATION_ID,
    ZUGFERD_GUIDELINE_ID,
    build_sample_config,
    build_sample_invoice,
    generate_formats,
    validate_xrechnung,
    validate_zugferd,
    xrechnung_version,
    zugferd_version,
)
from agents.einvoice.dto import CompanyConfig, Invoice
from agents.einvoice.xrechnung import build_xrechnung_xml
from agents.einvoice.zugferd import build_zugferd_xml

UBL_NS = {
    "cbc": "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2",
    "cac": "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2",
}
CII_NS = {
    "rsm": "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100",
    "ram": "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100",
    "udt": "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100",
}
NOW = datetime(2025, 1, 20, 8, 30, tzinfo=timezone.utc)


def _ubl(invoice: dict, config: dict | None = None) -> ET.Element:
    xml = build_xrechnung_xml(Invoice.from_dict(invoice), CompanyConfig.coerce(config), NOW)
    return ET.fromstring(xml.encode("utf-8"))


def _cii(invoice: dict, config: dict | None = None) -> ET.Element:
    xml = build_zugferd_xml(Invoice.from_dict(invoice), CompanyConfig.coerce(config), NOW)
    return ET.fromstring(xml.encode("utf-8"))


def test_xrechnung_header_fields() -> None:
    root = _ubl(build_sample_invoice("01"), build_sample_config())

    assert root.tag == "{urn:oasis:names:specification:ubl:schema:xsd:Invoice-2}Invoice"
    assert root.findtext("cbc:CustomizationID", namespaces=UBL_NS) == XRECHNUNG_CUSTOMIZATION_ID
    assert (
        root.findtext("cbc:ProfileID", namespaces=UBL_NS)
        == "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"
    )
    assert root.findtext("cbc:ID", namespaces=UBL_NS) == "INV-2025-000123"
    assert root.findtext("cbc:IssueDate", namespaces=UBL_NS) == "2025-01-15"
    assert root.findtext("cbc:DueDate", namespaces=UBL_NS) == "2025-02-14"
    assert root.findtext("cbc:InvoiceTypeCode", namespaces=UBL_NS) == "380"
    assert root.findtext("cbc:DocumentCurrencyCode", namespaces=UBL_NS) == "EUR"
    assert root.findtext("cac:PaymentMeans/cbc:PaymentMeansCode", namespaces=UBL_NS) == "58"
    assert root.findtext("cac:PaymentMeans/cbc:PaymentID", namespaces=UBL_NS) == "INV-2025-000123"


def test_xrechnung_parties() -> None:
    root = _ubl(build_sample_invoice("01"), build_sample_config())

    supplier = root.find("cac:AccountingSupplierParty/cac:Party", namespaces=UBL_NS)
    assert supplier.findtext("cac:PartyName/cbc:Name", namespaces=UBL_NS) == "Beispiel Software GmbH"
    assert supplier.findtext("cac:PostalAddress/cbc:StreetName", namespaces=UBL_NS) == "Industriestraße 12"
    assert supplier.findtext("cac:PostalAddress/cbc:CityName", namespaces=UBL_NS) == "Musterstadt"
    assert supplier.findtext("cac:PostalAddress/cbc:PostalZone", namespaces=UBL_NS) == "12345"
    assert supplier.findtext("cac:PartyTaxScheme/cbc:CompanyID", namespaces=UBL_NS) == "DE987654321"
    assert supplier.findtext("cac:PartyTaxScheme/cac:TaxScheme/cbc:ID", namespaces=UBL_NS) == "VAT"
    assert (
        supplier.findtext("cac:Contact/cbc:ElectronicMail", namespaces=UBL_NS)
        == "rechnung@beispiel-software.de"
    )

    buyer = root.find("cac:AccountingCustomerParty/cac:Party", namespaces=UBL_NS)
    assert buyer.findtext("cac:PartyName/cbc:Name", namespaces=UBL_NS) == "Acme GmbH"
    assert buyer.findtext("cac:PostalAddress/cbc:StreetName", namespaces=UBL_NS) == "Hauptstr."
    assert buyer.findtext("cac:PostalAddress/cbc:BuildingNumber", namespaces=UBL_NS) == "5"
    assert buyer.findtext("cac:PostalAddress/cbc:CityName", namespaces=UBL_NS) == "Berlin"
    assert buyer.findtext("cac:PostalAddress/cbc:PostalZone", namespaces=UBL_NS) == "10115"
    assert buyer.findtext("cac:PartyLegalEntity/cbc:RegistrationName", namespaces=UBL_NS) == "Acme GmbH"
    assert buyer.findtext("cac:Contact/cbc:ElectronicMail", namespaces=UBL_NS) == "buy@acme.de"
    # Käufer ohne USt-ID: kein PartyTaxScheme
    assert buyer.find("cac:PartyTaxScheme", namespaces=UBL_NS) is None


def test_xrechnung_totals_and_line() -> None:
    root = _ubl(build_sample_invoice("01"))

    tax_total = root.find("cac:TaxTotal", namespaces=UBL_NS)
    assert tax_total.find("cbc:TaxAmount", namespaces=UBL_NS).attrib == {"currencyID": "EUR"}
    subtotal = tax_total.find("cac:TaxSubtotal", namespaces=UBL_NS)
    assert subtotal.findtext("cbc:TaxableAmount", namespaces=UBL_NS) == "1000.00"
    assert subtotal.findtext("cac:TaxCategory/cbc:ID", namespaces=UBL_NS) == "S"
    assert subtotal.findtext("cac:TaxCategory/cbc:Percent", namespaces=UBL_NS) == "19"

    legal = root.find("cac:LegalMonetaryTotal", namespaces=UBL_NS)
    assert legal.findtext("cbc:LineExtensionAmount", namespaces=UBL_NS) == "1000.00"
    assert legal.findtext("cbc:TaxExclusiveAmount", namespaces=UBL_NS) == "1000.00"
    assert legal.findtext("cbc:TaxInclusiveAmount", namespaces=UBL_NS) == "1190.00"
    assert legal.findtext("cbc:PayableAmount", namespaces=UBL_NS) == "1190.00"

    line = root.find("cac:InvoiceLine", namespaces=UBL_NS)
    assert line.findtext("cbc:ID", namespaces=UBL_NS) == "1"
    quantity = line.find("cbc:InvoicedQuantity", namespaces=UBL_NS)
    assert quantity.text == "2"
    assert quantity.attrib == {"unitCode": "C62"}
    assert line.findtext("cac:Item/cbc:Name", namespaces=UBL_NS) == "Beratung"
    assert line.findtext("cac:Item/cac:ClassifiedTaxCategory/cbc:Percent", namespaces=UBL_NS) == "19"
    assert line.findtext("cac:Price/cbc:PriceAmount", namespaces=UBL_NS) == "500.00"


def test_xrechnung_optional_fields_are_omitted_or_defaulted() -> None:
    root = _ubl({"id": "inv-min"})

    assert root.findtext("cbc:ID", namespaces=UBL_NS) == "inv-min"
    assert root.findtext("cbc:IssueDate", namespaces=UBL_NS) == "2025-01-20"
    assert root.find("cbc:DueDate", namespaces=UBL_NS) is None
    assert root.find("cbc:Note", namespaces=UBL_NS) is None
    supplier = root.find("cac:AccountingSupplierParty/cac:Party", namespaces=UBL_NS)
    assert supplier.findtext("cac:PartyName/cbc:Name", namespaces=UBL_NS) == "Muster Unternehmen GmbH"
    assert supplier.findtext("cac:PostalAddress/cbc:StreetName", namespaces=UBL_NS) == "Musterstraße 1"


def test_zugferd_layout() -> None:
    root = _cii(build_sample_invoice("01"), build_sample_config())

    assert root.tag == "{urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100}CrossIndustryInvoice"
    assert (
        root.findtext(
            "rsm:ExchangedDocumentContext/ram:GuidelineSpecifiedDocumentContextParameter/ram:ID",
            namespaces=CII_NS,
        )
        == ZUGFERD_GUIDELINE_ID
    )
    assert root.findtext("rsm:ExchangedDocument/ram:ID", namespaces=CII_NS) == "INV-2025-000123"
    assert root.findtext("rsm:ExchangedDocument/ram:TypeCode", namespaces=CII_NS) == "380"
    issue = root.find("rsm:ExchangedDocument/ram:IssueDateTime/udt:DateTimeString", namespaces=CII_NS)
    assert issue.text == "20250115"
    assert issue.attrib == {"format": "102"}

    transaction = root.find("rsm:SupplyChainTradeTransaction", namespaces=CII_NS)
    line = transaction.find("ram:IncludedSupplyChainTradeLineItem", namespaces=CII_NS)
    assert line.findtext("ram:AssociatedDocumentLineDocument/ram:LineID", namespaces=CII_NS) == "1"
    assert (
        line.findtext(
            "ram:SpecifiedLineTradeAgreement/ram:NetPriceProductTradePrice/ram:ChargeAmount",
            namespaces=CII_NS,
        )
        == "500.00"
    )
    assert line.find("ram:SpecifiedLineTradeDelivery/ram:BilledQuantity", namespaces=CII_NS).attrib == {
        "unitCode": "C62"
    }

    agreement = transaction.find("ram:ApplicableHeaderTradeAgreement", namespaces=CII_NS)
    seller = agreement.find("ram:SellerTradeParty", namespaces=CII_NS)
    assert seller.findtext("ram:Name", namespaces=CII_NS) == "Beispiel Software GmbH"
    assert seller.findtext("ram:PostalTradeAddress/ram:PostcodeCode", namespaces=CII_NS) == "12345"
    assert seller.findtext("ram:PostalTradeAddress/ram:LineOne", namespaces=CII_NS) == "Industriestraße 12"
    tax_id = seller.find("ram:SpecifiedTaxRegistration/ram:ID", namespaces=CII_NS)
    assert tax_id.text == "DE987654321"
    assert tax_id.attrib == {"schemeID": "VA"}
    buyer = agreement.find("ram:BuyerTradeParty", namespaces=CII_NS)
    assert buyer.findtext("ram:PostalTradeAddress/ram:LineOne", namespaces=CII_NS) == "Hauptstr. 5"
    assert buyer.findtext("ram:PostalTradeAddress/ram:CountryID", namespaces=CII_NS) == "DE"

    settlement = transaction.find("ram:ApplicableHeaderTradeSettlement", namespaces=CII_NS)
    assert settlement.findtext("ram:InvoiceCurrencyCode", namespaces=CII_NS) == "EUR"
    assert (
        settlement.findtext(
            "ram:SpecifiedTradePaymentTerms/ram:DueDateDateTime/udt:DateTimeString", namespaces=CII_NS
        )
        == "20250214"
    )
    summation = settlement.find("ram:SpecifiedTradeSettlementHeaderMonetarySummation", namespaces=CII_NS)
    assert summation.findtext("ram:LineTotalAmount", namespaces=CII_NS) == "1000.00"
    assert summation.findtext("ram:TaxBasisTotalAmount", namespaces=CII_NS) == "1000.00"
    assert summation.find("ram:TaxTotalAmount", namespaces=CII_NS).attrib == {"currencyID": "EUR"}
    assert summation.findtext("ram:TaxTotalAmount", namespaces=CII_NS) == "190.00"
    assert summation.findtext("ram:GrandTotalAmount", namespaces=CII_NS) == "1190.00"
    assert summation.findtext("ram:DuePayableAmount", namespaces=CII_NS) == "1190.00"


def test_zugferd_missing_dates_use_clock() -> None:
    root = _cii({"id": "inv-min"})

    assert (
        root.findtext("rsm:ExchangedDocument/ram:IssueDateTime/udt:DateTimeString", namespaces=CII_NS)
        == "20250120"
    )
    assert (
        root.findtext(".//ram:DueDateDateTime/udt:DateTimeString", namespaces=CII_NS) == "20250120"
    )
    assert root.find(".//ram:BuyerTradeParty/ram:SpecifiedTaxRegistration", namespaces=CII_NS) is None


@pytest.mark.parametrize("code", ["01", "02", "03", "04", "05"])
def test_self_checks_pass_for_samples(code: str) -> None:
    result = generate_formats(build_sample_invoice(code), build_sample_config(), "Both", clock=lambda: NOW)

    xr = validate_xrechnung(result.xrechnung.xml)
    zf = validate_zugferd(result.zugferd.xml)
    assert xr.ok, xr.messages
    assert zf.ok, zf.messages
    assert any(xrechnung_version() in message for message in xr.messages)
    assert any(zugferd_version() in message for message in zf.messages)


def test_self_check_reports_total_mismatch_without_failing() -> None:
    invoice = build_sample_invoice("01")
    invoice["total"] = 1200
    result = generate_formats(invoice, None, "XRechnung", clock=lambda: NOW)

    check = validate_xrechnung(result.xrechnung.xml)
    assert check.ok
    assert any("differs from TaxAmount" in message for message in check.messages)


@pytest.mark.parametrize("validator", [validate_xrechnung, validate_zugferd])
def test_self_check_rejects_broken_documents(validator) -> None:
    assert not validator("<not-closed").ok
    assert not validator(b'<?xml version="1.0"?><Other/>').ok


def test_self_check_flags_bad_amount_format() -> None:
    xml = generate_formats(build_sample_invoice("01"), None, "Both", clock=lambda: NOW)
    broken_ubl = xml.xrechnung.xml.replace(">1190.00<", ">1190<")
    broken_cii = xml.zugferd.xml.replace(">1190.00<", ">1.190,00<")

    assert not validate_xrechnung(broken_ubl).ok
    assert not validate_zugferd(broken_cii).ok
