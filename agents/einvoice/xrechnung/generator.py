"""XRechnung 3.0 (UBL 2.1, EN16931) Generator.

Erzeugt aus einer Rechnung und der Firmenkonfiguration ein vollständiges
``ubl:Invoice``-Dokument. Jeder Abschnitt hat eigene Defaults, sodass auch
eine nahezu leere Rechnung ein strukturell gültiges Dokument ergibt. Eine
Prüfung gegen XSD/Schematron findet hier nicht statt.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from agents.einvoice.dto import CompanyConfig, CompanyInfo, Invoice, LineItem
from agents.einvoice.partners import (
    CustomerData,
    PostalAddress,
    buyer_address,
    resolve_customer,
    supplier_address,
)
from agents.einvoice.results import GenerationResult
from agents.einvoice.xmlutil import block, document, format_amount, format_number, leaf

XRECHNUNG_CUSTOMIZATION_ID = (
    "urn:cen.eu:en16931:2017#compliant#urn:xeinkauf.de:kosit:xrechnung_3.0"
)
XRECHNUNG_PROFILE_ID = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"
XRECHNUNG_FORMAT = "XRechnung 3.0"
XRECHNUNG_VERSION = "3.0"
GENERATOR_VERSION = "xrechnung-ubl-3.0.0"

UBL_NAMESPACES = {
    "ubl": "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2",
    "cac": "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2",
    "cbc": "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2",
}

INVOICE_TYPE_CODE = "380"
PAYMENT_MEANS_SEPA_TRANSFER = "58"
TAX_CATEGORY_STANDARD = "S"
TAX_SCHEME_VAT = "VAT"
UNIT_CODE_PIECE = "C62"


def version() -> str:
    return GENERATOR_VERSION


def _tax_scheme() -> str:
    return block("cac:TaxScheme", leaf("cbc:ID", TAX_SCHEME_VAT))


def _postal_address(address: PostalAddress) -> str:
    return block(
        "cac:PostalAddress",
        leaf("cbc:StreetName", address.street),
        leaf("cbc:BuildingNumber", address.house_number) if address.house_number else None,
        leaf("cbc:CityName", address.city),
        leaf("cbc:PostalZone", address.postal_code),
        block("cac:Country", leaf("cbc:IdentificationCode", address.country_code)),
    )


def _party_tax_scheme(tax_id: str) -> str:
    return block("cac:PartyTaxScheme", leaf("cbc:CompanyID", tax_id), _tax_scheme())


def _render_supplier_party(company: CompanyInfo) -> str:
    return block(
        "cac:AccountingSupplierParty",
        block(
            "cac:Party",
            block("cac:PartyName", leaf("cbc:Name", company.name)),
            _postal_address(supplier_address(company)),
            _party_tax_scheme(company.tax_id),
            block("cac:PartyLegalEntity", leaf("cbc:RegistrationName", company.name)),
            block("cac:Contact", leaf("cbc:ElectronicMail", company.email)),
        ),
    )


def _render_customer_party(customer: CustomerData) -> str:
    return block(
        "cac:AccountingCustomerParty",
        block(
            "cac:Party",
            block("cac:PartyName", leaf("cbc:Name", customer.name)),
            _postal_address(buyer_address(customer)),
            _party_tax_scheme(customer.tax_id) if customer.tax_id else None,
            block("cac:PartyLegalEntity", leaf("cbc:RegistrationName", customer.name)),
            block("cac:Contact", leaf("cbc:ElectronicMail", customer.email)),
        ),
    )


def _render_payment_means(invoice: Invoice) -> str:
    return block(
        "cac:PaymentMeans",
        leaf("cbc:PaymentMeansCode", PAYMENT_MEANS_SEPA_TRANSFER),
        leaf("cbc:PaymentID", invoice.document_number),
    )


def _render_tax_total(invoice: Invoice) -> str:
    currency = invoice.currency
    return block(
        "cac:TaxTotal",
        leaf("cbc:TaxAmount", format_amount(invoice.tax_amount), currencyID=currency),
        block(
            "cac:TaxSubtotal",
            leaf("cbc:TaxableAmount", format_amount(invoice.subtotal), currencyID=currency),
            leaf("cbc:TaxAmount", format_amount(invoice.tax_amount), currencyID=currency),
            block(
                "cac:TaxCategory",
                leaf("cbc:ID", TAX_CATEGORY_STANDARD),
                leaf("cbc:Percent", format_number(invoice.tax_rate)),
                _tax_scheme(),
            ),
        ),
    )


def _render_monetary_total(invoice: Invoice) -> str:
    currency = invoice.currency
    net = format_amount(invoice.subtotal)
    gross = format_amount(invoice.total)
    return block(
        "cac:LegalMonetaryTotal",
        leaf("cbc:LineExtensionAmount", net, currencyID=currency),
        leaf("cbc:TaxExclusiveAmount", net, currencyID=currency),
        leaf("cbc:TaxInclusiveAmount", gross, currencyID=currency),
        leaf("cbc:PayableAmount", gross, currencyID=currency),
    )


def _render_invoice_line(index: int, item: LineItem, invoice: Invoice) -> str:
    currency = invoice.currency
    return block(
        "cac:InvoiceLine",
        leaf("cbc:ID", index),
        leaf("cbc:InvoicedQuantity", format_number(item.quantity), unitCode=UNIT_CODE_PIECE),
        leaf("cbc:LineExtensionAmount", format_amount(item.line_total()), currencyID=currency),
        block(
            "cac:Item",
            leaf("cbc:Name", item.description),
            block(
                "cac:ClassifiedTaxCategory",
                leaf("cbc:ID", TAX_CATEGORY_STANDARD),
                leaf("cbc:Percent", format_number(invoice.tax_rate)),
                _tax_scheme(),
            ),
        ),
        block(
            "cac:Price",
            leaf("cbc:PriceAmount", format_amount(item.price), currencyID=currency),
        ),
    )


def build_xrechnung_xml(
    invoice: Invoice,
    config: CompanyConfig,
    now: datetime,
    options: Optional[Mapping[str, Any]] = None,
) -> str:
    """Rendert das UBL-Dokument.

    ``now`` liefert das Rechnungsdatum, falls die Rechnung keines trägt.
    ``options`` ist für spätere Erweiterungen reserviert und wird aktuell
    nicht ausgewertet.
    """

    customer = resolve_customer(invoice)
    lines = [
        _render_invoice_line(index, item, invoice)
        for index, item in enumerate(invoice.billable_items(), start=1)
    ]

    return document(
        "ubl:Invoice",
        UBL_NAMESPACES,
        leaf("cbc:CustomizationID", XRECHNUNG_CUSTOMIZATION_ID),
        leaf("cbc:ProfileID", XRECHNUNG_PROFILE_ID),
        leaf("cbc:ID", invoice.document_number),
        leaf("cbc:IssueDate", invoice.issue_date or now.date().isoformat()),
        leaf("cbc:DueDate", invoice.due_date) if invoice.due_date else None,
        leaf("cbc:InvoiceTypeCode", INVOICE_TYPE_CODE),
        leaf("cbc:DocumentCurrencyCode", invoice.currency),
        leaf("cbc:Note", invoice.notes) if invoice.notes else None,
        _render_supplier_party(config.company),
        _render_customer_party(customer),
        _render_payment_means(invoice),
        _render_tax_total(invoice),
        _render_monetary_total(invoice),
        *lines,
    )


def build_xrechnung_document(
    invoice: Invoice,
    config: CompanyConfig,
    now: datetime,
    options: Optional[Mapping[str, Any]] = None,
) -> GenerationResult:
    return GenerationResult(
        format=XRECHNUNG_FORMAT,
        version=XRECHNUNG_VERSION,
        xml=build_xrechnung_xml(invoice, config, now, options),
        file_name=f"XRechnung_{invoice.document_number}.xml",
    )
