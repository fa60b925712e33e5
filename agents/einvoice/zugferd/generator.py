"""ZUGFeRD 2.2 Generator (UN/CEFACT CrossIndustryInvoice, EN16931).

Erzeugt nur den XML-Teil; das Einbetten in ein PDF/A-3 ist nicht Aufgabe
dieses Moduls. Die Beträge entsprechen denen der XRechnung (``subtotal``,
``taxAmount``, ``total`` aus der Rechnung), Datumswerte stehen im
CII-Format 102 (``YYYYMMDD``).
"""

from __future__ import annotations

from datetime import date, datetime
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
from agents.einvoice.xmlutil import (
    block,
    document,
    format_amount,
    format_cii_date,
    format_number,
    leaf,
)

ZUGFERD_GUIDELINE_ID = "urn:cen.eu:en16931:2017#compliant#urn:zugferd.de:2p2:extended"
ZUGFERD_FORMAT = "ZUGFeRD 2.2"
ZUGFERD_VERSION = "2.2"
GENERATOR_VERSION = "zugferd-cii-2.2.0"

CII_NAMESPACES = {
    "rsm": "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100",
    "qdt": "urn:un:unece:uncefact:data:standard:QualifiedDataType:100",
    "ram": "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100",
    "xs": "http://www.w3.org/2001/XMLSchema",
    "udt": "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100",
}

DOCUMENT_TYPE_CODE = "380"
DATE_FORMAT_102 = "102"
TAX_TYPE_VAT = "VAT"
TAX_CATEGORY_STANDARD = "S"
TAX_SCHEME_VAT_ID = "VA"
UNIT_CODE_PIECE = "C62"


def version() -> str:
    return GENERATOR_VERSION


def _date_time(tag: str, value: str) -> str:
    return block(tag, leaf("udt:DateTimeString", value, format=DATE_FORMAT_102))


def _trade_address(address: PostalAddress) -> str:
    return block(
        "ram:PostalTradeAddress",
        leaf("ram:PostcodeCode", address.postal_code),
        leaf("ram:LineOne", address.street_line()),
        leaf("ram:CityName", address.city),
        leaf("ram:CountryID", address.country_code),
    )


def _tax_registration(tax_id: str) -> str:
    return block("ram:SpecifiedTaxRegistration", leaf("ram:ID", tax_id, schemeID=TAX_SCHEME_VAT_ID))


def _render_seller(company: CompanyInfo) -> str:
    return block(
        "ram:SellerTradeParty",
        leaf("ram:Name", company.name),
        _trade_address(supplier_address(company)),
        _tax_registration(company.tax_id),
    )


def _render_buyer(customer: CustomerData) -> str:
    return block(
        "ram:BuyerTradeParty",
        leaf("ram:Name", customer.name),
        _trade_address(buyer_address(customer)),
        _tax_registration(customer.tax_id) if customer.tax_id else None,
    )


def _render_trade_line(index: int, item: LineItem, invoice: Invoice) -> str:
    return block(
        "ram:IncludedSupplyChainTradeLineItem",
        block("ram:AssociatedDocumentLineDocument", leaf("ram:LineID", index)),
        block("ram:SpecifiedTradeProduct", leaf("ram:Name", item.description)),
        block(
            "ram:SpecifiedLineTradeAgreement",
            block(
                "ram:NetPriceProductTradePrice",
                leaf("ram:ChargeAmount", format_amount(item.price)),
            ),
        ),
        block(
            "ram:SpecifiedLineTradeDelivery",
            leaf("ram:BilledQuantity", format_number(item.quantity), unitCode=UNIT_CODE_PIECE),
        ),
        block(
            "ram:SpecifiedLineTradeSettlement",
            block(
                "ram:ApplicableTradeTax",
                leaf("ram:TypeCode", TAX_TYPE_VAT),
                leaf("ram:CategoryCode", TAX_CATEGORY_STANDARD),
                leaf("ram:RateApplicablePercent", format_number(invoice.tax_rate)),
            ),
            block(
                "ram:SpecifiedTradeSettlementLineMonetarySummation",
                leaf("ram:LineTotalAmount", format_amount(item.line_total())),
            ),
        ),
    )


def _render_settlement(invoice: Invoice, today: date) -> str:
    net = format_amount(invoice.subtotal)
    tax = format_amount(invoice.tax_amount)
    gross = format_amount(invoice.total)
    return block(
        "ram:ApplicableHeaderTradeSettlement",
        leaf("ram:InvoiceCurrencyCode", invoice.currency),
        block(
            "ram:ApplicableTradeTax",
            leaf("ram:CalculatedAmount", tax),
            leaf("ram:TypeCode", TAX_TYPE_VAT),
            leaf("ram:BasisAmount", net),
            leaf("ram:CategoryCode", TAX_CATEGORY_STANDARD),
            leaf("ram:RateApplicablePercent", format_number(invoice.tax_rate)),
        ),
        block(
            "ram:SpecifiedTradePaymentTerms",
            _date_time("ram:DueDateDateTime", format_cii_date(invoice.due_date, today)),
        ),
        block(
            "ram:SpecifiedTradeSettlementHeaderMonetarySummation",
            leaf("ram:LineTotalAmount", net),
            leaf("ram:TaxBasisTotalAmount", net),
            leaf("ram:TaxTotalAmount", tax, currencyID=invoice.currency),
            leaf("ram:GrandTotalAmount", gross),
            leaf("ram:DuePayableAmount", gross),
        ),
    )


def build_zugferd_xml(
    invoice: Invoice,
    config: CompanyConfig,
    now: datetime,
    options: Optional[Mapping[str, Any]] = None,
) -> str:
    """Rendert das CII-Dokument.

    Fehlende Rechnungs- oder Fälligkeitsdaten werden mit dem Datum aus
    ``now`` belegt. ``options`` wird aktuell nicht ausgewertet.
    """

    today = now.date()
    issue_date = format_cii_date(invoice.issue_date, today)
    customer = resolve_customer(invoice)
    lines = [
        _render_trade_line(index, item, invoice)
        for index, item in enumerate(invoice.billable_items(), start=1)
    ]

    return document(
        "rsm:CrossIndustryInvoice",
        CII_NAMESPACES,
        block(
            "rsm:ExchangedDocumentContext",
            block(
                "ram:GuidelineSpecifiedDocumentContextParameter",
                leaf("ram:ID", ZUGFERD_GUIDELINE_ID),
            ),
        ),
        block(
            "rsm:ExchangedDocument",
            leaf("ram:ID", invoice.document_number),
            leaf("ram:TypeCode", DOCUMENT_TYPE_CODE),
            _date_time("ram:IssueDateTime", issue_date),
            block("ram:IncludedNote", leaf("ram:Content", invoice.notes)) if invoice.notes else None,
        ),
        block(
            "rsm:SupplyChainTradeTransaction",
            *lines,
            block(
                "ram:ApplicableHeaderTradeAgreement",
                _render_seller(config.company),
                _render_buyer(customer),
            ),
            block(
                "ram:ApplicableHeaderTradeDelivery",
                block(
                    "ram:ActualDeliverySupplyChainEvent",
                    _date_time("ram:OccurrenceDateTime", issue_date),
                ),
            ),
            _render_settlement(invoice, today),
        ),
    )


def build_zugferd_document(
    invoice: Invoice,
    config: CompanyConfig,
    now: datetime,
    options: Optional[Mapping[str, Any]] = None,
) -> GenerationResult:
    return GenerationResult(
        format=ZUGFERD_FORMAT,
        version=ZUGFERD_VERSION,
        xml=build_zugferd_xml(invoice, config, now, options),
        file_name=f"ZUGFeRD_{invoice.document_number}.xml",
    )
