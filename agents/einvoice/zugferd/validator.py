"""Struktureller Selbsttest für erzeugte ZUGFeRD-XML (CII)."""

from __future__ import annotations

import re
from typing import List
from xml.etree import ElementTree as ET

from agents.einvoice.results import ValidationResult

from .generator import CII_NAMESPACES, GENERATOR_VERSION, ZUGFERD_GUIDELINE_ID

_AMOUNT_RE = re.compile(r"^-?\d+\.\d{2}$")
_DATE_102_RE = re.compile(r"^\d{8}$")
_RAM = CII_NAMESPACES["ram"]
_ROOT_TAG = f"{{{CII_NAMESPACES['rsm']}}}CrossIndustryInvoice"
_AMOUNT_TAGS = {
    f"{{{_RAM}}}{name}"
    for name in (
        "ChargeAmount",
        "LineTotalAmount",
        "CalculatedAmount",
        "BasisAmount",
        "TaxBasisTotalAmount",
        "TaxTotalAmount",
        "GrandTotalAmount",
        "DuePayableAmount",
    )
}


def _as_bytes(xml: str | bytes) -> bytes:
    return xml.encode("utf-8") if isinstance(xml, str) else xml


def validate_zugferd(xml: str | bytes) -> ValidationResult:
    messages: List[str] = []

    try:
        root = ET.fromstring(_as_bytes(xml))
    except ET.ParseError as err:
        messages.append(f"SELF_CHECK: XML parse error – {err}")
        return ValidationResult(False, messages)

    if root.tag != _ROOT_TAG:
        messages.append("SELF_CHECK: Root element must be rsm:CrossIndustryInvoice")
        return ValidationResult(False, messages)

    ok = True
    ns = CII_NAMESPACES

    guideline = root.findtext(
        "rsm:ExchangedDocumentContext/ram:GuidelineSpecifiedDocumentContextParameter/ram:ID",
        namespaces=ns,
    )
    if guideline != ZUGFERD_GUIDELINE_ID:
        messages.append("SELF_CHECK: Guideline ID mismatch")
        ok = False

    if root.findtext("rsm:ExchangedDocument/ram:TypeCode", namespaces=ns) != "380":
        messages.append("SELF_CHECK: TypeCode must be 380")
        ok = False

    lines = root.findall(
        "rsm:SupplyChainTradeTransaction/ram:IncludedSupplyChainTradeLineItem", namespaces=ns
    )
    if not lines:
        messages.append("SELF_CHECK: at least one IncludedSupplyChainTradeLineItem required")
        ok = False
    line_ids = [
        line.findtext("ram:AssociatedDocumentLineDocument/ram:LineID", namespaces=ns)
        for line in lines
    ]
    if line_ids != [str(index) for index in range(1, len(lines) + 1)]:
        messages.append("SELF_CHECK: LineIDs must be sequential from 1")
        ok = False

    for element in root.iter():
        if element.tag in _AMOUNT_TAGS and not _AMOUNT_RE.match(element.text or ""):
            messages.append(f"SELF_CHECK: amount not formatted with two decimals: {element.tag}")
            ok = False
        if element.tag == f"{{{ns['udt']}}}DateTimeString" and not _DATE_102_RE.match(
            element.text or ""
        ):
            messages.append("SELF_CHECK: DateTimeString must use format 102 (YYYYMMDD)")
            ok = False

    summation = root.find(
        "rsm:SupplyChainTradeTransaction/ram:ApplicableHeaderTradeSettlement/"
        "ram:SpecifiedTradeSettlementHeaderMonetarySummation",
        namespaces=ns,
    )
    if summation is None:
        messages.append("SELF_CHECK: header monetary summation missing")
        ok = False

    if ok:
        messages.append(f"SELF_CHECK: ZUGFeRD structure OK ({GENERATOR_VERSION})")
    return ValidationResult(ok, messages)
