"""Struktureller Selbsttest für erzeugte XRechnung-Dokumente.

Kein Ersatz für die KoSIT-Validierung: geprüft wird nur, was der Generator
zusichert (Wohlgeformtheit, Kennungen, Positionen, Betragsformat).
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import List
from xml.etree import ElementTree as ET

from agents.einvoice.results import ValidationResult

from .generator import GENERATOR_VERSION, UBL_NAMESPACES, XRECHNUNG_CUSTOMIZATION_ID

_AMOUNT_RE = re.compile(r"^-?\d+\.\d{2}$")
_ROOT_TAG = f"{{{UBL_NAMESPACES['ubl']}}}Invoice"


def _as_bytes(xml: str | bytes) -> bytes:
    return xml.encode("utf-8") if isinstance(xml, str) else xml


def validate_xrechnung(xml: str | bytes) -> ValidationResult:
    messages: List[str] = []

    try:
        root = ET.fromstring(_as_bytes(xml))
    except ET.ParseError as err:
        messages.append(f"SELF_CHECK: XML parse error – {err}")
        return ValidationResult(False, messages)

    if root.tag != _ROOT_TAG:
        messages.append("SELF_CHECK: Root element must be ubl:Invoice")
        return ValidationResult(False, messages)

    ok = True
    ns = UBL_NAMESPACES

    if root.findtext("cbc:CustomizationID", namespaces=ns) != XRECHNUNG_CUSTOMIZATION_ID:
        messages.append("SELF_CHECK: CustomizationID mismatch")
        ok = False

    if root.findtext("cbc:InvoiceTypeCode", namespaces=ns) != "380":
        messages.append("SELF_CHECK: InvoiceTypeCode must be 380")
        ok = False

    lines = root.findall("cac:InvoiceLine", namespaces=ns)
    if not lines:
        messages.append("SELF_CHECK: at least one InvoiceLine required")
        ok = False
    line_ids = [line.findtext("cbc:ID", namespaces=ns) for line in lines]
    if line_ids != [str(index) for index in range(1, len(lines) + 1)]:
        messages.append("SELF_CHECK: InvoiceLine IDs must be sequential from 1")
        ok = False

    for element in root.iter():
        if "currencyID" in element.attrib and not _AMOUNT_RE.match(element.text or ""):
            messages.append(f"SELF_CHECK: amount not formatted with two decimals: {element.tag}")
            ok = False

    legal_total = root.find("cac:LegalMonetaryTotal", namespaces=ns)
    tax_amount = root.findtext("cac:TaxTotal/cbc:TaxAmount", namespaces=ns)
    if legal_total is None or tax_amount is None:
        messages.append("SELF_CHECK: LegalMonetaryTotal or TaxTotal missing")
        ok = False
    elif ok:
        exclusive = Decimal(legal_total.findtext("cbc:TaxExclusiveAmount", "0", namespaces=ns))
        inclusive = Decimal(legal_total.findtext("cbc:TaxInclusiveAmount", "0", namespaces=ns))
        # Summen stammen aus der Rechnung selbst; Abweichungen nur melden.
        if inclusive - exclusive != Decimal(tax_amount):
            messages.append("SELF_CHECK: note – TaxInclusive minus TaxExclusive differs from TaxAmount")

    if ok:
        messages.append(f"SELF_CHECK: XRechnung structure OK ({GENERATOR_VERSION})")
    return ValidationResult(ok, messages)
