"""Datenmodell für die Formatgenerierung (XRechnung / ZUGFeRD).

Rechnungen und Firmenkonfiguration liegen im Key-Value-Store als lose
JSON-Strukturen vor. ``Invoice.from_dict`` und ``CompanyConfig.from_dict``
lösen fehlende oder ungültige Felder genau einmal in dokumentierte Defaults
auf; die Generatoren arbeiten danach nur noch mit vollständigen Werten.

Beträge werden als ``Decimal`` geführt und mit ``ROUND_HALF_UP`` auf zwei
Nachkommastellen quantisiert. Identische Eingaben liefern identische
Ergebnisse.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable, Mapping, Optional


DecimalLike = Decimal | str | int | float

DEFAULT_CURRENCY = "EUR"
DEFAULT_TAX_RATE = Decimal("19")
DEFAULT_QUANTITY = Decimal("1")
DEFAULT_PRICE = Decimal("0")
DEFAULT_AMOUNT = Decimal("0")
DEFAULT_ITEM_LABEL = "Leistung"
PLACEHOLDER_ITEM_LABEL = "Keine Positionen"

DEFAULT_COMPANY_NAME = "Muster Unternehmen GmbH"
DEFAULT_COMPANY_ADDRESS = "Musterstraße 1"
DEFAULT_COMPANY_TAX_ID = "DE123456789"
DEFAULT_COMPANY_EMAIL = "info@example.com"

_ISO_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})")

# Größere Zehnerpotenzen gelten nicht als Betrag oder Menge.
MAX_DECIMAL_EXPONENT = 1000


def _to_decimal(value: DecimalLike) -> Decimal:
    """Konvertiere Eingaben deterministisch in ``Decimal``.

    Floats werden zunächst in Strings umgewandelt, um binäre Rundungsfehler zu
    vermeiden.
    """

    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str, float)):
        return Decimal(str(value))
    raise TypeError(f"Unsupported decimal input: {type(value)!r}")


def _exact_context():
    """Decimal-Kontext ohne Stellenbegrenzung; Rechnungsbeträge werden nie vorab gerundet."""

    return localcontext(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)


def quantize_money(amount: DecimalLike) -> Decimal:
    """Rundet Beträge auf zwei Nachkommastellen (ROUND_HALF_UP)."""

    with _exact_context():
        return _to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def coerce_decimal(value: Any, default: Decimal) -> Decimal:
    """Liest eine Zahl aus JSON-Daten; alles Nicht-Numerische ergibt ``default``.

    Numerische Strings (``"2"``, ``"19.5"``) werden akzeptiert. Eine explizite
    ``0`` bleibt ``0``.
    """

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    if not isinstance(value, (Decimal, int, float, str)):
        return default
    try:
        result = _to_decimal(value)
    except InvalidOperation:
        return default
    if not result.is_finite() or result.adjusted() > MAX_DECIMAL_EXPONENT:
        return default
    return result


def coerce_text(value: Any) -> str:
    """Liest einen Textwert; ``None`` und Strukturen ergeben ``""``."""

    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return ""


def coerce_iso_date(value: Any) -> Optional[str]:
    """Reduziert ``YYYY-MM-DD[...]`` auf den Datumsteil, sonst ``None``."""

    if isinstance(value, date):
        return value.isoformat()[:10]
    match = _ISO_DATE_RE.match(coerce_text(value).strip())
    return match.group(1) if match else None


def _mapping(value: Any) -> Optional[Mapping[str, Any]]:
    return value if isinstance(value, Mapping) else None


@dataclass(frozen=True, slots=True)
class LineItem:
    description: str
    quantity: Decimal = DEFAULT_QUANTITY
    price: Decimal = DEFAULT_PRICE

    def line_total(self) -> Decimal:
        with _exact_context():
            return quantize_money(self.quantity * self.price)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        label = coerce_text(data.get("description")) or coerce_text(data.get("name"))
        return cls(
            description=label or DEFAULT_ITEM_LABEL,
            quantity=coerce_decimal(data.get("quantity"), DEFAULT_QUANTITY),
            price=coerce_decimal(data.get("price"), DEFAULT_PRICE),
        )


PLACEHOLDER_ITEM = LineItem(description=PLACEHOLDER_ITEM_LABEL)


@dataclass(frozen=True, slots=True)
class PartnerAddress:
    street: str = ""
    house_number: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""
    email: str = ""
    tax_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PartnerAddress":
        return cls(
            street=coerce_text(data.get("street")),
            house_number=coerce_text(data.get("houseNumber")),
            city=coerce_text(data.get("city")),
            postal_code=coerce_text(data.get("postalCode")),
            country=coerce_text(data.get("country")),
            email=coerce_text(data.get("email")),
            tax_id=coerce_text(data.get("taxId")),
        )


@dataclass(frozen=True, slots=True)
class BusinessPartner:
    name: str = ""
    email: str = ""
    tax_id: str = ""
    selected_role: str = ""
    address: PartnerAddress = field(default_factory=PartnerAddress)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BusinessPartner":
        address = _mapping(data.get("address"))
        return cls(
            name=coerce_text(data.get("name")),
            email=coerce_text(data.get("email")),
            tax_id=coerce_text(data.get("taxId")),
            selected_role=coerce_text(data.get("selectedRole")),
            address=PartnerAddress.from_dict(address) if address else PartnerAddress(),
        )


@dataclass(frozen=True, slots=True)
class LegacyCustomer:
    """Alte Kundenstruktur ohne Adresse (vor Einführung der Business Partner)."""

    name: str = ""
    email: str = ""
    tax_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LegacyCustomer":
        return cls(
            name=coerce_text(data.get("name")),
            email=coerce_text(data.get("email")),
            tax_id=coerce_text(data.get("taxId")),
        )


@dataclass(frozen=True, slots=True)
class Invoice:
    id: str
    invoice_number: str = ""
    issue_date: Optional[str] = None
    due_date: Optional[str] = None
    subtotal: Decimal = DEFAULT_AMOUNT
    tax_amount: Decimal = DEFAULT_AMOUNT
    total: Decimal = DEFAULT_AMOUNT
    tax_rate: Decimal = DEFAULT_TAX_RATE
    currency: str = DEFAULT_CURRENCY
    items: tuple[LineItem, ...] = ()
    business_partner: Optional[BusinessPartner] = None
    customer: Optional[LegacyCustomer] = None
    notes: str = ""

    @property
    def document_number(self) -> str:
        """Rechnungsnummer, ersatzweise die interne ID."""

        return self.invoice_number or self.id

    def billable_items(self) -> tuple[LineItem, ...]:
        """Positionen für die XML-Ausgabe; nie leer."""

        return self.items or (PLACEHOLDER_ITEM,)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Invoice":
        raw_items = data.get("items")
        items: Iterable[Any] = raw_items if isinstance(raw_items, list) else ()
        partner = _mapping(data.get("businessPartner"))
        customer = _mapping(data.get("customer"))
        return cls(
            id=coerce_text(data.get("id")),
            invoice_number=coerce_text(data.get("invoiceNumber")),
            issue_date=coerce_iso_date(data.get("date")),
            due_date=coerce_iso_date(data.get("dueDate")),
            subtotal=coerce_decimal(data.get("subtotal"), DEFAULT_AMOUNT),
            tax_amount=coerce_decimal(data.get("taxAmount"), DEFAULT_AMOUNT),
            total=coerce_decimal(data.get("total"), DEFAULT_AMOUNT),
            tax_rate=coerce_decimal(data.get("taxRate"), DEFAULT_TAX_RATE),
            currency=coerce_text(data.get("currency")).strip() or DEFAULT_CURRENCY,
            items=tuple(LineItem.from_dict(item) for item in items if isinstance(item, Mapping)),
            business_partner=BusinessPartner.from_dict(partner) if partner is not None else None,
            customer=LegacyCustomer.from_dict(customer) if customer is not None else None,
            notes=coerce_text(data.get("notes")),
        )

    @classmethod
    def coerce(cls, value: "Invoice | Mapping[str, Any]") -> "Invoice":
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"Unsupported invoice input: {type(value)!r}")


@dataclass(frozen=True, slots=True)
class CompanyInfo:
    name: str = DEFAULT_COMPANY_NAME
    address: str = DEFAULT_COMPANY_ADDRESS
    tax_id: str = DEFAULT_COMPANY_TAX_ID
    email: str = DEFAULT_COMPANY_EMAIL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompanyInfo":
        return cls(
            name=coerce_text(data.get("name")) or DEFAULT_COMPANY_NAME,
            address=coerce_text(data.get("address")) or DEFAULT_COMPANY_ADDRESS,
            tax_id=coerce_text(data.get("taxId")) or DEFAULT_COMPANY_TAX_ID,
            email=coerce_text(data.get("email")) or DEFAULT_COMPANY_EMAIL,
        )


@dataclass(frozen=True, slots=True)
class CompanyConfig:
    company: CompanyInfo = field(default_factory=CompanyInfo)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CompanyConfig":
        company = _mapping(data.get("company"))
        return cls(company=CompanyInfo.from_dict(company) if company else CompanyInfo())

    @classmethod
    def coerce(cls, value: "CompanyConfig | Mapping[str, Any] | None") -> "CompanyConfig":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"Unsupported config input: {type(value)!r}")
