"""Auflösung von Käufer- und Verkäuferdaten für beide XML-Formate.

Eine Rechnung trägt den Käufer entweder als ``businessPartner`` (neue
Struktur mit Adresse und Rolle) oder als alten ``customer`` ohne Adresse.
``resolve_customer`` bringt beide Varianten in die gemeinsame Form
``CustomerData``; fehlende Angaben werden nie als Fehler behandelt, sondern
mit leeren Strings bzw. Platzhaltern belegt.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .dto import CompanyInfo, Invoice

DEFAULT_COUNTRY = "Deutschland"
DEFAULT_COUNTRY_CODE = "DE"
DEFAULT_ROLE = "CUSTOMER"
UNKNOWN_CUSTOMER_NAME = "Unbekannter Kunde"

UNKNOWN_PARTNER_NAME = "Unbekannt"
UNKNOWN_ROLE = "UNKNOWN"

# Platzhalteradresse für Kunden der alten Struktur und für leere Adressfelder.
CUSTOMER_PLACEHOLDER_STREET = "Kundenstraße 1"
CUSTOMER_PLACEHOLDER_CITY = "Kundenstadt"
CUSTOMER_PLACEHOLDER_POSTAL_CODE = "54321"

# Nur die Straße kommt aus der Firmenkonfiguration, der Rest ist fest.
SUPPLIER_CITY = "Musterstadt"
SUPPLIER_POSTAL_CODE = "12345"
SUPPLIER_COUNTRY_CODE = "DE"

COUNTRY_CODES: Mapping[str, str] = MappingProxyType(
    {
        "Deutschland": "DE",
        "Germany": "DE",
        "Österreich": "AT",
        "Austria": "AT",
        "Schweiz": "CH",
        "Switzerland": "CH",
        "Frankreich": "FR",
        "France": "FR",
        "Niederlande": "NL",
        "Netherlands": "NL",
    }
)


def country_code(country: str | None) -> str:
    """Ländername → ISO-3166-Code; Unbekanntes ergibt ``DE``."""

    if not country:
        return DEFAULT_COUNTRY_CODE
    return COUNTRY_CODES.get(country.strip(), DEFAULT_COUNTRY_CODE)


@dataclass(frozen=True, slots=True)
class CustomerData:
    name: str
    email: str = ""
    tax_id: str = ""
    street: str = ""
    house_number: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY
    country_code: str = DEFAULT_COUNTRY_CODE
    selected_role: str = DEFAULT_ROLE


@dataclass(frozen=True, slots=True)
class PostalAddress:
    street: str
    city: str
    postal_code: str
    country_code: str
    house_number: str = ""

    def street_line(self) -> str:
        return f"{self.street} {self.house_number}".strip()


def resolve_customer(invoice: Invoice) -> CustomerData:
    partner = invoice.business_partner
    if partner is not None:
        address = partner.address
        country = address.country or DEFAULT_COUNTRY
        return CustomerData(
            name=partner.name or UNKNOWN_CUSTOMER_NAME,
            email=partner.email or address.email,
            tax_id=partner.tax_id or address.tax_id,
            street=address.street,
            house_number=address.house_number,
            city=address.city,
            postal_code=address.postal_code,
            country=country,
            country_code=country_code(country),
            selected_role=partner.selected_role or DEFAULT_ROLE,
        )

    customer = invoice.customer
    if customer is not None:
        return CustomerData(
            name=customer.name or UNKNOWN_CUSTOMER_NAME,
            email=customer.email,
            tax_id=customer.tax_id,
            street=CUSTOMER_PLACEHOLDER_STREET,
            city=CUSTOMER_PLACEHOLDER_CITY,
            postal_code=CUSTOMER_PLACEHOLDER_POSTAL_CODE,
        )

    return CustomerData(name=UNKNOWN_CUSTOMER_NAME)


def buyer_address(customer: CustomerData) -> PostalAddress:
    """Postanschrift des Käufers; leere Felder erhalten die Kundenplatzhalter."""

    return PostalAddress(
        street=customer.street or CUSTOMER_PLACEHOLDER_STREET,
        house_number=customer.house_number,
        city=customer.city or CUSTOMER_PLACEHOLDER_CITY,
        postal_code=customer.postal_code or CUSTOMER_PLACEHOLDER_POSTAL_CODE,
        country_code=customer.country_code,
    )


def supplier_address(company: CompanyInfo) -> PostalAddress:
    return PostalAddress(
        street=company.address,
        city=SUPPLIER_CITY,
        postal_code=SUPPLIER_POSTAL_CODE,
        country_code=SUPPLIER_COUNTRY_CODE,
    )


@dataclass(frozen=True, slots=True)
class BusinessPartnerInfo:
    type: str
    name: str
    role: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def business_partner_info(invoice: Invoice) -> BusinessPartnerInfo:
    partner = invoice.business_partner
    if partner is not None:
        return BusinessPartnerInfo(
            type="BusinessPartner",
            name=partner.name,
            role=partner.selected_role or DEFAULT_ROLE,
            email=partner.email,
        )

    customer = invoice.customer
    if customer is not None:
        return BusinessPartnerInfo(
            type="Customer",
            name=customer.name,
            role=DEFAULT_ROLE,
            email=customer.email,
        )

    return BusinessPartnerInfo(
        type="Unknown",
        name=UNKNOWN_PARTNER_NAME,
        role=UNKNOWN_ROLE,
        email="",
    )
