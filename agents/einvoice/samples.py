"""Deterministische Beispielrechnungen für Tests & CLI.

Die Beispiele liegen bewusst als rohe JSON-Strukturen vor (so wie sie im
Key-Value-Store gespeichert sind), damit die Default-Auflösung aus
``dto`` mitgetestet wird.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

SAMPLE_COMPANY_CONFIG: Dict[str, Any] = {
    "company": {
        "name": "Beispiel Software GmbH",
        "address": "Industriestraße 12",
        "taxId": "DE987654321",
        "email": "rechnung@beispiel-software.de",
    }
}

ACME_PARTNER: Dict[str, Any] = {
    "name": "Acme GmbH",
    "email": "buy@acme.de",
    "address": {
        "street": "Hauptstr.",
        "houseNumber": "5",
        "city": "Berlin",
        "postalCode": "10115",
        "country": "Deutschland",
    },
}

ACME_INVOICE: Dict[str, Any] = {
    "id": "inv-001",
    "invoiceNumber": "INV-2025-000123",
    "date": "2025-01-15",
    "dueDate": "2025-02-14",
    "items": [{"description": "Beratung", "quantity": 2, "price": 500}],
    "subtotal": 1000,
    "taxRate": 19,
    "taxAmount": 190,
    "total": 1190,
    "currency": "EUR",
    "businessPartner": ACME_PARTNER,
}


@dataclass(frozen=True)
class SampleScenario:
    code: str
    description: str
    invoice: Dict[str, Any]

    def build(self) -> Dict[str, Any]:
        """Liefert eine unabhängige Kopie der Rechnungsdaten."""

        return copy.deepcopy(self.invoice)


SCENARIOS: List[SampleScenario] = [
    SampleScenario("01", "business_partner", ACME_INVOICE),
    SampleScenario(
        "02",
        "legacy_customer",
        {
            "id": "inv-002",
            "invoiceNumber": "INV-2025-000124",
            "date": "2025-03-01T09:30:00.000Z",
            "dueDate": "2025-03-31",
            "items": [
                {"description": "Wartungsvertrag", "quantity": 1, "price": 240},
                {"name": "Anfahrt", "quantity": "2", "price": "35.50"},
            ],
            "subtotal": 311,
            "taxRate": 19,
            "taxAmount": 59.09,
            "total": 370.09,
            "customer": {"name": "Altkunde KG", "email": "buchhaltung@altkunde.de"},
        },
    ),
    SampleScenario(
        "03",
        "empty_items",
        {
            "id": "inv-003",
            "invoiceNumber": "INV-2025-000125",
            "date": "2025-04-10",
            "items": [],
            "businessPartner": ACME_PARTNER,
        },
    ),
    SampleScenario(
        "04",
        "unknown_buyer",
        {
            "id": "inv-004",
            "date": "2025-05-05",
            "items": [{"description": "Schulung", "quantity": 1, "price": 800}],
            "subtotal": 800,
            "taxRate": 7,
            "taxAmount": 56,
            "total": 856,
        },
    ),
    SampleScenario(
        "05",
        "special_characters",
        {
            "id": "inv-005",
            "invoiceNumber": "INV-2025-000127",
            "date": "2025-06-20",
            "dueDate": "2025-07-20",
            "items": [
                {"description": "Müller & Co. <Special>", "quantity": 1.5, "price": 99.99},
            ],
            "subtotal": 149.99,
            "taxRate": 19,
            "taxAmount": 28.50,
            "total": 178.49,
            "notes": 'Zahlbar "sofort" & ohne Abzug',
            "businessPartner": {
                "name": "O'Reilly & Söhne",
                "selectedRole": "SUPPLIER",
                "address": {"street": "Gasse 3", "city": "Wien", "postalCode": "1010", "country": "Österreich"},
            },
        },
    ),
]


def iter_sample_scenarios() -> Iterable[SampleScenario]:
    return list(SCENARIOS)


def sample_scenario(code: str) -> SampleScenario:
    for scenario in SCENARIOS:
        if scenario.code == code:
            return scenario
    raise KeyError(code)


def build_sample_invoice(code: str = "01") -> Dict[str, Any]:
    return sample_scenario(code).build()


def build_sample_config() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_COMPANY_CONFIG)
