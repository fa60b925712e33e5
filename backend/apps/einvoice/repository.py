from __future__ import annotations

from typing import Any, Dict, Mapping

from backend.core.config import settings
from backend.core.kv import KeyValueStore


class InvoiceNotFoundError(LookupError):
    def __init__(self, invoice_id: Any) -> None:
        super().__init__(f"Invoice not found: {invoice_id}")
        self.invoice_id = invoice_id


def list_invoices(store: KeyValueStore) -> list[Dict[str, Any]]:
    raw = store.get(settings.INVOICES_KEY)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, Mapping)]


def find_invoice(store: KeyValueStore, invoice_id: Any) -> Dict[str, Any]:
    """Scan the stored invoice list for ``id == invoice_id``."""
    for invoice in list_invoices(store):
        if invoice.get("id") == invoice_id:
            return dict(invoice)
    raise InvoiceNotFoundError(invoice_id)


def load_company_config(store: KeyValueStore) -> Dict[str, Any]:
    """Company configuration; a missing or malformed entry yields ``{}``."""
    raw = store.get(settings.CONFIG_KEY)
    return dict(raw) if isinstance(raw, Mapping) else {}


def save_invoices(store: KeyValueStore, invoices: list[Dict[str, Any]]) -> None:
    store.set(settings.INVOICES_KEY, list(invoices))


def save_company_config(store: KeyValueStore, config: Mapping[str, Any]) -> None:
    store.set(settings.CONFIG_KEY, dict(config))
