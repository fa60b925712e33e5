"""Einstiegspunkt der Formatgenerierung.

``generate_formats`` wählt anhand des (groß-/kleinschreibungsunabhängigen)
Formatwunsches die Generatoren aus und liefert immer ein ``FormatsResult``.
Die Funktion ist rein: keine I/O, kein Logging, kein geteilter Zustand. Die
einzige Zeitabhängigkeit ist ``clock`` (Zeitstempel der Metadaten und
Ersatzdatum für fehlende Rechnungsdaten).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from .dto import CompanyConfig, Invoice
from .errors import UnknownFormatError
from .partners import business_partner_info
from .results import FormatsResult, GenerationMetadata, GenerationResult
from .xrechnung import build_xrechnung_document
from .zugferd import build_zugferd_document

Clock = Callable[[], datetime]


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


class OutputFormat(Enum):
    XRECHNUNG = "XRECHNUNG"
    ZUGFERD = "ZUGFERD"
    BOTH = "BOTH"

    @classmethod
    def parse(cls, value: Any) -> "OutputFormat":
        if isinstance(value, cls):
            return value
        key = value.strip().upper() if isinstance(value, str) else None
        try:
            return cls(key)
        except ValueError:
            raise UnknownFormatError(value) from None

    @property
    def includes_xrechnung(self) -> bool:
        return self in (OutputFormat.XRECHNUNG, OutputFormat.BOTH)

    @property
    def includes_zugferd(self) -> bool:
        return self in (OutputFormat.ZUGFERD, OutputFormat.BOTH)


def generate_formats(
    invoice: Invoice | Mapping[str, Any],
    config: CompanyConfig | Mapping[str, Any] | None = None,
    requested_format: Any = "XRechnung",
    options: Optional[Mapping[str, Any]] = None,
    *,
    clock: Optional[Clock] = None,
) -> FormatsResult:
    """Erzeugt XRechnung, ZUGFeRD oder beides für eine Rechnung.

    Raises:
        UnknownFormatError: ``requested_format`` ist nicht XRechnung,
            ZUGFeRD oder Both.
    """

    selector = OutputFormat.parse(requested_format)
    parsed_invoice = Invoice.coerce(invoice)
    parsed_config = CompanyConfig.coerce(config)
    now = (clock or _default_clock)()

    label = requested_format.value if isinstance(requested_format, OutputFormat) else str(requested_format)

    formats: Dict[str, GenerationResult] = {}
    if selector.includes_xrechnung:
        formats["xrechnung"] = build_xrechnung_document(parsed_invoice, parsed_config, now, options)
    if selector.includes_zugferd:
        formats["zugferd"] = build_zugferd_document(parsed_invoice, parsed_config, now, options)

    return FormatsResult(
        invoice_id=parsed_invoice.id,
        formats=formats,
        metadata=GenerationMetadata(
            generated_at=now,
            requested_format=label,
            business_partner=business_partner_info(parsed_invoice),
        ),
    )
