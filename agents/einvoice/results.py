"""Ergebnisobjekte der Formatgenerierung.

Die Objekte werden bei jedem Aufruf neu erzeugt und nicht zwischengespeichert.
``to_dict`` liefert die camelCase-Struktur, die die API zurückgibt.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .partners import BusinessPartnerInfo
from .xmlutil import format_timestamp

MIME_TYPE_XML = "application/xml"
STANDARD_EN16931 = "EN16931"


@dataclass(frozen=True, slots=True)
class GenerationResult:
    format: str
    version: str
    xml: str
    file_name: str
    standard: str = STANDARD_EN16931
    mime_type: str = MIME_TYPE_XML

    @property
    def size(self) -> int:
        """Länge des XML in Bytes (UTF-8)."""

        return len(self.xml.encode("utf-8"))

    def to_dict(self, *, include_xml: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "format": self.format,
            "version": self.version,
            "standard": self.standard,
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "size": self.size,
        }
        if include_xml:
            data["xml"] = self.xml
        return data


@dataclass(frozen=True, slots=True)
class GenerationMetadata:
    generated_at: datetime
    requested_format: str
    business_partner: BusinessPartnerInfo

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": format_timestamp(self.generated_at),
            "requestedFormat": self.requested_format,
            "businessPartner": self.business_partner.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class FormatsResult:
    invoice_id: str
    metadata: GenerationMetadata
    formats: Dict[str, GenerationResult] = field(default_factory=dict)

    @property
    def xrechnung(self) -> Optional[GenerationResult]:
        return self.formats.get("xrechnung")

    @property
    def zugferd(self) -> Optional[GenerationResult]:
        return self.formats.get("zugferd")

    def to_dict(self, *, include_xml: bool = True) -> Dict[str, Any]:
        return {
            "invoiceId": self.invoice_id,
            "formats": {
                key: result.to_dict(include_xml=include_xml)
                for key, result in self.formats.items()
            },
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    messages: List[str]

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)
