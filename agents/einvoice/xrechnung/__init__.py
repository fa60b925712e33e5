"""XRechnung 3.0 (UBL) Generator und Selbsttest."""

from .generator import (
    UBL_NAMESPACES,
    XRECHNUNG_CUSTOMIZATION_ID,
    XRECHNUNG_FORMAT,
    XRECHNUNG_PROFILE_ID,
    build_xrechnung_document,
    build_xrechnung_xml,
    version,
)
from .validator import validate_xrechnung

__all__ = [
    "UBL_NAMESPACES",
    "XRECHNUNG_CUSTOMIZATION_ID",
    "XRECHNUNG_FORMAT",
    "XRECHNUNG_PROFILE_ID",
    "build_xrechnung_document",
    "build_xrechnung_xml",
    "version",
    "validate_xrechnung",
]
