"""ZUGFeRD 2.2 (CII) Generator und Selbsttest."""

from .generator import (
    CII_NAMESPACES,
    ZUGFERD_FORMAT,
    ZUGFERD_GUIDELINE_ID,
    build_zugferd_document,
    build_zugferd_xml,
    version,
)
from .validator import validate_zugferd

__all__ = [
    "CII_NAMESPACES",
    "ZUGFERD_FORMAT",
    "ZUGFERD_GUIDELINE_ID",
    "build_zugferd_document",
    "build_zugferd_xml",
    "version",
    "validate_zugferd",
]
