"""Fehlerklassen der Formatgenerierung."""

from __future__ import annotations


class EInvoiceError(Exception):
    pass


class UnknownFormatError(EInvoiceError, ValueError):
    """Angefordertes Format ist weder XRechnung, ZUGFeRD noch Both."""

    def __init__(self, requested_format: object) -> None:
        self.requested_format = requested_format
        super().__init__(f"Unbekanntes Format: {requested_format}")
