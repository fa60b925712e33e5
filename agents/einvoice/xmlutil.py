"""Gemeinsame Helfer für die XML-Ausgabe beider Formate."""

from __future__ import annotations

import re
import textwrap
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional
from xml.sax.saxutils import escape as _sax_escape

from .dto import quantize_money

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
INDENT = "  "

# saxutils.escape ersetzt zuerst "&", danach "<"/">" und zuletzt diese Einträge.
_EXTRA_ENTITIES = {'"': "&quot;", "'": "&apos;"}

# In XML 1.0 nicht erlaubte Zeichen.
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
# Zeilenumbrüche als Zeichenreferenz, damit die Einrückung den Text nicht verändert.
_LINE_BREAKS = re.compile("[\r\n]")


def escape_xml(value: Any) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return _sax_escape(text, _EXTRA_ENTITIES)


def format_amount(value: Decimal) -> str:
    """Geldbetrag mit genau zwei Nachkommastellen, Punkt, ohne Tausendertrennung."""

    amount = quantize_money(value)
    if amount.is_zero():
        amount = abs(amount)
    return f"{amount:.2f}"


def format_number(value: Decimal) -> str:
    """Mengen und Prozentsätze ohne überflüssige Nullen (``2``, ``1.5``, ``19``)."""

    normalized = value.normalize()
    if normalized.is_zero():
        return "0"
    return format(normalized, "f")


def format_cii_date(iso_date: Optional[str], today: date) -> str:
    """``YYYY-MM-DD`` → ``YYYYMMDD`` (CII Format 102); fehlend → ``today``."""

    return (iso_date or today.isoformat()).replace("-", "")


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def leaf(tag: str, value: Any, **attributes: Any) -> str:
    """Element mit Textinhalt; Text und Attributwerte werden immer escaped."""

    attrs = "".join(f' {name}="{_node_text(attr)}"' for name, attr in attributes.items())
    return f"<{tag}{attrs}>{_node_text(value)}</{tag}>"


def _node_text(value: Any) -> str:
    text = _ILLEGAL_XML_CHARS.sub("", escape_xml(value))
    return _LINE_BREAKS.sub(lambda match: f"&#{ord(match.group())};", text)


def block(tag: str, *children: Optional[str]) -> str:
    """Container-Element; leere Kinder (``None``/``""``) werden ausgelassen."""

    body = "\n".join(child for child in children if child)
    return f"<{tag}>\n{textwrap.indent(body, INDENT)}\n</{tag}>"


def document(root_tag: str, namespaces: Mapping[str, str], *children: Optional[str]) -> str:
    declarations = "".join(
        f'\n{INDENT}xmlns:{prefix}="{escape_xml(uri)}"' for prefix, uri in namespaces.items()
    )
    body = "\n".join(child for child in children if child)
    return (
        f"{XML_DECLARATION}\n"
        f"<{root_tag}{declarations}>\n"
        f"{textwrap.indent(body, INDENT)}\n"
        f"</{root_tag}>\n"
    )
