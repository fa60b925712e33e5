"""E-Rechnung CLI: erzeugt XRechnung/ZUGFeRD-XML aus JSON-Dateien.

Beispiel::

    python -m tools.einvoice.generate --invoice rechnung.json --format Both \
        --output-dir out/ --now 2025-01-15T10:00:00+00:00 --check
"""

from __future__ import annotations

import argparse
import json
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from agents.einvoice import (
    FormatsResult,
    UnknownFormatError,
    build_sample_config,
    build_sample_invoice,
    generate_formats,
    validate_xrechnung,
    validate_zugferd,
)
from agents.einvoice.results import ValidationResult
from backend.core.observability.logging import get_logger, init_logging

EXIT_OK = 0
EXIT_CHECK_FAILED = 1
EXIT_USAGE = 2

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")

_VALIDATORS: Dict[str, Callable[[str], ValidationResult]] = {
    "xrechnung": validate_xrechnung,
    "zugferd": validate_zugferd,
}

logger = get_logger(__name__)


def _iso_datetime(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def safe_file_name(name: str) -> str:
    """Dateiname ohne Pfadanteile und Sonderzeichen."""

    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", name)
    return cleaned.lstrip(".") or "invoice.xml"


def run_generation(
    invoice: Any,
    config: Any,
    *,
    format_name: str,
    output_dir: Optional[Path],
    now: datetime,
    check: bool = False,
    dry_run: bool = False,
) -> tuple[FormatsResult, Dict[str, Any]]:
    """Erzeugt die Formate, schreibt sie nach ``output_dir`` und liefert eine Zusammenfassung."""

    result = generate_formats(invoice, config, format_name, clock=lambda: now)
    summary = result.to_dict(include_xml=False)

    for key, document in result.formats.items():
        entry = summary["formats"][key]
        if check:
            entry["validation"] = _VALIDATORS[key](document.xml).to_dict()
        if output_dir is not None and not dry_run:
            output_dir.mkdir(parents=True, exist_ok=True)
            target = output_dir / safe_file_name(document.file_name)
            target.write_text(document.xml, encoding="utf-8")
            entry["path"] = str(target)
            logger.info("format_written", extra={"format": key, "size": document.size})

    return result, summary


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate XRechnung/ZUGFeRD XML for an invoice")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--invoice", type=Path, help="Rechnung als JSON-Datei")
    source.add_argument("--sample", help="Beispielrechnung (Szenario-Code, z. B. 01)")
    parser.add_argument("--config", type=Path, help="Firmenkonfiguration als JSON-Datei")
    parser.add_argument(
        "--format",
        default="XRechnung",
        help="XRechnung, ZUGFeRD oder Both (default: XRechnung)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path.cwd(),
        help="Zielverzeichnis für die XML-Dateien",
    )
    parser.add_argument("--dry-run", action="store_true", help="Nur Simulation, keine Writes")
    parser.add_argument("--check", action="store_true", help="Struktur-Selbsttest ausführen")
    parser.add_argument("--verbose", action="store_true", help="Zusätzliche Logs")
    parser.add_argument(
        "--now",
        help="ISO-8601 Zeitstempel für deterministische Läufe (z. B. 2025-01-01T00:00:00+00:00)",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    init_logging("INFO" if args.verbose else "WARNING", stream=sys.stderr)

    try:
        now = _iso_datetime(args.now) if args.now else datetime.now(timezone.utc)
    except ValueError:
        print(f"Ungültiger Zeitstempel: {args.now}", file=sys.stderr)
        return EXIT_USAGE

    try:
        if args.sample:
            invoice = build_sample_invoice(args.sample)
            config = build_sample_config()
        else:
            invoice = _load_json(args.invoice)
            config = None
        if args.config:
            config = _load_json(args.config)
    except KeyError:
        print(f"Unbekanntes Szenario: {args.sample}", file=sys.stderr)
        return EXIT_USAGE
    except (OSError, ValueError) as exc:
        print(f"Eingabedatei nicht lesbar: {exc}", file=sys.stderr)
        return EXIT_USAGE

    if not isinstance(invoice, dict) or (config is not None and not isinstance(config, dict)):
        print("Rechnung und Konfiguration müssen JSON-Objekte sein", file=sys.stderr)
        return EXIT_USAGE

    try:
        _, summary = run_generation(
            invoice,
            config,
            format_name=args.format,
            output_dir=args.output_dir,
            now=now,
            check=args.check,
            dry_run=args.dry_run,
        )
    except UnknownFormatError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    print(json.dumps(summary, indent=2, ensure_ascii=False))

    if args.check and not all(
        entry["validation"]["ok"] for entry in summary["formats"].values()
    ):
        return EXIT_CHECK_FAILED
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
