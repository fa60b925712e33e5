import time
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from agents.einvoice import UnknownFormatError, generate_formats
from agents.einvoice.xrechnung import XRECHNUNG_FORMAT
from backend.core.config import settings
from backend.core.kv import KeyValueStore, company_namespace, get_store
from backend.core.observability import bind_request_context
from backend.core.observability.logging import get_logger
from backend.core.observability.metrics import (
    increment_formats_generated,
    increment_generation_failures,
    record_generation_duration,
)
from backend.core.tenant.context import CompanyHeaderError, optional_company

from .repository import InvoiceNotFoundError, find_invoice, load_company_config

router = APIRouter(prefix="/api")
logger = get_logger(__name__)

MSG_INVOICE_ID_REQUIRED = "Rechnungs-ID ist erforderlich"
MSG_INVOICE_NOT_FOUND = "Rechnung nicht gefunden"
MSG_GENERATION_FAILED = "Format-Generierung fehlgeschlagen"
MSG_XRECHNUNG_FAILED = "Fehler bei der XRechnung-Generierung"
MSG_INVALID_COMPANY = "Ungültige Firmen-ID"


class GenerateFormatsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoiceId: Any = None
    format: Any = None
    options: Optional[dict[str, Any]] = None


class GenerateXRechnungRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoiceId: Any = None
    options: Optional[dict[str, Any]] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _success(data: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True, "data": data})


def company_store(company_id: str | None = Depends(optional_company)) -> KeyValueStore:
    """Store of the requesting company (default namespace without header)."""
    return get_store(company_namespace(company_id))


def company_error_handler(request: Request, exc: CompanyHeaderError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, MSG_INVALID_COMPANY)


def _invoice_id(value: Any) -> Any:
    """Requested id as sent; only empty values count as missing."""
    if isinstance(value, str):
        value = value.strip()
    return value or None


@router.post("/generate-formats")
def generate_formats_endpoint(
    body: GenerateFormatsRequest,
    store: KeyValueStore = Depends(company_store),
    company_id: str | None = Depends(optional_company),
    trace_header: str | None = Header(None, alias="X-Trace-ID"),
):
    start = time.perf_counter()
    trace_id = bind_request_context(trace_header, company_id)

    invoice_id = _invoice_id(body.invoiceId)
    if invoice_id is None:
        increment_generation_failures("missing_invoice_id")
        return _error(status.HTTP_400_BAD_REQUEST, MSG_INVOICE_ID_REQUIRED)

    requested_format = settings.DEFAULT_FORMAT if body.format is None else body.format
    logger.info(
        "generate_formats_start",
        extra={"trace_id": trace_id, "invoice_id": invoice_id, "requested_format": str(requested_format)},
    )

    try:
        invoice = find_invoice(store, invoice_id)
        config = load_company_config(store)
        result = generate_formats(invoice, config, requested_format, body.options or {})
    except UnknownFormatError as exc:
        increment_generation_failures("unknown_format")
        logger.warning("generate_formats_unknown_format", extra={"trace_id": trace_id})
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except InvoiceNotFoundError:
        increment_generation_failures("not_found")
        logger.info("generate_formats_not_found", extra={"trace_id": trace_id, "invoice_id": invoice_id})
        return _error(status.HTTP_404_NOT_FOUND, MSG_INVOICE_NOT_FOUND)
    except Exception as exc:
        increment_generation_failures("internal")
        logger.exception("generate_formats_failed", extra={"trace_id": trace_id, "invoice_id": invoice_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"{MSG_GENERATION_FAILED}: {exc}")

    for key in result.formats:
        increment_formats_generated(key)
    duration_ms = (time.perf_counter() - start) * 1000
    record_generation_duration(duration_ms)
    logger.info(
        "generate_formats_done",
        extra={
            "trace_id": trace_id,
            "invoice_id": invoice_id,
            "formats": sorted(result.formats),
            "duration_ms": round(duration_ms, 3),
        },
    )
    return _success(result.to_dict())


@router.post("/generate-xrechnung")
def generate_xrechnung_endpoint(
    body: GenerateXRechnungRequest,
    store: KeyValueStore = Depends(company_store),
    company_id: str | None = Depends(optional_company),
    trace_header: str | None = Header(None, alias="X-Trace-ID"),
):
    """Single-format endpoint kept for older clients."""
    start = time.perf_counter()
    trace_id = bind_request_context(trace_header, company_id)

    invoice_id = _invoice_id(body.invoiceId)
    if invoice_id is None:
        increment_generation_failures("missing_invoice_id")
        return _error(status.HTTP_400_BAD_REQUEST, MSG_INVOICE_ID_REQUIRED)

    try:
        invoice = find_invoice(store, invoice_id)
        config = load_company_config(store)
        result = generate_formats(invoice, config, "XRechnung", body.options or {})
    except InvoiceNotFoundError:
        increment_generation_failures("not_found")
        return _error(status.HTTP_404_NOT_FOUND, MSG_INVOICE_NOT_FOUND)
    except Exception as exc:
        increment_generation_failures("internal")
        logger.exception("generate_xrechnung_failed", extra={"trace_id": trace_id, "invoice_id": invoice_id})
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"{MSG_XRECHNUNG_FAILED}: {exc}")

    document = result.xrechnung
    increment_formats_generated("xrechnung")
    record_generation_duration((time.perf_counter() - start) * 1000)
    logger.info("generate_xrechnung_done", extra={"trace_id": trace_id, "invoice_id": invoice_id})
    return _success(
        {
            "invoiceId": result.invoice_id,
            "format": XRECHNUNG_FORMAT,
            "xml": document.xml,
            "fileName": document.file_name,
        }
    )
