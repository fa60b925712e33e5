"""E-Rechnung Formatgenerierung (XRechnung 3.0 / ZUGFeRD 2.2)."""

from .dto import CompanyConfig, CompanyInfo, Invoice, LineItem, quantize_money
from .engine import OutputFormat, generate_formats
from .errors import EInvoiceError, UnknownFormatError
from .partners import (
    BusinessPartnerInfo,
    CustomerData,
    business_partner_info,
    country_code,
    resolve_customer,
)
from .results import FormatsResult, GenerationMetadata, GenerationResult, ValidationResult
from .samples import (
    SCENARIOS,
    SampleScenario,
    build_sample_config,
    build_sample_invoice,
    iter_sample_scenarios,
)
from .xrechnung import (
    XRECHNUNG_CUSTOMIZATION_ID,
    XRECHNUNG_PROFILE_ID,
    build_xrechnung_document,
    build_xrechnung_xml,
    validate_xrechnung,
    version as xrechnung_version,
)
from .zugferd import (
    ZUGFERD_GUIDELINE_ID,
    build_zugferd_document,
    build_zugferd_xml,
    validate_zugferd,
    version as zugferd_version,
)

__all__ = [
    "CompanyConfig",
    "CompanyInfo",
    "Invoice",
    "LineItem",
    "quantize_money",
    "OutputFormat",
    "generate_formats",
    "EInvoiceError",
    "UnknownFormatError",
    "BusinessPartnerInfo",
    "CustomerData",
    "business_partner_info",
    "country_code",
    "resolve_customer",
    "FormatsResult",
    "GenerationMetadata",
    "GenerationResult",
    "ValidationResult",
    "SCENARIOS",
    "SampleScenario",
    "build_sample_config",
    "build_sample_invoice",
    "iter_sample_scenarios",
    "XRECHNUNG_CUSTOMIZATION_ID",
    "XRECHNUNG_PROFILE_ID",
    "build_xrechnung_document",
    "build_xrechnung_xml",
    "validate_xrechnung",
    "xrechnung_version",
    "ZUGFERD_GUIDELINE_ID",
    "build_zugferd_document",
    "build_zugferd_xml",
    "validate_zugferd",
    "zugferd_version",
]
