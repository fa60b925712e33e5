from __future__ import annotations

from fastapi import Header

from backend.core.observability.metrics import increment_company_validation_failure
from backend.core.tenant.validator import validate_company_id


class CompanyHeaderError(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(f"X-Company-ID {reason}")
        self.reason = reason


def optional_company(
    company_header: str | None = Header(None, alias="X-Company-ID", convert_underscores=False)
) -> str | None:
    """FastAPI dependency for the optional company header.

    Returns the company id or ``None``; raises ``CompanyHeaderError`` for a
    malformed value.
    """
    res = validate_company_id(company_header)
    if not res.ok:
        increment_company_validation_failure(res.reason)
        raise CompanyHeaderError(res.reason)
    return res.company_id
