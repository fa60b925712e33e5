from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

Reason = Literal["missing", "malformed", "ok"]


COMPANY_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass
class CompanyValidationResult:
    ok: bool
    reason: Reason
    company_id: str | None = None


def validate_company_id(raw: str | None) -> CompanyValidationResult:
    """Check the optional X-Company-ID value.

    A missing header is valid and selects the default namespace; a present
    value must be a plain identifier so it can be embedded in a store key.
    """
    if raw is None or not raw.strip():
        return CompanyValidationResult(ok=True, reason="missing")
    candidate = raw.strip()
    if not COMPANY_ID_RE.match(candidate):
        return CompanyValidationResult(ok=False, reason="malformed")
    return CompanyValidationResult(ok=True, reason="ok", company_id=candidate)
