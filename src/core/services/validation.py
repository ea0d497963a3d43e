"""Domain validation.

Pure and deterministic: no DNS lookups, no I/O. Runs before any call to the
assessment service.
"""

from __future__ import annotations

import re

from core.domain.errors import DomainValidationError
from core.domain.models import AnalysisRequest

MAX_DOMAIN_LENGTH = 253

# Labels of alphanumerics/hyphens (no hyphen at the edges, <= 63 chars),
# ending in an alphabetic TLD of at least two characters.
_DOMAIN_RE = re.compile(
    r"^(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"
)


def validate_domain(domain: str) -> AnalysisRequest:
    """Check `domain` and wrap it in an `AnalysisRequest`.

    Rules are applied in order and the first failure wins: non-empty,
    at most 253 characters, host-label grammar.
    """

    if not domain:
        raise DomainValidationError("domain must not be empty")
    if len(domain) > MAX_DOMAIN_LENGTH:
        raise DomainValidationError(
            f"domain exceeds the maximum length of {MAX_DOMAIN_LENGTH} characters"
        )
    if not _DOMAIN_RE.fullmatch(domain):
        raise DomainValidationError(f"invalid domain format: {domain}", domain=domain)
    return AnalysisRequest(domain=domain)


def is_valid_domain(domain: str) -> bool:
    try:
        validate_domain(domain)
    except DomainValidationError:
        return False
    return True
