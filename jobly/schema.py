"""
Record and filter validation.

Each validator returns a list of error messages; an empty list means valid.
Repositories turn a non-empty list into a ValidationError.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

Check = Callable[[str, Any], Optional[str]]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


# Largest value an INTEGER column holds on every supported backend
MAX_INT = 2**31 - 1


def _is_int(v: Any) -> bool:
    # bool is an int subclass; True is not an employee count
    return isinstance(v, int) and not isinstance(v, bool)


def non_empty_str(field: str, v: Any) -> Optional[str]:
    if not _is_non_empty_str(v):
        return f"Field '{field}' must be a non-empty string"
    return None


def handle(field: str, v: Any) -> Optional[str]:
    if not _is_non_empty_str(v) or len(v) > 25:
        return f"Field '{field}' must be a non-empty string of at most 25 characters"
    return None


def string(field: str, v: Any) -> Optional[str]:
    if not isinstance(v, str):
        return f"Field '{field}' must be a string"
    return None


def url(field: str, v: Any) -> Optional[str]:
    if not isinstance(v, str) or not _valid_url(v):
        return f"Field '{field}' must be a valid absolute URL (scheme + host)"
    return None


def non_negative_int(field: str, v: Any) -> Optional[str]:
    if not _is_int(v) or not 0 <= v <= MAX_INT:
        return f"Field '{field}' must be an integer between 0 and {MAX_INT}"
    return None


def positive_int(field: str, v: Any) -> Optional[str]:
    if not _is_int(v) or not 1 <= v <= MAX_INT:
        return f"Field '{field}' must be an integer between 1 and {MAX_INT}"
    return None


def boolean(field: str, v: Any) -> Optional[str]:
    if not isinstance(v, bool):
        return f"Field '{field}' must be a boolean"
    return None


def fraction(field: str, v: Any) -> Optional[str]:
    """Equity: a number (or numeric string) between 0 and 1 inclusive."""
    message = f"Field '{field}' must be a number between 0 and 1"
    if isinstance(v, bool):
        return message
    try:
        d = Decimal(str(v))
    except InvalidOperation:
        return message
    if not d.is_finite() or d < 0 or d > 1:
        return message
    return None


def nullable(check: Check) -> Check:
    def _check(field: str, v: Any) -> Optional[str]:
        if v is None:
            return None
        return check(field, v)
    return _check


COMPANY_FIELDS: Dict[str, Check] = {
    "handle": handle,
    "name": non_empty_str,
    "description": string,
    "numEmployees": nullable(non_negative_int),
    "logoUrl": nullable(url),
}
COMPANY_REQUIRED = ["handle", "name", "description"]
COMPANY_UPDATABLE = ["name", "description", "numEmployees", "logoUrl"]

JOB_FIELDS: Dict[str, Check] = {
    "id": positive_int,
    "title": non_empty_str,
    "salary": nullable(non_negative_int),
    "equity": nullable(fraction),
    "companyHandle": handle,
}
JOB_REQUIRED = ["title", "companyHandle"]
JOB_UPDATABLE = ["title", "salary", "equity"]

COMPANY_FILTERS: Dict[str, Check] = {
    "name": string,
    "minEmployees": non_negative_int,
    "maxEmployees": non_negative_int,
}

JOB_FILTERS: Dict[str, Check] = {
    "title": string,
    "minSalary": non_negative_int,
    "hasEquity": boolean,
    "companyHandle": string,
}


def _validate(
    data: Dict[str, Any],
    checks: Dict[str, Check],
    allowed: Iterable[str],
    required: Iterable[str] = (),
    kind: str = "field",
) -> List[str]:
    errors: List[str] = []
    allowed = set(allowed)

    for f in required:
        if f not in data:
            errors.append(f"Missing required field: {f}")

    for f, v in data.items():
        if f not in allowed:
            errors.append(f"Unknown {kind}: {f}")
            continue
        # None in a filter means "not given"
        if kind == "filter" and v is None:
            continue
        message = checks[f](f, v)
        if message:
            errors.append(message)

    return errors


def validate_company(data: Dict[str, Any]) -> List[str]:
    return _validate(data, COMPANY_FIELDS, COMPANY_FIELDS, COMPANY_REQUIRED)


def validate_company_update(data: Dict[str, Any]) -> List[str]:
    """Explicit None clears nullable columns; name and description stay required."""
    return _validate(data, COMPANY_FIELDS, COMPANY_UPDATABLE)


def validate_job(data: Dict[str, Any]) -> List[str]:
    return _validate(data, JOB_FIELDS, JOB_FIELDS, JOB_REQUIRED)


def validate_job_update(data: Dict[str, Any]) -> List[str]:
    return _validate(data, JOB_FIELDS, JOB_UPDATABLE)


def validate_company_filters(criteria: Dict[str, Any]) -> List[str]:
    return _validate(criteria, COMPANY_FILTERS, COMPANY_FILTERS, kind="filter")


def validate_job_filters(criteria: Dict[str, Any]) -> List[str]:
    return _validate(criteria, JOB_FILTERS, JOB_FILTERS, kind="filter")
