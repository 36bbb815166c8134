"""
Text normalization for emails, company names, domains and person names.

Every function here is pure and total: bad input comes back as None or an
empty string, never as an exception, so batch callers can count rejects.
"""

import re
from typing import Optional, Tuple
from urllib.parse import urlparse

_EMAIL_RE = re.compile(r"^[^\s@<>]+@[^\s@<>]+\.[^\s@<>]+$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")


def normalize_email(raw: Optional[str]) -> Optional[str]:
    """
    Canonical form of an email address, or None if it is not one.

    Lower-cases, trims, drops a ``mailto:`` prefix, wrapping angle brackets
    and trailing ``;``/``,`` separators before validating.
    """
    if not raw:
        return None
    value = raw.strip().lower()
    value = re.sub(r"^mailto:", "", value)
    value = re.sub(r"[;,\s]+$", "", value)
    value = re.sub(r"^<+|>+$", "", value).strip()
    if not _EMAIL_RE.match(value):
        return None
    return value


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value.strip()))


def normalize_company_name(raw: Optional[str]) -> str:
    """Lower-case and collapse every run of non-alphanumerics to one space."""
    if not raw:
        return ""
    return _NON_ALNUM_RE.sub(" ", raw.lower()).strip()


def normalize_person_name(raw: Optional[str]) -> str:
    return normalize_company_name(raw)


def compact_person_name(raw: Optional[str]) -> str:
    return normalize_person_name(raw).replace(" ", "")


def normalize_domain(raw: Optional[str]) -> Optional[str]:
    """
    Bare host for a domain or URL.

    ``https://www.Acme.com:443/about?x=1`` -> ``acme.com``. Empty -> None.
    """
    if not raw:
        return None
    value = raw.strip().lower()
    if not value:
        return None

    if _SCHEME_RE.match(value):
        host = urlparse(value).hostname or ""
    else:
        host = re.split(r"[/?#]", value, maxsplit=1)[0]
        host = host.split("@")[-1].split(":")[0]

    host = host.strip().strip(".")
    if host.startswith("www."):
        host = host[4:]
    return host or None


def extract_email_domain(email: Optional[str]) -> Optional[str]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return normalize_domain(normalized.rsplit("@", 1)[1])


def collapse_whitespace(value: Optional[str]) -> str:
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value).strip()


def sanitize_display_name(value: Optional[str]) -> Optional[str]:
    """
    Clean a display name from a header or attendee list.

    Strips surrounding quotes; returns None for empty names, the literal
    ``unknown`` and values that are really email addresses.
    """
    if not value:
        return None
    cleaned = collapse_whitespace(value.strip().strip("'\""))
    if not cleaned:
        return None
    if cleaned.lower() == "unknown":
        return None
    if is_valid_email(cleaned):
        return None
    return cleaned


def split_full_name_parts(full_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """(first, last) only when the name is exactly two tokens."""
    parts = collapse_whitespace(full_name).split(" ")
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    return None, None


def infer_name_from_email(email: Optional[str]) -> Optional[str]:
    """
    Best-effort display name from the local part of an address.

    ``jane.doe@acme.com`` -> ``Jane Doe``.
    """
    normalized = normalize_email(email)
    if not normalized:
        return None
    local = normalized.split("@", 1)[0]
    tokens = [t for t in re.split(r"[._\-]+", local) if t]
    if not tokens:
        return None
    return " ".join(t[:1].upper() + t[1:] for t in tokens)
