"""
Domain candidate expansion.

A single place that turns a domain into the set of strings a company might
have been stored under. The registrable-domain rule is a small fixed
second-level list, not a public-suffix list.
"""

import re
from typing import Iterable, List, Optional

from relgraph.utils.normalization import normalize_domain

SECOND_LEVEL_LABELS = {"co", "com", "org", "net", "gov", "edu"}

COMMON_EMAIL_PROVIDERS = {
    "gmail", "yahoo", "hotmail", "outlook", "icloud", "aol",
    "protonmail", "me", "live", "msn", "zoho", "fastmail",
    "hey", "tutanota", "gmx", "pm", "ymail", "mail",
}


def registrable_domain(domain: Optional[str]) -> Optional[str]:
    """
    Apex of a domain.

    ``mail.acme.com`` -> ``acme.com``, ``foo.acme.co.uk`` -> ``acme.co.uk``.
    """
    normalized = normalize_domain(domain)
    if not normalized:
        return None
    labels = [label for label in normalized.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    if len(labels[-1]) == 2 and labels[-2] in SECOND_LEVEL_LABELS:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def domain_candidates(domain: Optional[str]) -> List[str]:
    """[normalized, registrable, "www." + registrable], deduplicated in order."""
    normalized = normalize_domain(domain)
    if not normalized:
        return []
    apex = registrable_domain(normalized) or normalized
    candidates: List[str] = []
    for value in (normalized, apex, f"www.{apex}"):
        if value not in candidates:
            candidates.append(value)
    return candidates


def candidates_for_domains(domains: Iterable[Optional[str]]) -> List[str]:
    """Union of candidates for several domains, first-seen order."""
    seen: List[str] = []
    for domain in domains:
        for candidate in domain_candidates(domain):
            if candidate not in seen:
                seen.append(candidate)
    return seen


def is_common_email_provider(domain: Optional[str]) -> bool:
    """True for free-mail domains (gmail.com, outlook.co.uk, ...)."""
    apex = registrable_domain(domain)
    if not apex:
        return False
    return apex.split(".", 1)[0] in COMMON_EMAIL_PROVIDERS


def humanize_domain(domain: Optional[str]) -> str:
    """``acme-labs.com`` -> ``Acme Labs``."""
    apex = registrable_domain(domain)
    if not apex:
        return ""
    label = apex.split(".", 1)[0]
    words = [w for w in re.split(r"[-_]+", label) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)
