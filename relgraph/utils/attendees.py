"""
Attendee string parsing and per-email candidate folding.

Calendar attendee lists arrive as free text ("Jane Doe <jane@acme.com>",
"Jane Doe (jane@acme.com)", "jane@acme.com" or just "Jane Doe") next to an
optional parallel list of bare emails.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from relgraph.utils.normalization import (
    infer_name_from_email,
    normalize_email,
    normalize_person_name,
    sanitize_display_name,
)

_ANGLE_RE = re.compile(r"^(.*?)\s*<([^<>]+)>$")
_PAREN_RE = re.compile(r"^(.*?)\s*\(([^()]+)\)$")


@dataclass
class ParsedAttendee:
    email: Optional[str]
    display_name: Optional[str]
    explicit_name: bool


@dataclass
class CandidateContact:
    """One person to upsert, keyed by normalized email."""

    email: str
    full_name: str
    normalized_name: str
    explicit_name: bool


@dataclass
class CandidateSet:
    candidates: List[CandidateContact]
    invalid: int = 0


def parse_attendee_entry(entry: Optional[str]) -> ParsedAttendee:
    """Split an attendee string into (email, display name, explicit flag)."""
    trimmed = (entry or "").strip()
    if not trimmed:
        return ParsedAttendee(email=None, display_name=None, explicit_name=False)

    match = _ANGLE_RE.match(trimmed)
    if match:
        name = sanitize_display_name(match.group(1))
        return ParsedAttendee(email=normalize_email(match.group(2)), display_name=name, explicit_name=bool(name))

    match = _PAREN_RE.match(trimmed)
    if match:
        email = normalize_email(match.group(2))
        if email:
            name = sanitize_display_name(match.group(1))
            return ParsedAttendee(email=email, display_name=name, explicit_name=bool(name))

    email = normalize_email(trimmed)
    if email:
        return ParsedAttendee(email=email, display_name=None, explicit_name=False)

    name = sanitize_display_name(trimmed)
    return ParsedAttendee(email=None, display_name=name, explicit_name=bool(name))


def merge_candidate(existing: Optional[CandidateContact], incoming: CandidateContact) -> CandidateContact:
    """Explicit names beat inferred ones; otherwise the longer name wins."""
    if existing is None:
        return incoming
    if incoming.explicit_name and not existing.explicit_name:
        return incoming
    if incoming.explicit_name == existing.explicit_name and len(incoming.full_name) > len(existing.full_name):
        return incoming
    return existing


class CandidateBuilder:
    """Accumulates candidates across one or many meetings."""

    def __init__(self):
        self._by_email: Dict[str, CandidateContact] = {}
        self.invalid = 0

    def add(self, raw_email: Optional[str], name: Optional[str], explicit_name: bool) -> None:
        email = normalize_email(raw_email)
        if not email:
            self.invalid += 1
            return

        full_name = name or infer_name_from_email(email) or email
        normalized_name = normalize_person_name(full_name)
        if not normalized_name:
            self.invalid += 1
            return

        incoming = CandidateContact(
            email=email,
            full_name=full_name,
            normalized_name=normalized_name,
            explicit_name=bool(name) and explicit_name,
        )
        self._by_email[email] = merge_candidate(self._by_email.get(email), incoming)

    def add_meeting(self, attendees: Optional[Sequence[str]], attendee_emails: Optional[Sequence[str]]) -> None:
        attendee_list = list(attendees or [])
        # parallel emails first, paired by position with the attendee string
        for index, raw_email in enumerate(attendee_emails or []):
            if not raw_email:
                continue
            paired = attendee_list[index] if index < len(attendee_list) else ""
            parsed = parse_attendee_entry(paired)
            self.add(raw_email, parsed.display_name, parsed.explicit_name)

        for attendee in attendee_list:
            parsed = parse_attendee_entry(attendee)
            if parsed.email:
                self.add(parsed.email, parsed.display_name, parsed.explicit_name)

    def build(self) -> CandidateSet:
        return CandidateSet(candidates=list(self._by_email.values()), invalid=self.invalid)


def build_candidates(
    attendees: Optional[Sequence[str]],
    attendee_emails: Optional[Sequence[str]],
) -> CandidateSet:
    builder = CandidateBuilder()
    builder.add_meeting(attendees, attendee_emails)
    return builder.build()
