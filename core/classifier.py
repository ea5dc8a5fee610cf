"""Text heuristics mapping a feed entry to a (status, severity) pair.

The term lists below are evaluated in order and the first match wins. The
ordering is a heuristic rather than a reading of provider semantics, but it
must stay fixed: notification severity is derived from it.
"""
from __future__ import annotations

import re

from models.incident import Severity, Status

_RESOLVED_TERMS = ("resolved", "mitigated", "restored", "stabilized", "recovering")
_INVESTIGATING_TERMS = ("investigating",)
_MAINTENANCE_TERMS = ("maintenance",)
_DEGRADED_TERMS = ("degrad",)
_INCIDENT_TERMS = ("outage", "incident")

_STATUS_RULES: tuple[tuple[tuple[str, ...], Status], ...] = (
    (_RESOLVED_TERMS, Status.RESOLVED),
    (_INVESTIGATING_TERMS, Status.INVESTIGATING),
    (_MAINTENANCE_TERMS, Status.MAINTENANCE),
    (_DEGRADED_TERMS, Status.DEGRADED),
    (_INCIDENT_TERMS, Status.INCIDENT),
)

_CRITICAL_TERMS = ("outage", "unavailable", "complete failure")
_HIGH_TERMS = ("failure", "unable", "major", "multiple regions", "dependent service")
_MEDIUM_TERMS = ("degraded", "intermittent", "delays", "elevated latency")

_DIRECTION_RE = re.compile(r"\b(east|west|north|south|central)\b")


def _text(title: str | None, content: str | None) -> str:
    return f"{title or ''} {content or ''}".lower()


def _contains_any(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


def _spans_regions(text: str) -> bool:
    """True when two different directional region words appear together."""
    if "region" in text and "impacted" in text:
        return True
    return len(set(_DIRECTION_RE.findall(text))) >= 2


def normalize_status(title: str | None, content: str | None = "") -> Status:
    text = _text(title, content)
    for terms, status in _STATUS_RULES:
        if _contains_any(text, terms):
            return status
    return Status.INFO


def detect_severity(title: str | None, content: str | None = "") -> Severity:
    text = _text(title, content)
    if _contains_any(text, _CRITICAL_TERMS):
        return Severity.CRITICAL
    if _contains_any(text, _HIGH_TERMS) or _spans_regions(text):
        return Severity.HIGH
    if _contains_any(text, _MEDIUM_TERMS):
        return Severity.MEDIUM
    return Severity.LOW


def classify(title: str | None, content: str | None = "") -> tuple[Status, Severity]:
    """Derive status and severity from an entry's title and body text."""
    return normalize_status(title, content), detect_severity(title, content)
