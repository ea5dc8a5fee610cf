from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Status(str, Enum):
    INFO = "info"
    INVESTIGATING = "investigating"
    INCIDENT = "incident"
    DEGRADED = "degraded"
    MAINTENANCE = "maintenance"
    RESOLVED = "resolved"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


@dataclass(frozen=True)
class Incident:
    """Canonical incident produced by classifying one feed entry.

    Fields:
        id:           Stable identity across refreshes (guid, link, or a
                      source/timestamp/title composite).
        provider:     Coarse grouping key ("Azure", "AWS", ...).
        source:       Display name of the feed within the provider.
        title:        Entry title.
        summary:      Plain-text entry body.
        status:       Derived lifecycle status.
        severity:     Derived severity.
        link:         External reference, if the feed supplied one.
        published_at: Source-supplied publish time, kept as text.
    """

    id: str
    provider: str
    source: str
    title: str
    summary: str
    status: Status
    severity: Severity
    link: str | None = None
    published_at: str | None = None

    @property
    def severity_rank(self) -> int:
        return SEVERITY_RANK[self.severity]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "source": self.source,
            "title": self.title,
            "summary": self.summary,
            "status": self.status.value,
            "severity": self.severity.value,
            "link": self.link,
            "publishedAt": self.published_at,
        }
