"""DeletionCandidate and SweepResult data classes."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .identity import ResourceIdentity


@dataclass
class DeletionCandidate:
    """A resource selected for deletion during one sweep."""

    identity: ResourceIdentity
    name: str
    reason: str
    age_days: float

    @property
    def resource_id(self) -> str:
        return self.identity.resource_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "arn": self.identity.arn,
            "resource_id": self.resource_id,
            "region": self.identity.region,
            "name": self.name,
            "reason": self.reason,
            "age_days": round(self.age_days, 2),
        }


@dataclass
class SweepResult:
    """Outcome of one mark-and-sweep pass over an account/region.

    Individual delete failures do not fail the sweep; they are listed in
    ``failed`` and retried on the next run.
    """

    account: str
    region: str
    dry_run: bool
    scanned: int = 0
    marked: int = 0
    deferred: int = 0
    skipped: int = 0
    candidates: list[DeletionCandidate] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "account": self.account,
            "region": self.region,
            "dry_run": self.dry_run,
            "scanned": self.scanned,
            "marked": self.marked,
            "deferred": self.deferred,
            "skipped": self.skipped,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "deleted": list(self.deleted),
            "failed": list(self.failed),
        }
