"""Persistent first-seen tracking for the mark-and-sweep policy."""

from __future__ import annotations
import datetime
from typing import Any, Iterable, Mapping

from ..models.config import SweepOptions
from ..models.identity import ResourceIdentity
from ..utils import get_logger, managed_per_tags

logger = get_logger()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Return value in UTC, treating naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


class TrackingSet:
    """
    First-seen timestamps per resource ARN, plus the default TTL.

    A fresh instance is loaded at the start of every run and saved at the
    end. Entries are only ever added; an existing first-seen time is never
    moved. Entries for resources that were not observed in a completely
    listed account/region are dropped by mark_complete().
    """

    def __init__(
        self,
        ttl: datetime.timedelta,
        first_seen: Mapping[str, datetime.datetime] | None = None,
    ):
        self.ttl = ttl
        self._first_seen: dict[str, datetime.datetime] = {
            key: as_utc(ts) for key, ts in (first_seen or {}).items()
        }
        self._observed: set[str] = set()
        self._swept: list[str] = []

    def __len__(self) -> int:
        return len(self._first_seen)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, ResourceIdentity):
            key = key.resource_key()
        return key in self._first_seen

    def first_seen_for(self, key: str | ResourceIdentity) -> datetime.datetime | None:
        if isinstance(key, ResourceIdentity):
            key = key.resource_key()
        return self._first_seen.get(key)

    @property
    def swept(self) -> list[str]:
        """Keys reported eligible for deletion since the set was loaded."""
        return list(self._swept)

    def mark(
        self,
        resource: ResourceIdentity,
        created: datetime.datetime | None,
        tags: Mapping[str, str],
        options: SweepOptions | None = None,
    ) -> bool:
        """
        Record that a resource is present and decide whether it is old enough to delete.

        Args:
            resource: Identity of the observed resource
            created: Provider-reported creation time, if any
            tags: Resource tags
            options: Sweep options carrying include/exclude tag matchers

        Returns:
            True if the resource has been tracked for at least the TTL
        """
        key = resource.resource_key()
        now = _utcnow()
        self._observed.add(key)

        if options is not None and not managed_per_tags(
            tags, options.include_tags, options.exclude_tags
        ):
            logger.debug(f"{key}: not managed per include/exclude tags")
            return False

        first_seen = self._first_seen.get(key)
        if first_seen is None:
            self._first_seen[key] = now
            logger.debug(f"{key}: first seen at {now.isoformat()}")
            return False

        reference = first_seen
        if created is not None and as_utc(created) < reference:
            reference = as_utc(created)

        age = now - reference
        if age >= self.ttl:
            self._swept.append(key)
            return True

        logger.debug(f"{key}: seen for {age}, TTL {self.ttl}")
        return False

    def record_first_seen(
        self, resource: ResourceIdentity, timestamp: datetime.datetime
    ) -> bool:
        """
        Record the first-seen time of a resource unless it is already tracked.

        Returns:
            True if a new entry was created
        """
        key = resource.resource_key()
        self._observed.add(key)
        if key in self._first_seen:
            return False
        self._first_seen[key] = as_utc(timestamp)
        return True

    def mark_complete(self, partitions: Iterable[tuple[str, str]]) -> int:
        """
        Forget resources that were not observed since the set was loaded.

        Only entries in the given (account, region) partitions are
        considered. Pass only partitions whose enumeration completed;
        entries of any other account or region are left untouched.

        Returns:
            Number of resources reported eligible for deletion
        """
        completed = set(partitions)
        gone = [
            key
            for key in self._first_seen
            if key not in self._observed
            and ResourceIdentity.partition_of(key) in completed
        ]
        for key in gone:
            del self._first_seen[key]
        if gone:
            logger.info(f"Dropped {len(gone)} tracking entries for resources no longer present")
        return len(self._swept)

    def to_json(self) -> dict[str, str]:
        """Serialize first-seen entries as ARN -> ISO-8601 timestamp."""
        return {key: self._first_seen[key].isoformat() for key in sorted(self._first_seen)}

    @classmethod
    def from_json(cls, data: Mapping[str, Any], ttl: datetime.timedelta) -> TrackingSet:
        """Build a TrackingSet from the output of to_json()."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        first_seen = {
            str(key): datetime.datetime.fromisoformat(str(value))
            for key, value in data.items()
        }
        return cls(ttl, first_seen)
