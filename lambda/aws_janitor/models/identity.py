"""ResourceIdentity data class."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class ResourceIdentity:
    """Identity of one AWS resource in one account and region.

    The canonical string form is an ARN, which is also the key used by the
    tracking set. Build the ARN only through this class so the enumerator
    and the tracking set never disagree on its format.
    """

    service: str
    resource_type: str
    account: str
    region: str
    resource_id: str

    @classmethod
    def volume(cls, account: str, region: str, volume_id: str) -> ResourceIdentity:
        """Identity of an EBS volume."""
        return cls(
            service="ec2",
            resource_type="volume",
            account=account,
            region=region,
            resource_id=volume_id,
        )

    @property
    def arn(self) -> str:
        return (
            f"arn:aws:{self.service}:{self.region}:{self.account}:"
            f"{self.resource_type}/{self.resource_id}"
        )

    def resource_key(self) -> str:
        """Key under which the resource is tracked."""
        return self.arn

    @staticmethod
    def partition_of(key: str) -> tuple[str, str] | None:
        """(account, region) of a tracking key, or None if it is not an ARN."""
        parts = key.split(":", 5)
        if len(parts) < 6 or parts[0] != "arn":
            return None
        return parts[4], parts[3]

    def __str__(self) -> str:
        return self.arn
