"""Configuration from environment variables."""

from __future__ import annotations
import datetime
import os
from dataclasses import dataclass, field

from ..utils.aws_helpers import parse_tag_matchers

# Configuration from environment variables
DRY_RUN = os.environ.get("DRY_RUN", "true").lower() == "true"

# Minimum age before an unattached resource is deleted
TTL_HOURS = float(os.environ.get("TTL_HOURS", "24"))

# Region filtering
TARGET_REGIONS = os.environ.get("TARGET_REGIONS", "all")

# Tracking set location
STATE_BUCKET = os.environ.get("STATE_BUCKET", "")
STATE_KEY = os.environ.get("STATE_KEY", "aws-janitor/tracking-set.json")

# Tag filters, e.g. "team=ci,ephemeral"
INCLUDE_TAGS = os.environ.get("INCLUDE_TAGS", "")
EXCLUDE_TAGS = os.environ.get("EXCLUDE_TAGS", "")

# Logging configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class SweepOptions:
    """Settings for one account/region sweep."""

    account: str
    region: str
    ttl: datetime.timedelta = datetime.timedelta(hours=24)
    dry_run: bool = True
    include_tags: dict[str, str | None] = field(default_factory=dict)
    exclude_tags: dict[str, str | None] = field(default_factory=dict)


class Config:
    """Configuration singleton."""

    def __init__(self):
        self.dry_run = DRY_RUN
        self.ttl = datetime.timedelta(hours=TTL_HOURS)
        self.target_regions = TARGET_REGIONS
        self.state_bucket = STATE_BUCKET
        self.state_key = STATE_KEY
        self.include_tags = parse_tag_matchers(INCLUDE_TAGS)
        self.exclude_tags = parse_tag_matchers(EXCLUDE_TAGS)

    def options_for(self, account: str, region: str) -> SweepOptions:
        """Build the sweep options for one account/region."""
        return SweepOptions(
            account=account,
            region=region,
            ttl=self.ttl,
            dry_run=self.dry_run,
            include_tags=self.include_tags,
            exclude_tags=self.exclude_tags,
        )
