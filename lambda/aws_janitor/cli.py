"""Command line entry point for running the janitor outside Lambda."""

from __future__ import annotations
import argparse
import datetime
import sys

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import JanitorError
from .handler import MODE_LIST_ALL, MODE_SWEEP, resolve_regions, run
from .models import SweepOptions
from .tracking import load_tracking_set, save_tracking_set
from .utils import get_logger, parse_tag_matchers

logger = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aws-janitor",
        description="Delete expired, unattached AWS resources left behind by test runs.",
    )
    parser.add_argument(
        "command",
        choices=["sweep", "list-all"],
        help="sweep: mark and delete expired resources; "
        "list-all: record first-seen times without deleting",
    )
    parser.add_argument("--bucket", required=True, help="S3 bucket holding the tracking set")
    parser.add_argument(
        "--key",
        default="aws-janitor/tracking-set.json",
        help="S3 key of the tracking set (default: %(default)s)",
    )
    parser.add_argument(
        "--ttl-hours",
        type=float,
        default=24,
        help="Minimum age before deletion, in hours (default: %(default)s)",
    )
    parser.add_argument(
        "--region",
        action="append",
        dest="regions",
        help="Region to process; repeat for several (default: all regions)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Log what would be deleted without deleting"
    )
    parser.add_argument(
        "--include-tags",
        default="",
        help="Only manage resources matching all of these tags (key or key=value, comma-separated)",
    )
    parser.add_argument(
        "--exclude-tags",
        default="",
        help="Never manage resources matching any of these tags",
    )
    parser.add_argument("--profile", help="AWS profile to use")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        include_tags = parse_tag_matchers(args.include_tags)
        exclude_tags = parse_tag_matchers(args.exclude_tags)
    except ValueError as e:
        parser.error(str(e))

    ttl = datetime.timedelta(hours=args.ttl_hours)
    mode = MODE_LIST_ALL if args.command == "list-all" else MODE_SWEEP

    def options_factory(account: str, region: str) -> SweepOptions:
        return SweepOptions(
            account=account,
            region=region,
            ttl=ttl,
            dry_run=args.dry_run,
            include_tags=include_tags,
            exclude_tags=exclude_tags,
        )

    session = boto3.Session(profile_name=args.profile)
    s3 = session.client("s3")

    try:
        tracking_set = load_tracking_set(s3, args.bucket, args.key, ttl)
        regions = args.regions or resolve_regions(
            session.client("ec2", region_name=session.region_name or "us-east-1"), "all"
        )
        results, failures = run(session, regions, options_factory, tracking_set, mode)
        save_tracking_set(s3, args.bucket, args.key, tracking_set)
    except (JanitorError, ClientError, BotoCoreError) as e:
        logger.error(str(e))
        return 1

    for result in results:
        for volume_id in result.failed:
            logger.warning(f"{result.region}: {volume_id} will be retried next run")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
