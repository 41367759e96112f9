"""Main Lambda handler for the AWS janitor."""

from __future__ import annotations
import json
import time
from typing import Any, Callable

import boto3

from .ec2 import list_all, mark_and_sweep
from .errors import EnumerationError, JanitorError
from .models import Config, SweepOptions, SweepResult
from .tracking import TrackingSet, load_tracking_set, save_tracking_set
from .utils import get_account_id, get_logger

logger = get_logger()

MODE_SWEEP = "sweep"
MODE_LIST_ALL = "list_all"


def resolve_regions(ec2: Any, target_regions: str) -> list[str]:
    """Return the regions to process, honouring a comma-separated filter."""
    all_regions = [region["RegionName"] for region in ec2.describe_regions()["Regions"]]

    if target_regions and target_regions.lower() != "all":
        target_list = [r.strip() for r in target_regions.split(",") if r.strip()]
        regions = [r for r in all_regions if r in target_list]
        logger.info(f"Filtering to specific regions: {regions}")
    else:
        regions = all_regions
        logger.info(f"Processing all {len(regions)} regions")
    return regions


def sweep_region(
    session: Any,
    options: SweepOptions,
    tracking_set: TrackingSet,
    mode: str = MODE_SWEEP,
) -> SweepResult | None:
    """
    Run one account/region through mark-and-sweep, or seed its tracking entries.

    Raises:
        EnumerationError: if the region's volumes couldn't be listed
    """
    start_time = time.time()
    logger.info(f"Processing region: {options.region} (mode={mode})")

    ec2 = session.client("ec2", region_name=options.region)

    if mode == MODE_LIST_ALL:
        list_all(ec2, options, tracking_set)
        result = None
    else:
        result = mark_and_sweep(ec2, options, tracking_set)

    duration = time.time() - start_time
    logger.info(f"Completed {options.region} in {duration:.1f}s")
    return result


def run(
    session: Any,
    regions: list[str],
    options_factory: Callable[[str, str], SweepOptions],
    tracking_set: TrackingSet,
    mode: str = MODE_SWEEP,
) -> tuple[list[SweepResult], dict[str, str]]:
    """
    Process every region, collecting results and enumeration failures.

    Stale tracking entries are pruned only in regions that were listed
    completely; a failed region keeps all of its entries, as do regions
    and accounts that were not part of this run.

    Returns:
        Tuple of (results, failures) where failures maps region to error
    """
    account = get_account_id(session.client("sts"))
    results: list[SweepResult] = []
    failures: dict[str, str] = {}
    completed: set[tuple[str, str]] = set()

    for region in regions:
        options = options_factory(account, region)
        try:
            result = sweep_region(session, options, tracking_set, mode)
        except EnumerationError as e:
            logger.error(
                "Region sweep failed",
                extra={"account": e.account, "region": e.region, "error": str(e)},
            )
            failures[region] = str(e)
            continue
        completed.add((account, region))
        if result is not None:
            results.append(result)

    if failures:
        logger.warning(
            f"Skipping tracking set pruning for {len(failures)} failed region(s)"
        )
    swept = tracking_set.mark_complete(completed)
    logger.info(f"{swept} resources expired this run")

    return results, failures


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Main Lambda handler."""
    start_time = time.time()
    config = Config()
    mode = (event or {}).get("mode", MODE_SWEEP)
    logger.info(f"Starting AWS janitor (mode={mode}, DRY_RUN={config.dry_run})")

    if mode not in (MODE_SWEEP, MODE_LIST_ALL):
        raise JanitorError(f"Unknown mode {mode!r}")
    if not config.state_bucket:
        raise JanitorError("STATE_BUCKET is not configured")

    session = boto3.Session()
    s3 = session.client("s3")

    try:
        tracking_set = load_tracking_set(
            s3, config.state_bucket, config.state_key, config.ttl
        )
        regions = resolve_regions(session.client("ec2"), config.target_regions)

        results, failures = run(
            session, regions, config.options_for, tracking_set, mode
        )

        save_tracking_set(s3, config.state_bucket, config.state_key, tracking_set)

    except Exception as e:
        logger.error(f"Lambda execution failed: {e}")
        raise

    total_duration = time.time() - start_time
    deleted = sum(len(result.deleted) for result in results)
    failed = sum(len(result.failed) for result in results)
    logger.info(
        f"Janitor complete: {len(regions)} regions, {deleted} deleted, "
        f"{failed} delete failures, {len(tracking_set)} tracked "
        f"({total_duration:.1f}s total)"
    )

    if failures:
        raise JanitorError(
            f"Enumeration failed in {len(failures)} region(s): "
            + "; ".join(f"{region}: {error}" for region, error in failures.items())
        )

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "mode": mode,
                "dry_run": config.dry_run,
                "tracked": len(tracking_set),
                "deleted": deleted,
                "delete_failures": failed,
                "regions": [result.to_dict() for result in results],
            }
        ),
    }
