"""EBS volume mark-and-sweep."""

from __future__ import annotations
import datetime
from typing import Any, Iterator

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import EnumerationError
from ..models import DeletionCandidate, ResourceIdentity, SweepOptions, SweepResult
from ..tracking import TrackingSet, as_utc
from ..utils import convert_tags_to_dict, get_logger, get_name_tag

logger = get_logger()

# Volume states that mean an instance still holds the volume
ATTACHED_STATES = {"in-use", "attaching"}


def iter_volumes(ec2: Any) -> Iterator[dict[str, Any]]:
    """Yield every volume visible to the client, page by page."""
    paginator = ec2.get_paginator("describe_volumes")
    for page in paginator.paginate():
        yield from page.get("Volumes", [])


def is_volume_attached(volume: dict[str, Any]) -> bool:
    """
    Check if a volume is still attached to an instance.

    Tags do not reliably propagate from instances to their volumes, so an
    attached volume is never deleted. Once the instance is gone the volume
    becomes deletable on a later run, using the first-seen time recorded now.
    """
    if volume.get("Attachments"):
        return True
    return volume.get("State") in ATTACHED_STATES


def _volume_age_days(
    identity: ResourceIdentity, volume: dict[str, Any], tracking_set: TrackingSet
) -> float:
    reference = tracking_set.first_seen_for(identity)
    create_time = volume.get("CreateTime")
    if create_time is not None:
        create_time = as_utc(create_time)
        if reference is None or create_time < reference:
            reference = create_time
    if reference is None:
        return 0.0
    now = datetime.datetime.now(datetime.timezone.utc)
    return (now - reference).total_seconds() / 86400


def mark_and_sweep(
    ec2: Any, options: SweepOptions, tracking_set: TrackingSet
) -> SweepResult:
    """
    Mark every volume in the account/region and delete the expired, unattached ones.

    The listing is consumed completely before the first delete call, so a
    failed page never leads to deletions based on a partial view.

    Args:
        ec2: EC2 client scoped to options.region
        options: Sweep settings for this account/region
        tracking_set: Loaded tracking set, updated in place

    Returns:
        SweepResult with the candidates and per-volume delete outcomes

    Raises:
        EnumerationError: if describing volumes failed; nothing is deleted
    """
    result = SweepResult(
        account=options.account, region=options.region, dry_run=options.dry_run
    )

    try:
        for volume in iter_volumes(ec2):
            result.scanned += 1
            identity = ResourceIdentity.volume(
                options.account, options.region, volume["VolumeId"]
            )
            tags_dict = convert_tags_to_dict(volume.get("Tags"))

            if not tracking_set.mark(
                identity, volume.get("CreateTime"), tags_dict, options
            ):
                result.skipped += 1
                continue
            result.marked += 1

            if is_volume_attached(volume):
                result.deferred += 1
                logger.debug(
                    "Volume expired but attached, deferring",
                    extra={"arn": identity.arn, "volume_id": identity.resource_id},
                )
                continue

            name = get_name_tag(tags_dict)
            age_days = _volume_age_days(identity, volume, tracking_set)
            size_gb = volume.get("Size", 0)
            volume_type = volume.get("VolumeType", "unknown")
            reason = (
                f"Unattached volume ({size_gb}GB {volume_type}, "
                f"{age_days:.1f} days old, TTL {options.ttl.total_seconds() / 3600:g}h)"
            )

            if options.dry_run:
                logger.warning(
                    f"[DRY-RUN] {identity.arn}: would delete volume "
                    f"{identity.resource_id} ({name})"
                )
                continue

            logger.warning(
                f"{identity.arn}: deleting volume {identity.resource_id} ({name})"
            )
            result.candidates.append(
                DeletionCandidate(
                    identity=identity, name=name, reason=reason, age_days=age_days
                )
            )
    except (ClientError, BotoCoreError) as e:
        raise EnumerationError(
            f"couldn't describe volumes for {options.account!r} in {options.region!r}: {e}",
            options.account,
            options.region,
        ) from e

    deleted, failed = delete_candidates(ec2, result.candidates)
    result.deleted.extend(deleted)
    result.failed.extend(failed)

    logger.info(
        f"Volume sweep for {options.region}: {result.scanned} scanned, "
        f"{result.skipped} skipped, {result.marked} expired, "
        f"{result.deferred} deferred (attached), "
        f"{len(result.deleted)} deleted, {len(result.failed)} failed"
    )
    return result


def delete_volume(ec2: Any, candidate: DeletionCandidate) -> bool:
    """
    Delete one EBS volume.

    Returns:
        True if the volume is gone (including "already deleted"), False otherwise
    """
    try:
        ec2.delete_volume(VolumeId=candidate.resource_id)
        logger.info(
            "DELETE volume",
            extra={
                "arn": candidate.identity.arn,
                "volume_id": candidate.resource_id,
                "volume_name": candidate.name,
                "reason": candidate.reason,
            },
        )
        return True

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_msg = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "InvalidVolume.NotFound":
            logger.info(
                f"Volume {candidate.resource_id} not found (already deleted?): {error_msg}"
            )
            return True
        elif error_code == "VolumeInUse":
            logger.warning(
                f"{candidate.identity.arn}: volume in use, cannot delete: {error_msg}"
            )
            return False
        else:
            logger.warning(
                f"{candidate.identity.arn}: delete failed: {error_code} - {error_msg}"
            )
            return False

    except BotoCoreError as e:
        logger.error(f"{candidate.identity.arn}: delete failed: {e}")
        return False


def delete_candidates(
    ec2: Any, candidates: list[DeletionCandidate]
) -> tuple[list[str], list[str]]:
    """
    Delete every candidate, continuing past individual failures.

    Returns:
        Tuple of (deleted, failed) volume IDs
    """
    deleted: list[str] = []
    failed: list[str] = []
    for candidate in candidates:
        if delete_volume(ec2, candidate):
            deleted.append(candidate.resource_id)
        else:
            failed.append(candidate.resource_id)
    return deleted, failed


def list_all(
    ec2: Any, options: SweepOptions, tracking_set: TrackingSet | None = None
) -> TrackingSet:
    """
    Record a first-seen time for every live volume without deleting anything.

    Volumes already tracked keep their first-seen time; new ones are
    recorded with the time of this call.

    Args:
        ec2: EC2 client scoped to options.region
        options: Account/region and TTL for a newly created set
        tracking_set: Set to update; a new one is created when omitted

    Raises:
        EnumerationError: if describing volumes failed
    """
    if tracking_set is None:
        tracking_set = TrackingSet(options.ttl)

    now = datetime.datetime.now(datetime.timezone.utc)
    recorded = 0
    try:
        for volume in iter_volumes(ec2):
            identity = ResourceIdentity.volume(
                options.account, options.region, volume["VolumeId"]
            )
            if tracking_set.record_first_seen(identity, now):
                recorded += 1
    except (ClientError, BotoCoreError) as e:
        raise EnumerationError(
            f"couldn't describe volumes for {options.account!r} in {options.region!r}",
            options.account,
            options.region,
        ) from e

    logger.info(
        f"Seeded {recorded} new volume entries for {options.account} in {options.region}"
    )
    return tracking_set
