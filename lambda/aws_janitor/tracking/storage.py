"""S3 persistence for the tracking set."""

from __future__ import annotations
import datetime
import json
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import TrackingStateError
from ..utils import get_logger
from .tracking_set import TrackingSet

logger = get_logger()


def load_tracking_set(
    s3: Any, bucket: str, key: str, ttl: datetime.timedelta
) -> TrackingSet:
    """
    Load the tracking set from s3://bucket/key.

    A missing object yields an empty set, which is the state of the very
    first run. Any other failure raises TrackingStateError: a set that could
    not be read must not drive deletions.
    """
    try:
        response = s3.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        if error_code in ("NoSuchKey", "404"):
            logger.info(f"No tracking set at s3://{bucket}/{key}, starting empty")
            return TrackingSet(ttl)
        raise TrackingStateError(
            f"couldn't load tracking set from s3://{bucket}/{key}: {error_code}"
        ) from e
    except BotoCoreError as e:
        raise TrackingStateError(
            f"couldn't load tracking set from s3://{bucket}/{key}: {e}"
        ) from e

    try:
        tracking_set = TrackingSet.from_json(json.loads(body), ttl)
    except ValueError as e:
        raise TrackingStateError(
            f"malformed tracking set at s3://{bucket}/{key}: {e}"
        ) from e

    logger.info(f"Loaded {len(tracking_set)} tracking entries from s3://{bucket}/{key}")
    return tracking_set


def save_tracking_set(s3: Any, bucket: str, key: str, tracking_set: TrackingSet) -> None:
    """Write the tracking set to s3://bucket/key as indented JSON."""
    body = json.dumps(tracking_set.to_json(), indent=2).encode("utf-8")
    try:
        s3.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType="application/json",
        )
    except (ClientError, BotoCoreError) as e:
        raise TrackingStateError(
            f"couldn't save tracking set to s3://{bucket}/{key}: {e}"
        ) from e

    logger.info(f"Saved {len(tracking_set)} tracking entries to s3://{bucket}/{key}")
