"""Pytest configuration and shared fixtures for AWS janitor tests."""

from __future__ import annotations
import datetime
import io
import pytest
from typing import Any
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from aws_janitor.models import SweepOptions
from aws_janitor.tracking import TrackingSet

ACCOUNT = "123456789012"
REGION = "us-east-2"


class VolumeBuilder:
    """Builder pattern for creating test EBS volumes.

    Produces the dictionaries returned by DescribeVolumes without needing
    to mock AWS services.
    """

    def __init__(self):
        self._volume = {
            "VolumeId": "vol-test123456",
            "State": "available",
            "Size": 10,
            "VolumeType": "gp3",
            "CreateTime": datetime.datetime.now(datetime.timezone.utc),
            "Attachments": [],
            "Tags": [],
        }

    def with_volume_id(self, volume_id: str) -> VolumeBuilder:
        """Set volume ID."""
        self._volume["VolumeId"] = volume_id
        return self

    def with_name(self, name: str) -> VolumeBuilder:
        """Set Name tag."""
        self._add_tag("Name", name)
        return self

    def with_state(self, state: str) -> VolumeBuilder:
        """Set volume state (available, in-use, ...)."""
        self._volume["State"] = state
        return self

    def with_create_time(self, create_time: datetime.datetime) -> VolumeBuilder:
        """Set creation time."""
        self._volume["CreateTime"] = create_time
        return self

    def without_create_time(self) -> VolumeBuilder:
        """Drop CreateTime, as if the provider did not report it."""
        self._volume.pop("CreateTime", None)
        return self

    def with_size(self, size_gb: int) -> VolumeBuilder:
        """Set volume size in GB."""
        self._volume["Size"] = size_gb
        return self

    def attached_to(self, instance_id: str) -> VolumeBuilder:
        """Attach the volume to an instance."""
        self._volume["State"] = "in-use"
        self._volume["Attachments"].append(
            {
                "InstanceId": instance_id,
                "VolumeId": self._volume["VolumeId"],
                "State": "attached",
                "Device": "/dev/xvdf",
            }
        )
        return self

    def with_tag(self, key: str, value: str) -> VolumeBuilder:
        """Add custom tag."""
        self._add_tag(key, value)
        return self

    def _add_tag(self, key: str, value: str):
        """Internal method to add a tag."""
        self._volume["Tags"].append({"Key": key, "Value": value})

    def build(self) -> dict[str, Any]:
        """Build and return the volume dictionary."""
        return self._volume


def make_client_error(code: str, message: str = "", operation: str = "DescribeVolumes"):
    """Build a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


def make_ec2_client(
    pages: list[list[dict[str, Any]]] | None = None, error: Exception | None = None
) -> MagicMock:
    """Mock EC2 client whose describe_volumes paginator yields the given pages.

    If error is set it is raised after the pages have been yielded,
    mimicking a failure on a later page.
    """
    ec2 = MagicMock()

    def _paginate(**kwargs):
        for volumes in pages or []:
            yield {"Volumes": volumes}
        if error is not None:
            raise error

    ec2.get_paginator.return_value.paginate.side_effect = _paginate
    return ec2


# Shared fixtures


@pytest.fixture
def volume_builder():
    """Fixture that returns a new VolumeBuilder."""
    return VolumeBuilder()


@pytest.fixture
def sweep_options():
    """Live-mode sweep options with a 24 hour TTL."""
    return SweepOptions(
        account=ACCOUNT,
        region=REGION,
        ttl=datetime.timedelta(hours=24),
        dry_run=False,
    )


@pytest.fixture
def dry_run_options(sweep_options):
    """Same as sweep_options but in dry-run mode."""
    return SweepOptions(
        account=sweep_options.account,
        region=sweep_options.region,
        ttl=sweep_options.ttl,
        dry_run=True,
    )


@pytest.fixture
def tracking_set():
    """Empty tracking set with a 24 hour TTL."""
    return TrackingSet(datetime.timedelta(hours=24))


@pytest.fixture
def ec2_client_factory():
    """Factory for mock EC2 clients backed by a describe_volumes paginator.

    Example:
        ec2 = ec2_client_factory([[volume_a, volume_b], [volume_c]])
    """
    return make_ec2_client


@pytest.fixture
def client_error_factory():
    """Factory for botocore ClientError instances."""
    return make_client_error


class InMemoryS3:
    """Minimal S3 client keeping objects in a dict."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self.objects:
            raise make_client_error("NoSuchKey", operation="GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket: str, Key: str, Body: bytes, **kwargs) -> dict[str, Any]:
        self.objects[(Bucket, Key)] = Body
        return {}


@pytest.fixture
def in_memory_s3():
    """Fresh in-memory S3 client."""
    return InMemoryS3()


@pytest.fixture
def session_factory():
    """Factory for mock boto3 sessions.

    Regional EC2 clients come from ec2_by_region. Every EC2 client answers
    describe_regions with the keys of ec2_by_region.

    Example:
        session = session_factory({"us-east-1": ec2}, s3=in_memory_s3)
    """

    def _create(
        ec2_by_region: dict[str, Any],
        s3: Any = None,
        account: str = ACCOUNT,
    ) -> MagicMock:
        sts = MagicMock()
        sts.get_caller_identity.return_value = {"Account": account}
        s3 = s3 if s3 is not None else InMemoryS3()
        regions = {"Regions": [{"RegionName": region} for region in ec2_by_region]}
        global_ec2 = MagicMock()
        global_ec2.describe_regions.return_value = regions
        for ec2 in ec2_by_region.values():
            ec2.describe_regions.return_value = regions

        def _client(service: str, region_name: str | None = None, **kwargs):
            if service == "sts":
                return sts
            if service == "s3":
                return s3
            if service == "ec2":
                if region_name in ec2_by_region:
                    return ec2_by_region[region_name]
                return global_ec2
            raise AssertionError(f"unexpected client {service}")

        session = MagicMock()
        session.client.side_effect = _client
        session.region_name = "us-east-1"
        return session

    return _create
