"""AWS helper functions."""

from __future__ import annotations
from typing import Any, Mapping
from .logging_config import get_logger

logger = get_logger()

NAME_TAG_KEY = "Name"


def convert_tags_to_dict(tags: list[dict[str, str]] | None) -> dict[str, str]:
    """Convert AWS tag list to dictionary."""
    return {tag["Key"]: tag["Value"] for tag in tags} if tags else {}


def get_name_tag(tags_dict: Mapping[str, str]) -> str:
    """Return the human-readable Name tag, or a placeholder."""
    return tags_dict.get(NAME_TAG_KEY) or "<UNNAMED>"


def parse_tag_matchers(value: str | None) -> dict[str, str | None]:
    """
    Parse a comma-separated tag matcher list.

    Each entry is either "key" (any value matches) or "key=value"
    (exact value match). Blank entries are ignored.

    >>> parse_tag_matchers("team=ci, ephemeral")
    {'team': 'ci', 'ephemeral': None}
    """
    matchers: dict[str, str | None] = {}
    if not value:
        return matchers

    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, tag_value = entry.partition("=")
        key = key.strip()
        if not key:
            raise ValueError(f"Invalid tag matcher {entry!r}: empty key")
        matchers[key] = tag_value.strip() if sep else None
    return matchers


def _matches(tags_dict: Mapping[str, str], key: str, value: str | None) -> bool:
    if key not in tags_dict:
        return False
    return value is None or tags_dict[key] == value


def managed_per_tags(
    tags_dict: Mapping[str, str],
    include_tags: Mapping[str, str | None] | None = None,
    exclude_tags: Mapping[str, str | None] | None = None,
) -> bool:
    """
    Check whether a resource is managed by the janitor according to its tags.

    A resource is managed when it matches every include matcher and none
    of the exclude matchers. With no matchers configured every resource
    is managed.
    """
    for key, value in (include_tags or {}).items():
        if not _matches(tags_dict, key, value):
            return False

    for key, value in (exclude_tags or {}).items():
        if _matches(tags_dict, key, value):
            return False

    return True


def get_account_id(sts: Any) -> str:
    """Return the AWS account ID of the caller."""
    account_id = sts.get_caller_identity()["Account"]
    logger.debug(f"Resolved caller account {account_id}")
    return account_id
