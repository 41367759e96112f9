"""Utility functions for the AWS janitor."""

from .aws_helpers import (
    convert_tags_to_dict,
    get_account_id,
    get_name_tag,
    managed_per_tags,
    parse_tag_matchers,
)
from .logging_config import get_logger

__all__ = [
    "convert_tags_to_dict",
    "get_account_id",
    "get_name_tag",
    "managed_per_tags",
    "parse_tag_matchers",
    "get_logger",
]
