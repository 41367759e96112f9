"""Data models for the AWS janitor."""

from .candidate import DeletionCandidate, SweepResult
from .config import Config, SweepOptions
from .identity import ResourceIdentity

__all__ = [
    "Config",
    "DeletionCandidate",
    "ResourceIdentity",
    "SweepOptions",
    "SweepResult",
]
