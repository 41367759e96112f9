"""Janitor exceptions."""

from __future__ import annotations


class JanitorError(Exception):
    """Base class for janitor failures."""


class EnumerationError(JanitorError):
    """Listing resources for an account/region failed.

    Raised before any deletion is attempted for that account/region.
    """

    def __init__(self, message: str, account: str, region: str):
        super().__init__(message)
        self.account = account
        self.region = region


class TrackingStateError(JanitorError):
    """The tracking set could not be loaded or saved."""
