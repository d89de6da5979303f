"""Verdict values shared by the tallies and dispositions."""

from enum import Enum


class Status(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    PENDING = "Pending"


def category_status(complete: bool, rejected: bool) -> Status:
    """A confirmed rejection stands; otherwise no verdict while incomplete."""
    if rejected:
        return Status.REJECTED
    if not complete:
        return Status.PENDING
    return Status.ACCEPTED
