"""Snapshot subsystem exceptions."""


class SnapshotError(Exception):
    """Base class for snapshot errors."""


class SnapshotProductionError(SnapshotError):
    """The value or its artifact could not be produced."""


class SnapshotTimeoutError(SnapshotError):
    """Artifact production did not resolve within the allowed time."""


class SnapshotConfigError(SnapshotError):
    """Invalid snapshot configuration."""


class SnapshotAssertionError(SnapshotError, AssertionError):
    """One or more snapshots did not match their references."""
