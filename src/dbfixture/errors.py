"""Domain errors for dbfixture."""


class FixtureError(RuntimeError):
    """Raised when the database fixture cannot continue safely."""


class SnapshotError(FixtureError):
    """Raised when the snapshot image could not be created."""
