"""
dbfixture - Snapshot-backed MySQL containers for integration tests
"""

__version__ = "0.1.0"

from .core import DbFixtureController, FixtureError, SnapshotError
from .models import FixtureConfig, FixtureState

__all__ = ["DbFixtureController", "FixtureConfig", "FixtureError", "FixtureState", "SnapshotError"]
