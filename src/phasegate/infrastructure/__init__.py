"""
Infrastructure layer for phasegate.

Contains adapters for external concerns (document storage, clock, code hosting).
"""

from phasegate.infrastructure.clock import FixedClock, SystemClock
from phasegate.infrastructure.github import GitHubCLIClient
from phasegate.infrastructure.persistence import (
    DEFAULT_STATE_PATH,
    FilesystemDocumentStore,
    InMemoryDocumentStore,
)

__all__ = [
    # Persistence
    "DEFAULT_STATE_PATH",
    "InMemoryDocumentStore",
    "FilesystemDocumentStore",
    # Clock
    "SystemClock",
    "FixedClock",
    # Code hosting
    "GitHubCLIClient",
]
