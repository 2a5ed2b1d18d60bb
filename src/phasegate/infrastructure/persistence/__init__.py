"""
Persistence adapters for the project document.
"""

from phasegate.infrastructure.persistence.filesystem import (
    DEFAULT_STATE_PATH,
    FilesystemDocumentStore,
)
from phasegate.infrastructure.persistence.memory import InMemoryDocumentStore

__all__ = [
    "DEFAULT_STATE_PATH",
    "InMemoryDocumentStore",
    "FilesystemDocumentStore",
]
