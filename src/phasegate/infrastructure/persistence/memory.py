"""
In-memory implementation of the project document store.

Useful for testing. Documents are deep-copied in and out so callers cannot
alias the stored state.
"""

import copy
from typing import Any

from phasegate.domain.exceptions import StorageError
from phasegate.domain.interfaces import DocumentStoreInterface


class InMemoryDocumentStore(DocumentStoreInterface):
    """Simple in-memory store for testing."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self._document = copy.deepcopy(document)
        self.writes = 0

    def exists(self) -> bool:
        return self._document is not None

    def read(self) -> dict[str, Any]:
        if self._document is None:
            raise StorageError("no project document stored")
        return copy.deepcopy(self._document)

    def write(self, document: dict[str, Any]) -> None:
        self._document = copy.deepcopy(document)
        self.writes += 1

    def delete(self) -> None:
        self._document = None
