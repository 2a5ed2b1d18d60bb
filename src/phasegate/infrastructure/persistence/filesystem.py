"""
Filesystem implementation of the project document store.

The whole document is rewritten on every save using write-to-temp + rename,
so readers see either the old or the new document, never a partial one.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from phasegate.domain.exceptions import StorageError
from phasegate.domain.interfaces import DocumentStoreInterface

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = Path(".phasegate") / "project" / "state.json"


class FilesystemDocumentStore(DocumentStoreInterface):
    """
    JSON document on disk, by default at
    ``<workspace>/.phasegate/project/state.json``.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @classmethod
    def for_workspace(
        cls, workspace: str | Path, relative_path: str | Path = DEFAULT_STATE_PATH
    ) -> "FilesystemDocumentStore":
        return cls(Path(workspace) / relative_path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def read(self) -> dict[str, Any]:
        if not self._path.exists():
            raise StorageError(f"no project found at {self._path}")
        try:
            with open(self._path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"corrupt project document {self._path}: {e}") from e
        except OSError as e:
            raise StorageError(f"cannot read {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"project document {self._path} is not a JSON object")
        return data

    def write(self, document: dict[str, Any]) -> None:
        """Atomically replace the document using write-to-temp + rename."""
        temp_path = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
            os.replace(temp_path, self._path)  # Atomic on POSIX
        except (OSError, TypeError, ValueError) as e:
            temp_path.unlink(missing_ok=True)
            raise StorageError(f"cannot write {self._path}: {e}") from e
        logger.debug("Wrote project document %s", self._path)

    def delete(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"cannot delete {self._path}: {e}") from e
        logger.debug("Deleted project document %s", self._path)
