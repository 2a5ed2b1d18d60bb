"""
Domain interfaces (Ports) for the project lifecycle engine.

These abstract base classes define the contracts that implementations must satisfy.
They have no external dependencies and represent the core domain boundaries.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from phasegate.domain.models import GuardResult, ProjectView


class GuardInterface(ABC):
    """
    Port for transition guards.

    Guards are pure predicates over a read-only project snapshot. They must
    not mutate anything and must return the same result for the same
    document: the state machine evaluates them speculatively (can_fire)
    and again when firing.
    """

    name: str = "guard"

    @abstractmethod
    def evaluate(self, project: "ProjectView") -> "GuardResult":
        """
        Evaluate the guard.

        Args:
            project: Snapshot of the project document

        Returns:
            GuardResult with passed=True/False and feedback
        """
        pass


class DocumentStoreInterface(ABC):
    """
    Port for the persisted project document.

    Implementations read and write the whole document at once; a write
    either replaces the previous document completely or leaves it intact.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Return True if a document is present."""
        pass

    @abstractmethod
    def read(self) -> dict[str, Any]:
        """
        Read the full document.

        Raises:
            StorageError: If the document is missing or unreadable
        """
        pass

    @abstractmethod
    def write(self, document: dict[str, Any]) -> None:
        """
        Atomically replace the document.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Remove the document (finalize phase only)."""
        pass


class ClockInterface(ABC):
    """Port for timestamps, injectable for deterministic tests."""

    @abstractmethod
    def now(self) -> str:
        """Current time as an ISO-8601 string."""
        pass


class CodeHostInterface(ABC):
    """Port for code hosting (pull request creation)."""

    @abstractmethod
    def create_pull_request(self, title: str, body: str, branch: str) -> str:
        """
        Open a pull request.

        Returns:
            URL of the created pull request

        Raises:
            CodeHostError: If the hosting client fails
        """
        pass
