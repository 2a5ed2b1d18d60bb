"""
Base guard implementations and composition patterns.

PredicateGuard adapts a pure function over a ProjectView into a
GuardInterface. CompositeGuard implements logical AND for guard composition.
"""

from collections.abc import Callable

from phasegate.domain.interfaces import GuardInterface
from phasegate.domain.models import GuardResult, ProjectView


class PredicateGuard(GuardInterface):
    """
    Guard backed by a boolean predicate.

    The description doubles as the guard name and as the feedback shown
    when the predicate fails, so it should read as the unmet condition
    (e.g. "task list approved").
    """

    def __init__(
        self,
        name: str,
        predicate: Callable[[ProjectView], bool],
        feedback: str | None = None,
    ):
        """
        Args:
            name: Human-readable condition the guard checks
            predicate: Pure function of the project snapshot
            feedback: Message on failure (defaults to "requires: <name>")
        """
        self.name = name
        self._predicate = predicate
        self._feedback = feedback or f"requires: {name}"

    def evaluate(self, project: ProjectView) -> GuardResult:
        if self._predicate(project):
            return GuardResult(passed=True, guard_name=self.name)
        return GuardResult(passed=False, feedback=self._feedback, guard_name=self.name)

    def __repr__(self) -> str:
        return f"PredicateGuard({self.name!r})"


class CompositeGuard(GuardInterface):
    """
    Logical AND of multiple guards. All must pass.

    Evaluates guards in order and short-circuits on the first failure,
    returning that guard's result so the caller sees which condition is
    missing.
    """

    def __init__(self, *guards: GuardInterface, name: str | None = None):
        """
        Args:
            *guards: Guards to compose (evaluated in order)
            name: Optional description of the combined condition
        """
        self.guards = guards
        self.name = name or " and ".join(g.name for g in guards) or "always"

    def evaluate(self, project: ProjectView) -> GuardResult:
        for guard in self.guards:
            result = guard.evaluate(project)
            if not result.passed:
                return result  # Short-circuit on failure
        return GuardResult(passed=True, feedback="All guards passed", guard_name=self.name)


def all_of(*guards: GuardInterface, name: str | None = None) -> CompositeGuard:
    return CompositeGuard(*guards, name=name)
