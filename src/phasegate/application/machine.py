"""
StateMachine: guarded state/event/transition graph.

States are configured up front through MachineBuilder; each configured
state holds its outgoing transitions (one per event), entry and exit
actions, and an optional determiner that picks the event for advance().

Firing order on success:
    guard -> exit actions (source) -> current state updated -> history
    recorded -> entry actions (target) -> persist -> guidance emitted

Guards see a fresh read-only ProjectView on every evaluation. Nothing is
persisted when the guard fails or an action raises.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from phasegate.domain.exceptions import (
    ConfigurationError,
    GuardFailedError,
    InvalidTransitionError,
    NoTransitionConfiguredError,
    StateNotConfiguredError,
    TransitionActionError,
)
from phasegate.domain.interfaces import ClockInterface, GuardInterface
from phasegate.domain.models import GuardResult, ProjectView, TransitionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single edge of the graph."""

    source: str
    event: str
    target: str
    guard: GuardInterface | None = None
    description: str = ""

    @property
    def guard_description(self) -> str:
        return self.guard.name if self.guard is not None else ""


Action = Callable[[Transition], None]
Determiner = Callable[[ProjectView], str]
SnapshotProvider = Callable[[], ProjectView]


@dataclass
class StateConfig:
    """Configuration of one state: outgoing edges, hooks and determiner."""

    name: str
    transitions: dict[str, Transition] = field(default_factory=dict)
    on_entry: list[Action] = field(default_factory=list)
    on_exit: list[Action] = field(default_factory=list)
    determiner: Determiner | None = None


class StateBuilder:
    """Fluent configuration of a single state (returned by MachineBuilder.configure)."""

    def __init__(self, config: StateConfig):
        self._config = config

    def permit(
        self,
        event: str,
        target: str,
        guard: GuardInterface | None = None,
        description: str = "",
    ) -> "StateBuilder":
        if event in self._config.transitions:
            raise ConfigurationError(
                f"event '{event}' is already configured for state '{self._config.name}'"
            )
        self._config.transitions[event] = Transition(
            source=self._config.name,
            event=event,
            target=target,
            guard=guard,
            description=description,
        )
        return self

    def on_entry(self, action: Action) -> "StateBuilder":
        self._config.on_entry.append(action)
        return self

    def on_exit(self, action: Action) -> "StateBuilder":
        self._config.on_exit.append(action)
        return self

    def determiner(self, determiner: Determiner) -> "StateBuilder":
        self._config.determiner = determiner
        return self


class MachineBuilder:
    """
    Builds a StateMachine state-first, then transitions.

    Example:
        builder = MachineBuilder()
        builder.configure("Planning").permit("complete_planning", "Executing", guard)
        builder.configure("Executing")
        machine = builder.build("Planning", snapshot=project.view, clock=clock)
    """

    def __init__(self) -> None:
        self._states: dict[str, StateConfig] = {}

    def configure(self, state: str) -> StateBuilder:
        """Configure (or continue configuring) a state."""
        config = self._states.setdefault(state, StateConfig(name=state))
        return StateBuilder(config)

    def build(
        self,
        initial_state: str,
        snapshot: SnapshotProvider,
        clock: ClockInterface,
        on_transition: Callable[[TransitionRecord], None] | None = None,
        persist: Callable[[], None] | None = None,
        guidance: Callable[[str], None] | None = None,
    ) -> "StateMachine":
        """
        Validate the graph and create the machine.

        Raises:
            StateNotConfiguredError: A transition targets an unconfigured state
        """
        for config in self._states.values():
            for transition in config.transitions.values():
                if transition.target not in self._states:
                    raise StateNotConfiguredError(transition.target)
        return StateMachine(
            states=dict(self._states),
            initial_state=initial_state,
            snapshot=snapshot,
            clock=clock,
            on_transition=on_transition,
            persist=persist,
            guidance=guidance,
        )


class StateMachine:
    """
    Guard-gated state machine over a project snapshot.

    The machine does not persist on construction. After a successful fire
    it calls ``persist``; callers are responsible for persisting mutations
    made before firing.
    """

    def __init__(
        self,
        states: dict[str, StateConfig],
        initial_state: str,
        snapshot: SnapshotProvider,
        clock: ClockInterface,
        on_transition: Callable[[TransitionRecord], None] | None = None,
        persist: Callable[[], None] | None = None,
        guidance: Callable[[str], None] | None = None,
    ):
        """
        Args:
            states: Configured states keyed by name
            initial_state: State to start in (normally read from the document)
            snapshot: Returns a fresh read-only view for guards and determiners
            clock: Timestamp source for history records
            on_transition: Receives each history record
            persist: Called after a successful transition
            guidance: Emits orchestration guidance for the entered state
        """
        self._states = states
        self._state = initial_state
        self._snapshot = snapshot
        self._clock = clock
        self._on_transition = on_transition
        self._persist = persist
        self._guidance = guidance

    @property
    def state(self) -> str:
        return self._state

    @property
    def states(self) -> tuple[str, ...]:
        return tuple(self._states)

    def is_terminal(self) -> bool:
        """True if the current state has neither a determiner nor outgoing edges."""
        config = self._current_config()
        return config.determiner is None and not config.transitions

    def transitions_from(self, state: str | None = None) -> list[Transition]:
        """Configured transitions from a state (default: current), sorted by event."""
        config = self._config_for(state or self._state)
        return sorted(config.transitions.values(), key=lambda t: t.event)

    def check(self, event: str) -> GuardResult:
        """
        Evaluate the guard for ``event`` without firing.

        Raises:
            StateNotConfiguredError: Current state is not configured
            InvalidTransitionError: No edge for (current state, event)
        """
        transition = self._transition_for(event)
        return self._evaluate(transition)

    def can_fire(self, event: str) -> bool:
        """True if an edge exists for ``event`` and its guard passes. No side effects."""
        config = self._current_config()
        transition = config.transitions.get(event)
        if transition is None:
            return False
        return self._evaluate(transition).passed

    def permitted_events(self) -> list[str]:
        """Events that could fire right now."""
        return [t.event for t in self.transitions_from() if self._evaluate(t).passed]

    def fire(self, event: str) -> TransitionRecord:
        """
        Fire ``event`` from the current state.

        Returns:
            The history record of the transition

        Raises:
            StateNotConfiguredError: Current state is not configured (fatal)
            InvalidTransitionError: No edge for (current state, event)
            GuardFailedError: The edge's guard returned false
            TransitionActionError: An entry or exit action raised
        """
        transition = self._transition_for(event)
        result = self._evaluate(transition)
        if not result.passed:
            logger.debug(
                "Guard '%s' blocked %s from %s: %s",
                result.guard_name,
                event,
                self._state,
                result.feedback,
            )
            raise GuardFailedError(self._state, event, result)

        source = self._state
        target_config = self._config_for(transition.target)
        record = TransitionRecord(
            from_state=source,
            to_state=transition.target,
            event=event,
            timestamp=self._clock.now(),
        )
        try:
            for action in self._states[source].on_exit:
                action(transition)
            self._state = transition.target
            if self._on_transition is not None:
                self._on_transition(record)
            for action in target_config.on_entry:
                action(transition)
        except Exception as e:
            # Nothing has been persisted; the owner restores its record.
            self._state = source
            raise TransitionActionError(source, event, e) from e

        logger.info("Transition %s --%s--> %s", source, event, transition.target)

        if self._persist is not None:
            self._persist()

        self._emit_guidance(transition.target)
        return record

    def advance(self) -> TransitionRecord:
        """
        Fire the event chosen by the current state's determiner.

        Raises:
            NoTransitionConfiguredError: No determiner (terminal state)
            DeterminerError: The determiner could not pick an event
            GuardFailedError / InvalidTransitionError: As for fire()
        """
        config = self._current_config()
        if config.determiner is None:
            raise NoTransitionConfiguredError(self._state)
        event = config.determiner(self._snapshot())
        logger.debug("Determiner for %s selected %s", self._state, event)
        return self.fire(event)

    def _evaluate(self, transition: Transition) -> GuardResult:
        if transition.guard is None:
            return GuardResult(passed=True)
        return transition.guard.evaluate(self._snapshot())

    def _transition_for(self, event: str) -> Transition:
        config = self._current_config()
        transition = config.transitions.get(event)
        if transition is None:
            raise InvalidTransitionError(
                self._state, event, sorted(config.transitions)
            )
        return transition

    def _current_config(self) -> StateConfig:
        return self._config_for(self._state)

    def _config_for(self, state: str) -> StateConfig:
        config = self._states.get(state)
        if config is None:
            raise StateNotConfiguredError(state)
        return config

    def _emit_guidance(self, state: str) -> None:
        if self._guidance is None:
            return
        try:
            self._guidance(state)
        except Exception as e:
            logger.warning("Failed to emit guidance for state %s: %s", state, e)
