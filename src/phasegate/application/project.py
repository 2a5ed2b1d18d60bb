"""
Project: the aggregate root tying the document, its phases and the machine.

Save-before-event: phase mutations only change memory and mark the project
dirty. ``fire()`` and ``advance()`` persist dirty mutations before the
guard is evaluated, and the machine persists again after a successful
transition, so the document on disk always reflects what the guard saw.
"""

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import fields
from types import MappingProxyType
from typing import Any

from phasegate.application.machine import StateMachine, Transition
from phasegate.application.phase import NO_CAPABILITIES, Phase, PhaseCapabilities
from phasegate.application.project_type import ProjectTypeConfig
from phasegate.domain.document import to_document
from phasegate.domain.exceptions import (
    DocumentValidationError,
    PhaseNotFoundError,
    ProjectDeletedError,
    TransitionActionError,
)
from phasegate.domain.fieldpath import get_field, set_field
from phasegate.domain.interfaces import (
    ClockInterface,
    CodeHostInterface,
    DocumentStoreInterface,
)
from phasegate.domain.models import (
    GuardResult,
    PhaseStatus,
    ProjectState,
    ProjectView,
    TransitionRecord,
)
from phasegate.schemas import validate_document

logger = logging.getLogger(__name__)

GuidanceSink = Callable[[str], None]


class Project:
    """A loaded project bound to its type's state machine."""

    def __init__(
        self,
        state: ProjectState,
        config: ProjectTypeConfig,
        store: DocumentStoreInterface,
        clock: ClockInterface,
        code_host: CodeHostInterface | None = None,
        guidance: GuidanceSink | None = None,
    ):
        """
        Args:
            state: Deserialized (and validated) project record
            config: The registered type this project declares
            store: Where the document lives
            clock: Timestamp source
            code_host: Optional pull-request client for finalize actions
            guidance: Receives rendered guidance after each transition
        """
        self.config = config
        self.clock = clock
        self.code_host = code_host
        self._state = state
        self._store = store
        self._guidance = guidance
        self._dirty = False
        self._deleted = False
        self._phases = {
            name: Phase(
                name,
                record,
                _capabilities_for(config, name),
                clock,
                on_change=self.mark_dirty,
            )
            for name, record in state.phases.items()
        }
        self._machine = config.build_machine(self)

    def __repr__(self) -> str:
        return (
            f"Project({self.name!r}, type={self.type!r}, state={self.current_state!r})"
        )

    # =========================================================================
    # IDENTITY AND STATE
    # =========================================================================

    @property
    def state(self) -> ProjectState:
        """The mutable record (entry/exit actions write through this)."""
        return self._state

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def type(self) -> str:
        return self._state.type

    @property
    def branch(self) -> str:
        return self._state.branch

    @property
    def current_state(self) -> str:
        return self._state.current_state

    @property
    def history(self) -> tuple[TransitionRecord, ...]:
        return tuple(self._state.history)

    @property
    def machine(self) -> StateMachine:
        return self._machine

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def deleted(self) -> bool:
        return self._deleted

    def view(self) -> ProjectView:
        """Fresh read-only snapshot of the whole document."""
        return self._state.view()

    def mark_dirty(self) -> None:
        self._dirty = True

    def set_field(self, path: str, value: str) -> None:
        """Write a project field or ``metadata.<key>`` path."""
        set_field(self._state, path, value)
        self.mark_dirty()

    def get_field(self, path: str) -> Any:
        return get_field(self._state, path)

    # =========================================================================
    # PHASES
    # =========================================================================

    @property
    def phases(self) -> Mapping[str, Phase]:
        return MappingProxyType(self._phases)

    def phase(self, name: str) -> Phase:
        """
        Raises:
            PhaseNotFoundError: No phase with that name
        """
        phase = self._phases.get(name)
        if phase is None:
            raise PhaseNotFoundError(name)
        return phase

    def current_phase(self) -> Phase | None:
        """The phase currently in progress (latest declared wins), if any."""
        active = [p for p in self._phases.values() if p.status is PhaseStatus.IN_PROGRESS]
        return active[-1] if active else None

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def can_fire(self, event: str) -> bool:
        return self._machine.can_fire(event)

    def check(self, event: str) -> GuardResult:
        return self._machine.check(event)

    def permitted_events(self) -> list[str]:
        return self._machine.permitted_events()

    def transitions(self) -> list[Transition]:
        """Configured transitions out of the current state."""
        return self._machine.transitions_from()

    def is_terminal(self) -> bool:
        return self._machine.is_terminal()

    def fire(self, event: str) -> TransitionRecord:
        """Persist pending mutations, then fire ``event``."""
        self._save_if_dirty()
        return self._rollback_on_action_error(lambda: self._machine.fire(event))

    def advance(self) -> TransitionRecord:
        """Persist pending mutations, then fire the determiner's event."""
        self._save_if_dirty()
        return self._rollback_on_action_error(self._machine.advance)

    def _rollback_on_action_error(
        self, step: Callable[[], TransitionRecord]
    ) -> TransitionRecord:
        """
        Run ``step``; if an entry or exit action fails, put the record back
        exactly as it was before the transition started.
        """
        snapshot = copy.deepcopy(self._state)
        dirty = self._dirty
        try:
            return step()
        except TransitionActionError:
            _restore_in_place(self._state, snapshot)
            self._dirty = dirty
            logger.warning(
                "Rolled back project %s to %s after a failed action",
                self.name,
                self.current_state,
            )
            raise

    def record_transition(self, record: TransitionRecord) -> None:
        """Machine callback: sync the record's statechart with a transition."""
        self._state.current_state = record.to_state
        self._state.history.append(record)
        self._state.statechart_updated_at = record.timestamp
        self._dirty = True

    def persist_after_transition(self) -> None:
        """Machine callback: persist unless the entry action deleted the project."""
        if self._deleted:
            logger.debug("Project %s deleted during transition, not saving", self.name)
            return
        self.save()

    def emit_guidance(self, state: str) -> None:
        """Machine callback: render the state's prompt to the guidance sink."""
        if self._guidance is None:
            return
        text = self.prompt(state)
        if text:
            self._guidance(text)

    # =========================================================================
    # PROMPTS
    # =========================================================================

    def prompt(self, state: str | None = None) -> str:
        """Guidance text for ``state`` (default: current state)."""
        return self.config.render_prompt(state or self.current_state, self.view())

    def orchestrator_prompt(self) -> str:
        return self.config.render_orchestrator_prompt(self.view())

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_document(self) -> dict[str, Any]:
        return to_document(self._state)

    def save(self) -> None:
        """
        Validate and atomically rewrite the document.

        Raises:
            ProjectDeletedError: The project was deleted
            DocumentValidationError: Schema or metadata validation failed (nothing written)
            StorageError: The store could not write
        """
        if self._deleted:
            raise ProjectDeletedError(f"project '{self.name}' has been deleted")

        self._state.updated_at = self.clock.now()
        document = self.to_document()
        validate_document(document, project_types=[self.config.name])
        errors = self.config.validate_metadata(self._state.phases)
        if errors:
            raise DocumentValidationError("phase metadata failed validation", errors)

        self._store.write(document)
        self._dirty = False
        logger.debug("Saved project %s at state %s", self.name, self.current_state)

    def delete(self) -> None:
        """Remove the document; the in-memory project can no longer be saved."""
        self._store.delete()
        self._deleted = True
        logger.info("Deleted project %s", self.name)

    def _save_if_dirty(self) -> None:
        if self._dirty and not self._deleted:
            self.save()


def _capabilities_for(config: ProjectTypeConfig, name: str) -> PhaseCapabilities:
    phase_config = config.phase_config(name)
    return phase_config.capabilities if phase_config is not None else NO_CAPABILITIES


def _restore_in_place(state: ProjectState, snapshot: ProjectState) -> None:
    # Phase objects hold their PhaseState records, so records are refilled, not replaced.
    for name, record in state.phases.items():
        saved = snapshot.phases.get(name)
        if saved is not None:
            for f in fields(record):
                setattr(record, f.name, getattr(saved, f.name))
            snapshot.phases[name] = record
    for f in fields(state):
        setattr(state, f.name, getattr(snapshot, f.name))
