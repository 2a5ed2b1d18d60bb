"""
Project types: declarative lifecycle graphs bound to a project instance.

A ProjectTypeConfig is immutable and shared; ``build_machine`` binds its
guards, actions, determiners and prompts to one Project, adding the
automatic phase status updates:

- entering a phase's start state marks it ``in_progress`` and stamps
  ``started_at``; re-entering a completed or failed phase bumps
  ``iteration``
- leaving a phase's end state marks it ``completed`` (or ``failed`` when
  the transition names it as its failed phase) and stamps the time
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from phasegate.application.machine import (
    Determiner,
    MachineBuilder,
    StateMachine,
    Transition,
)
from phasegate.application.phase import PhaseCapabilities
from phasegate.domain.exceptions import ConfigurationError
from phasegate.domain.interfaces import GuardInterface
from phasegate.domain.models import PhaseState, PhaseStatus, ProjectView

if TYPE_CHECKING:
    from phasegate.application.project import Project

ProjectAction = Callable[["Project"], None]
PromptFn = Callable[[ProjectView], str]


@dataclass(frozen=True)
class PhaseConfig:
    """Declared phase: capabilities, state span and metadata model."""

    name: str
    capabilities: PhaseCapabilities
    start_state: str | None = None
    end_state: str | None = None
    metadata_model: type[BaseModel] | None = None
    enabled: bool = True

    def validate_metadata(self, metadata: Mapping[str, Any]) -> list[str]:
        """Validate phase metadata against the declared model; returns error strings."""
        if self.metadata_model is None:
            return []
        try:
            self.metadata_model.model_validate(dict(metadata))
        except ValidationError as e:
            return [
                f"phases.{self.name}.metadata.{'.'.join(str(p) for p in err['loc'])}: "
                f"{err['msg']}"
                for err in e.errors()
            ]
        return []


@dataclass(frozen=True)
class TransitionConfig:
    """One edge of a project type's graph, with project-bound actions."""

    source: str
    target: str
    event: str
    guard: GuardInterface | None = None
    description: str = ""
    on_entry: ProjectAction | None = None
    on_exit: ProjectAction | None = None
    failed_phase: str | None = None


@dataclass(frozen=True)
class ProjectTypeConfig:
    """Immutable definition of a project type."""

    name: str
    description: str
    initial_state: str
    phases: tuple[PhaseConfig, ...]
    transitions: tuple[TransitionConfig, ...]
    determiners: Mapping[str, Determiner] = field(
        default_factory=lambda: MappingProxyType({})
    )
    prompts: Mapping[str, PromptFn] = field(
        default_factory=lambda: MappingProxyType({})
    )
    orchestrator_prompt: PromptFn | None = None
    branch_prefix: str | None = None
    initializer: ProjectAction | None = None

    @property
    def states(self) -> tuple[str, ...]:
        """Every state the graph mentions, in first-seen order."""
        seen = dict.fromkeys([self.initial_state])
        for t in self.transitions:
            seen.setdefault(t.source)
            seen.setdefault(t.target)
        for phase in self.phases:
            for state in (phase.start_state, phase.end_state):
                if state is not None:
                    seen.setdefault(state)
        return tuple(seen)

    @property
    def phase_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.phases)

    def phase_config(self, name: str) -> PhaseConfig | None:
        for phase in self.phases:
            if phase.name == name:
                return phase
        return None

    def new_phase_states(self, created_at: str) -> dict[str, PhaseState]:
        """Fresh phase records; the phase starting at the initial state is already in progress."""
        phases: dict[str, PhaseState] = {}
        for p in self.phases:
            record = PhaseState(created_at=created_at, enabled=p.enabled)
            if p.start_state == self.initial_state:
                record.status = PhaseStatus.IN_PROGRESS
                record.started_at = created_at
            phases[p.name] = record
        return phases

    def validate_metadata(self, phases: Mapping[str, PhaseState]) -> list[str]:
        errors: list[str] = []
        for phase in self.phases:
            record = phases.get(phase.name)
            if record is not None:
                errors.extend(phase.validate_metadata(record.metadata))
        return errors

    def render_prompt(self, state: str, project: ProjectView) -> str:
        """Guidance for a state, or an empty string when none is configured."""
        prompt = self.prompts.get(state)
        return prompt(project) if prompt is not None else ""

    def render_orchestrator_prompt(self, project: ProjectView) -> str:
        if self.orchestrator_prompt is None:
            return ""
        return self.orchestrator_prompt(project)

    def build_machine(self, project: "Project") -> StateMachine:
        """Bind this type's graph to a project instance."""
        builder = MachineBuilder()
        for state in self.states:
            config = builder.configure(state)
            determiner = self.determiners.get(state)
            if determiner is not None:
                config.determiner(determiner)

        for tc in self.transitions:
            builder.configure(tc.source).permit(
                tc.event, tc.target, guard=tc.guard, description=tc.description
            )
            if tc.on_exit is not None:
                builder.configure(tc.source).on_exit(
                    _bind_transition_action(project, tc, tc.on_exit)
                )
            if tc.on_entry is not None:
                builder.configure(tc.target).on_entry(
                    _bind_transition_action(project, tc, tc.on_entry)
                )

        failed_phases = {
            (tc.source, tc.event): tc.failed_phase
            for tc in self.transitions
            if tc.failed_phase is not None
        }
        for phase in self.phases:
            if phase.end_state is not None:
                builder.configure(phase.end_state).on_exit(
                    _phase_exit_hook(project, phase, failed_phases)
                )
            if phase.start_state is not None:
                builder.configure(phase.start_state).on_entry(
                    _phase_entry_hook(project, phase)
                )

        return builder.build(
            project.current_state,
            snapshot=project.view,
            clock=project.clock,
            on_transition=project.record_transition,
            persist=project.persist_after_transition,
            guidance=project.emit_guidance,
        )


def _bind_transition_action(
    project: "Project", tc: TransitionConfig, action: ProjectAction
) -> Callable[[Transition], None]:
    def bound(transition: Transition) -> None:
        if transition.source == tc.source and transition.event == tc.event:
            action(project)

    return bound


def _phase_entry_hook(
    project: "Project", phase: PhaseConfig
) -> Callable[[Transition], None]:
    def on_entry(transition: Transition) -> None:
        record = project.state.phases.get(phase.name)
        if record is None:
            return
        now = project.clock.now()
        if record.status in (PhaseStatus.COMPLETED, PhaseStatus.FAILED):
            record.iteration += 1
            record.completed_at = None
            record.failed_at = None
        if record.status is not PhaseStatus.IN_PROGRESS:
            record.status = PhaseStatus.IN_PROGRESS
            record.started_at = now

    return on_entry


def _phase_exit_hook(
    project: "Project",
    phase: PhaseConfig,
    failed_phases: Mapping[tuple[str, str], str],
) -> Callable[[Transition], None]:
    def on_exit(transition: Transition) -> None:
        record = project.state.phases.get(phase.name)
        if record is None:
            return
        now = project.clock.now()
        if failed_phases.get((transition.source, transition.event)) == phase.name:
            record.status = PhaseStatus.FAILED
            record.failed_at = now
        else:
            record.status = PhaseStatus.COMPLETED
            record.completed_at = now

    return on_exit


class ProjectTypeBuilder:
    """
    Fluent builder for ProjectTypeConfig.

    Example:
        config = (
            ProjectTypeBuilder("exploration", "Research and summarize a topic")
            .initial_state("Active")
            .phase("exploration", ARTIFACTS_AND_TASKS, start_state="Active")
            .transition("Active", "Summarizing", "begin_summarizing", guard=...)
            .on_advance("Active", "begin_summarizing")
            .build()
        )
    """

    def __init__(self, name: str, description: str = ""):
        self._name = name
        self._description = description
        self._initial_state: str | None = None
        self._phases: list[PhaseConfig] = []
        self._transitions: list[TransitionConfig] = []
        self._determiners: dict[str, Determiner] = {}
        self._prompts: dict[str, PromptFn] = {}
        self._orchestrator_prompt: PromptFn | None = None
        self._branch_prefix: str | None = None
        self._initializer: ProjectAction | None = None

    def initial_state(self, state: str) -> "ProjectTypeBuilder":
        self._initial_state = state
        return self

    def branch_prefix(self, prefix: str) -> "ProjectTypeBuilder":
        self._branch_prefix = prefix
        return self

    def phase(
        self,
        name: str,
        capabilities: PhaseCapabilities,
        start_state: str | None = None,
        end_state: str | None = None,
        metadata_model: type[BaseModel] | None = None,
        enabled: bool = True,
    ) -> "ProjectTypeBuilder":
        if any(p.name == name for p in self._phases):
            raise ConfigurationError(
                f"phase '{name}' is declared twice in project type '{self._name}'"
            )
        self._phases.append(
            PhaseConfig(
                name=name,
                capabilities=capabilities,
                start_state=start_state,
                end_state=end_state if end_state is not None else start_state,
                metadata_model=metadata_model,
                enabled=enabled,
            )
        )
        return self

    def transition(
        self,
        source: str,
        target: str,
        event: str,
        guard: GuardInterface | None = None,
        description: str = "",
        on_entry: ProjectAction | None = None,
        on_exit: ProjectAction | None = None,
        failed_phase: str | None = None,
    ) -> "ProjectTypeBuilder":
        self._transitions.append(
            TransitionConfig(
                source=source,
                target=target,
                event=event,
                guard=guard,
                description=description,
                on_entry=on_entry,
                on_exit=on_exit,
                failed_phase=failed_phase,
            )
        )
        return self

    def on_advance(
        self, state: str, determiner: Determiner | str
    ) -> "ProjectTypeBuilder":
        """Register how advance() picks the event in ``state`` (a fixed event or a function)."""
        if isinstance(determiner, str):
            event = determiner
            self._determiners[state] = lambda _project: event
        else:
            self._determiners[state] = determiner
        return self

    def prompt(self, state: str, prompt: PromptFn) -> "ProjectTypeBuilder":
        self._prompts[state] = prompt
        return self

    def orchestrator_prompt(self, prompt: PromptFn) -> "ProjectTypeBuilder":
        self._orchestrator_prompt = prompt
        return self

    def initializer(self, action: ProjectAction) -> "ProjectTypeBuilder":
        self._initializer = action
        return self

    def build(self) -> ProjectTypeConfig:
        """
        Freeze the configuration.

        Raises:
            ConfigurationError: Missing initial state, duplicate edges,
                determiners or failed phases that reference unknown names
        """
        if self._initial_state is None:
            raise ConfigurationError(
                f"project type '{self._name}' has no initial state"
            )

        edges: set[tuple[str, str]] = set()
        for tc in self._transitions:
            if (tc.source, tc.event) in edges:
                raise ConfigurationError(
                    f"project type '{self._name}': event '{tc.event}' configured "
                    f"twice from state '{tc.source}'"
                )
            edges.add((tc.source, tc.event))
            if tc.failed_phase is not None and not any(
                p.name == tc.failed_phase for p in self._phases
            ):
                raise ConfigurationError(
                    f"project type '{self._name}': unknown failed phase "
                    f"'{tc.failed_phase}'"
                )

        sources = {tc.source for tc in self._transitions}
        for state in self._determiners:
            if state not in sources:
                raise ConfigurationError(
                    f"project type '{self._name}': determiner configured for state "
                    f"'{state}' which has no outgoing transitions"
                )

        return ProjectTypeConfig(
            name=self._name,
            description=self._description,
            initial_state=self._initial_state,
            phases=tuple(self._phases),
            transitions=tuple(self._transitions),
            determiners=MappingProxyType(dict(self._determiners)),
            prompts=MappingProxyType(dict(self._prompts)),
            orchestrator_prompt=self._orchestrator_prompt,
            branch_prefix=self._branch_prefix,
            initializer=self._initializer,
        )
