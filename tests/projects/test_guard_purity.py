"""Every registered guard is a pure function of the persisted document."""

import json

import pytest


def _populate(project) -> None:
    """Give each phase a mix of artifacts, tasks and metadata, then persist."""
    for phase in project.phases.values():
        if phase.capabilities.artifacts:
            phase.add_artifact(f"{phase.name}/a.md", type="notes")
            phase.add_artifact(f"{phase.name}/b.md", type="summary")
            phase.approve_artifact(f"{phase.name}/b.md")
        if phase.capabilities.tasks:
            first = phase.add_task("first")
            phase.add_task("second", dependencies=(first.id,))
            phase.set_task_status(first.id, "completed")
            phase.set_task_field(first.id, "metadata.published", "true")
        phase.set_field("metadata.reviewed", "true")
    project.save()


PROJECTS = [
    "standard_project",
    "executing_project",
    "reviewing_project",
    "exploration_project",
    "design_project",
    "breakdown_project",
]


@pytest.mark.parametrize("fixture_name", PROJECTS)
@pytest.mark.parametrize("populated", [False, True], ids=["fresh", "populated"])
class TestGuardPurity:
    def test_every_guard_is_repeatable_and_leaves_the_document_alone(
        self, request, store, reload, fixture_name, populated
    ) -> None:
        project = request.getfixturevalue(fixture_name)
        if populated:
            _populate(project)
        loaded = reload()
        stored_before = json.dumps(store.read(), sort_keys=True)
        in_memory_before = json.dumps(loaded.to_document(), sort_keys=True)
        writes_before = store.writes

        guards = [t.guard for t in loaded.config.transitions if t.guard is not None]
        assert guards
        for guard in guards:
            first = guard.evaluate(loaded.view())
            second = guard.evaluate(loaded.view())
            assert first == second, guard.name

        assert json.dumps(loaded.to_document(), sort_keys=True) == in_memory_before
        assert json.dumps(store.read(), sort_keys=True) == stored_before
        assert store.writes == writes_before
        assert loaded.dirty is False

    def test_machine_queries_do_not_write(
        self, request, store, reload, fixture_name, populated
    ) -> None:
        project = request.getfixturevalue(fixture_name)
        if populated:
            _populate(project)
        loaded = reload()
        stored_before = json.dumps(store.read(), sort_keys=True)
        writes_before = store.writes

        for transition in loaded.transitions():
            assert loaded.check(transition.event) == loaded.check(transition.event)
            loaded.can_fire(transition.event)
        loaded.permitted_events()

        assert json.dumps(store.read(), sort_keys=True) == stored_before
        assert store.writes == writes_before
        assert loaded.current_state == project.current_state
