"""End-to-end tests for WorkflowLifecycle over the in-memory store."""

from dataclasses import replace

import pytest
import yaml

from addonmgr.errors import AddonManagerError, MissingSpecError, SubmissionError, TemplateParseError
from addonmgr.schemas import LifecycleWorkflowSpec, LifecyclePhase, WorkflowTemplate, workflow_name
from addonmgr.store import InMemoryWorkflowStore, NotFoundError, StoreError
from addonmgr.workflows import WorkflowLifecycle

from conftest import build_workflow_template

NAME = "fluentd-install-b2b2b2b2-wf"
ROLE = "arn:aws:iam::123:role/fluentd"


class ListFailsStore:
    """Store that finds an execution but cannot list the namespace."""

    def __init__(self, manifest):
        self.manifest = manifest

    def get(self, namespace, name, timeout=None):
        return self.manifest

    def create(self, manifest, timeout=None):
        raise AssertionError("create should not be called")

    def list(self, namespace, timeout=None):
        raise StoreError("connection reset")

    def delete(self, namespace, name, timeout=None):
        raise AssertionError("delete should not be called")


@pytest.fixture
def lifecycle(store, addon, recorder):
    return WorkflowLifecycle(store, addon, recorder=recorder)


def _parameters(manifest):
    return {p["name"]: p["value"] for p in manifest["spec"]["arguments"]["parameters"]}


class TestInstall:
    """Tests for WorkflowLifecycle.install()."""

    def test_first_install_is_pending(self, lifecycle, store, recorder, workflow_template):
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.PENDING
        assert ("addon-system", NAME) in store
        assert recorder.reasons() == ["Created"]

    def test_submitted_workflow_is_fully_processed(self, lifecycle, store, workflow_template):
        """The stored execution carries parameters, ttl, labels and role annotation."""
        lifecycle.install(workflow_template, NAME)
        stored = store.get("addon-system", NAME)

        assert stored["metadata"]["name"] == NAME
        assert stored["metadata"]["namespace"] == "addon-system"
        assert stored["spec"]["ttlSecondsAfterFinished"] == 259200
        assert _parameters(stored) == {
            "namespace": "logging",
            "clusterName": "c1",
            "clusterRegion": "us-west-2",
            "env": "prod",
            "replicas": "3",
            "image": "fluentd:1.2",
        }
        step_data = stored["spec"]["templates"][0]["steps"][0][0]["arguments"]["artifacts"][0]["raw"]["data"]
        deployment = next(yaml.safe_load_all(step_data))
        assert deployment["metadata"]["labels"]["app.kubernetes.io/managed-by"] == "addonmgr.keikoproj.io"
        assert deployment["spec"]["template"]["metadata"]["annotations"]["iam.amazonaws.com/role"] == ROLE

    def test_status_progression(self, lifecycle, store, workflow_template):
        """Pending until the execution reports a terminal phase."""
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.PENDING

        store.set_status("addon-system", NAME, {"phase": "Running", "startedAt": "2024-01-01T00:00:00Z"})
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.PENDING

        store.set_status("addon-system", NAME, {"phase": "Succeeded", "startedAt": "2024-01-01T00:00:00Z"})
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.SUCCEEDED
        assert store.create_calls == 1

    def test_failed_execution(self, lifecycle, store, workflow_template):
        lifecycle.install(workflow_template, NAME)
        store.set_status("addon-system", NAME, {"phase": "Failed", "startedAt": "2024-01-01T00:00:00Z"})
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.FAILED

    def test_upgrade_cleans_up_previous_execution(self, store, addon, recorder, workflow_template):
        """A new checksum runs alongside the old execution until it is the newest."""
        previous = replace(addon, checksum="aaaaaaaa")
        old_name = workflow_name(previous, "install")
        WorkflowLifecycle(store, previous, recorder=recorder).install(workflow_template, old_name)
        store.set_status("addon-system", old_name, {"phase": "Succeeded", "startedAt": "2024-01-01T00:00:00Z"})

        lifecycle = WorkflowLifecycle(store, addon, recorder=recorder)
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.PENDING
        assert len(store) == 2

        store.set_status("addon-system", NAME, {"phase": "Succeeded", "startedAt": "2024-02-01T00:00:00Z"})
        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.PENDING
        assert ("addon-system", old_name) not in store

        assert lifecycle.install(workflow_template, NAME) is LifecyclePhase.SUCCEEDED

    def test_rollback_reruns_earlier_content(self, addon, recorder, make_execution, workflow_template):
        """Going back to earlier content re-runs it instead of reporting its old result."""
        rolled_back = replace(addon, checksum="aaaaaaaa")
        old_name = workflow_name(rolled_back, "install")
        store = InMemoryWorkflowStore([
            make_execution(old_name, phase="Succeeded", started_at="2024-01-01T00:00:00Z"),
            make_execution(NAME, phase="Succeeded", started_at="2024-02-01T00:00:00Z"),
        ])
        lifecycle = WorkflowLifecycle(store, rolled_back, recorder=recorder)

        assert lifecycle.install(workflow_template, old_name) is LifecyclePhase.PENDING
        assert ("addon-system", old_name) not in store
        assert store.create_calls == 0

        assert lifecycle.install(workflow_template, old_name) is LifecyclePhase.PENDING
        assert ("addon-system", old_name) in store
        assert store.create_calls == 1
        assert recorder.reasons() == ["Created"]


class TestInstallErrors:
    """Failures surface as exceptions whose phase is Failed."""

    def test_invalid_template(self, lifecycle, store):
        with pytest.raises(TemplateParseError) as exc_info:
            lifecycle.install(WorkflowTemplate(template="spec: [unclosed"), NAME)
        assert exc_info.value.phase is LifecyclePhase.FAILED
        assert len(store) == 0

    def test_missing_spec(self, lifecycle, store):
        with pytest.raises(MissingSpecError):
            lifecycle.install(WorkflowTemplate(template="metadata:\n  name: x\n"), NAME)
        assert store.create_calls == 0

    def test_bad_artifact_is_addon_error(self, lifecycle):
        template = WorkflowTemplate(template=build_workflow_template(step_data="kind: [unclosed\n"))
        with pytest.raises(AddonManagerError) as exc_info:
            lifecycle.install(template, NAME)
        assert exc_info.value.phase is LifecyclePhase.FAILED

    def test_list_failure_during_collision_check(self, addon, make_execution, workflow_template):
        lifecycle = WorkflowLifecycle(ListFailsStore(make_execution(NAME)), addon)
        with pytest.raises(SubmissionError, match="failed to list workflows"):
            lifecycle.install(workflow_template, NAME)


class TestRunStep:
    """Tests for WorkflowLifecycle.run_step()."""

    def test_uses_checksum_name(self, store, addon, recorder, workflow_template):
        addon = replace(addon, lifecycle=LifecycleWorkflowSpec(install=workflow_template))
        lifecycle = WorkflowLifecycle(store, addon, recorder=recorder)
        assert lifecycle.run_step("install") is LifecyclePhase.PENDING
        assert ("addon-system", NAME) in store

    def test_missing_template(self, lifecycle):
        with pytest.raises(ValueError, match="has no delete workflow"):
            lifecycle.run_step("delete")

    def test_unknown_step(self, lifecycle):
        with pytest.raises(ValueError, match="Unknown lifecycle step"):
            lifecycle.run_step("upgrade")


class TestRender:
    def test_render_does_not_submit(self, lifecycle, store, workflow_template):
        doc = lifecycle.render(workflow_template, NAME)
        assert doc.get("metadata", "name") == NAME
        assert len(store) == 0


class TestDelete:
    """Tests for WorkflowLifecycle.delete()."""

    def test_delete(self, lifecycle, store, workflow_template):
        lifecycle.install(workflow_template, NAME)
        lifecycle.delete(NAME)
        assert len(store) == 0

    def test_delete_missing_propagates(self, lifecycle):
        """Not-found is reported to the caller, who decides whether it matters."""
        with pytest.raises(NotFoundError):
            lifecycle.delete("nope")
