import logging
import os
import textwrap

import pytest
import yaml

from addonmgr.config import AddonManagerConfig
from addonmgr.events import InMemoryEventRecorder
from addonmgr.schemas import AddonParams, AddonRef, ClusterContext, WorkflowTemplate
from addonmgr.store import InMemoryWorkflowStore


DEPLOYMENT_AND_CONFIGMAP = textwrap.dedent("""\
    apiVersion: apps/v1
    kind: Deployment
    metadata:
      name: web
      labels:
        team: platform
    spec:
      template:
        spec:
          containers:
          - name: web
            image: nginx
    ---
    apiVersion: v1
    kind: ConfigMap
    metadata:
      name: settings
    data:
      key: value
""")

SERVICE = textwrap.dedent("""\
    apiVersion: v1
    kind: Service
    metadata:
      name: svc
""")


def build_workflow_template(step_data=DEPLOYMENT_AND_CONFIGMAP, top_level_data=SERVICE, ttl=None):
    """A workflow template with one top-level artifact and one step artifact."""
    spec = {
        "entrypoint": "entry",
        "arguments": {
            "artifacts": [{"name": "top-level", "raw": {"data": top_level_data}}],
        },
        "templates": [
            {
                "name": "entry",
                "steps": [[
                    {
                        "name": "deploy",
                        "template": "submit",
                        "arguments": {
                            "artifacts": [{"name": "doc", "raw": {"data": step_data}}],
                        },
                    },
                ]],
            },
            {"name": "submit", "resource": {"action": "apply"}},
        ],
    }
    if ttl is not None:
        spec["ttlSecondsAfterFinished"] = ttl
    return yaml.safe_dump({
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Workflow",
        "metadata": {"name": "ignored-name", "namespace": "ignored-namespace"},
        "spec": spec,
    })


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep tests away from the user's ~/.config/addonmgr and ADDONMGR_* overrides."""
    for key in list(os.environ):
        if key.startswith("ADDONMGR_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ADDONMGR_HOME", str(tmp_path / "addonmgr-home"))
    yield
    # CLI tests attach handlers bound to CliRunner streams
    addonmgr_logger = logging.getLogger("addonmgr")
    addonmgr_logger.handlers = []
    addonmgr_logger.setLevel(logging.NOTSET)


@pytest.fixture
def config() -> AddonManagerConfig:
    return AddonManagerConfig()


@pytest.fixture
def addon() -> AddonRef:
    return AddonRef(
        name="fluentd",
        namespace="addon-system",
        checksum="b2b2b2b2",
        uid="1234-abcd",
        pkg_name="fluentd",
        pkg_version="v1.2.3",
        params=AddonParams(
            namespace="logging",
            context=ClusterContext(
                cluster_name="c1",
                cluster_region="us-west-2",
                additional_configs={"env": "prod"},
            ),
            data={"replicas": "3", "image": "fluentd:1.2"},
        ),
    )


@pytest.fixture
def workflow_template() -> WorkflowTemplate:
    return WorkflowTemplate(template=build_workflow_template(), role="arn:aws:iam::123:role/fluentd")


@pytest.fixture
def store() -> InMemoryWorkflowStore:
    return InMemoryWorkflowStore()


@pytest.fixture
def recorder() -> InMemoryEventRecorder:
    return InMemoryEventRecorder()


@pytest.fixture
def make_execution():
    """Factory for stored execution documents as the backend reports them."""
    def _make(name, namespace="addon-system", phase="Succeeded", started_at="2024-01-01T00:00:00Z", status=True):
        manifest = {
            "apiVersion": "argoproj.io/v1alpha1",
            "kind": "Workflow",
            "metadata": {"name": name, "namespace": namespace},
            "spec": {"entrypoint": "entry"},
        }
        if status:
            manifest["status"] = {"phase": phase, "startedAt": started_at}
        return manifest

    return _make
