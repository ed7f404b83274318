"""Tests for workflow store implementations."""
from unittest.mock import MagicMock, patch

import kubernetes
import pytest
import urllib3
from kubernetes.client.exceptions import ApiException

from addonmgr.config import AddonManagerConfig
from addonmgr.store import (
    AlreadyExistsError,
    InMemoryWorkflowStore,
    KubernetesWorkflowStore,
    NotFoundError,
    StoreError,
    WorkflowStore,
    load_kube_client_config,
)


def _manifest(name, namespace="addon-system"):
    return {"metadata": {"name": name, "namespace": namespace}, "spec": {}}


# ============================================================================
# InMemoryWorkflowStore
# ============================================================================


def test_memory_store_satisfies_protocol():
    assert isinstance(InMemoryWorkflowStore(), WorkflowStore)


def test_memory_create_and_get():
    store = InMemoryWorkflowStore()
    store.create(_manifest("wf"))
    assert store.get("addon-system", "wf")["metadata"]["name"] == "wf"


def test_memory_create_is_unique():
    store = InMemoryWorkflowStore([_manifest("wf")])
    with pytest.raises(AlreadyExistsError):
        store.create(_manifest("wf"))
    assert store.create_calls == 1


def test_memory_get_missing():
    with pytest.raises(NotFoundError):
        InMemoryWorkflowStore().get("addon-system", "nope")


def test_memory_returns_copies():
    """Mutating a returned document does not change stored state."""
    store = InMemoryWorkflowStore([_manifest("wf")])
    store.get("addon-system", "wf")["spec"]["mutated"] = True
    store.list("addon-system")[0]["spec"]["mutated"] = True
    assert store.get("addon-system", "wf")["spec"] == {}


def test_memory_list_filters_namespace():
    store = InMemoryWorkflowStore([_manifest("a"), _manifest("b", namespace="other")])
    assert [m["metadata"]["name"] for m in store.list("addon-system")] == ["a"]


def test_memory_delete():
    store = InMemoryWorkflowStore([_manifest("wf")])
    store.delete("addon-system", "wf")
    assert len(store) == 0
    with pytest.raises(NotFoundError):
        store.delete("addon-system", "wf")
    assert store.delete_calls == [("addon-system", "wf"), ("addon-system", "wf")]


def test_memory_set_status():
    store = InMemoryWorkflowStore([_manifest("wf")])
    store.set_status("addon-system", "wf", {"phase": "Running"})
    assert store.get("addon-system", "wf")["status"] == {"phase": "Running"}
    store.set_status("addon-system", "wf", None)
    assert "status" not in store.get("addon-system", "wf")


# ============================================================================
# KubernetesWorkflowStore
# ============================================================================


@pytest.fixture
def mock_api():
    """Mock CustomObjectsApi."""
    api = MagicMock()
    api.get_namespaced_custom_object.return_value = _manifest("wf")
    api.create_namespaced_custom_object.side_effect = lambda **kwargs: kwargs["body"]
    api.list_namespaced_custom_object.return_value = {"items": [_manifest("a"), _manifest("b")]}
    return api


@pytest.fixture
def kube_store(mock_api):
    return KubernetesWorkflowStore(api=mock_api, config=AddonManagerConfig(request_timeout_seconds=5.0))


def test_kube_get_passes_resource_and_timeout(kube_store, mock_api):
    assert kube_store.get("addon-system", "wf")["metadata"]["name"] == "wf"
    mock_api.get_namespaced_custom_object.assert_called_once_with(
        group="argoproj.io",
        version="v1alpha1",
        plural="workflows",
        namespace="addon-system",
        name="wf",
        _request_timeout=5.0,
    )


def test_kube_explicit_timeout_wins(kube_store, mock_api):
    kube_store.get("addon-system", "wf", timeout=1.5)
    assert mock_api.get_namespaced_custom_object.call_args[1]["_request_timeout"] == 1.5


def test_kube_create_uses_manifest_namespace(kube_store, mock_api):
    body = _manifest("wf", namespace="ns1")
    assert kube_store.create(body) == body
    kwargs = mock_api.create_namespaced_custom_object.call_args[1]
    assert kwargs["namespace"] == "ns1"
    assert kwargs["body"] is body


def test_kube_list_returns_items(kube_store):
    assert [m["metadata"]["name"] for m in kube_store.list("addon-system")] == ["a", "b"]


def test_kube_list_without_items(kube_store, mock_api):
    mock_api.list_namespaced_custom_object.return_value = {"items": None}
    assert kube_store.list("addon-system") == []


def test_kube_delete(kube_store, mock_api):
    kube_store.delete("addon-system", "wf")
    mock_api.delete_namespaced_custom_object.assert_called_once()


@pytest.mark.parametrize("status,error", [
    (404, NotFoundError),
    (409, AlreadyExistsError),
    (500, StoreError),
    (403, StoreError),
])
def test_kube_api_errors_translated(kube_store, mock_api, status, error):
    """ApiException status codes map onto the store error hierarchy."""
    mock_api.get_namespaced_custom_object.side_effect = ApiException(status=status, reason="x")
    with pytest.raises(error) as exc_info:
        kube_store.get("addon-system", "wf")
    assert type(exc_info.value) is error
    assert "addon-system/wf" in str(exc_info.value)


def test_kube_create_conflict(kube_store, mock_api):
    mock_api.create_namespaced_custom_object.side_effect = ApiException(status=409, reason="Conflict")
    with pytest.raises(AlreadyExistsError):
        kube_store.create(_manifest("wf"))


def test_kube_delete_not_found(kube_store, mock_api):
    mock_api.delete_namespaced_custom_object.side_effect = ApiException(status=404, reason="Not Found")
    with pytest.raises(NotFoundError):
        kube_store.delete("addon-system", "wf")


def test_kube_transport_error(kube_store, mock_api):
    """Connection/timeout failures from urllib3 become StoreError."""
    mock_api.list_namespaced_custom_object.side_effect = urllib3.exceptions.ProtocolError("Connection aborted.")
    with pytest.raises(StoreError, match="Connection aborted"):
        kube_store.list("addon-system")


def test_kube_custom_resource_config(mock_api):
    config = AddonManagerConfig(workflow_group="example.com", workflow_version="v1", workflow_plural="jobs")
    KubernetesWorkflowStore(api=mock_api, config=config).list("ns")
    kwargs = mock_api.list_namespaced_custom_object.call_args[1]
    assert (kwargs["group"], kwargs["version"], kwargs["plural"]) == ("example.com", "v1", "jobs")


def test_load_kube_client_config_prefers_in_cluster():
    with patch("kubernetes.config.load_incluster_config") as in_cluster:
        with patch("kubernetes.config.load_kube_config") as kubeconfig:
            load_kube_client_config()
    in_cluster.assert_called_once()
    kubeconfig.assert_not_called()


def test_load_kube_client_config_falls_back_to_kubeconfig():
    with patch("kubernetes.config.load_incluster_config", side_effect=kubernetes.config.ConfigException("no sa")):
        with patch("kubernetes.config.load_kube_config") as kubeconfig:
            load_kube_client_config()
    kubeconfig.assert_called_once()
