"""
Kubernetes-backed workflow store.

Executions are custom resources (Argo Workflows by default) accessed through
kubernetes.client.CustomObjectsApi. Each call passes ``_request_timeout`` so
a hung API server aborts the call instead of blocking the reconcile pass.

Error mapping:
- ApiException 404 -> NotFoundError
- ApiException 409 -> AlreadyExistsError
- any other ApiException, urllib3 timeout/connection error -> StoreError
"""

import logging
from typing import Any, Optional

import kubernetes
import urllib3
from kubernetes.client.exceptions import ApiException

from addonmgr.config import AddonManagerConfig
from addonmgr.store.base import AlreadyExistsError, NotFoundError, StoreError

logger = logging.getLogger(__name__)


def load_kube_client_config() -> None:
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        kubernetes.config.load_incluster_config()
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config()


def _translate(e: Exception, what: str) -> StoreError:
    if isinstance(e, ApiException):
        if e.status == 404:
            return NotFoundError(f"{what}: not found")
        if e.status == 409:
            return AlreadyExistsError(f"{what}: already exists")
        return StoreError(f"{what}: {e.status} {e.reason}")
    return StoreError(f"{what}: {e}")


class KubernetesWorkflowStore:
    """WorkflowStore over the workflow custom resource."""

    def __init__(
        self,
        api: Optional[kubernetes.client.CustomObjectsApi] = None,
        config: Optional[AddonManagerConfig] = None,
    ):
        """
        Args:
            api: CustomObjectsApi to use. Defaults to one built from the
                already-loaded client configuration.
            config: Supplies group/version/plural and the default timeout
        """
        self.config = config or AddonManagerConfig()
        self.api = api or kubernetes.client.CustomObjectsApi()

    def _resource(self) -> dict[str, str]:
        return {
            "group": self.config.workflow_group,
            "version": self.config.workflow_version,
            "plural": self.config.workflow_plural,
        }

    def _timeout(self, timeout: Optional[float]) -> float:
        return timeout if timeout is not None else self.config.request_timeout_seconds

    def get(self, namespace: str, name: str, timeout: Optional[float] = None) -> dict[str, Any]:
        try:
            return self.api.get_namespaced_custom_object(
                namespace=namespace,
                name=name,
                _request_timeout=self._timeout(timeout),
                **self._resource(),
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, f"get workflow {namespace}/{name}") from e

    def create(self, manifest: dict[str, Any], timeout: Optional[float] = None) -> dict[str, Any]:
        metadata = manifest.get("metadata") or {}
        namespace, name = metadata.get("namespace", ""), metadata.get("name", "")
        try:
            return self.api.create_namespaced_custom_object(
                namespace=namespace,
                body=manifest,
                _request_timeout=self._timeout(timeout),
                **self._resource(),
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, f"create workflow {namespace}/{name}") from e

    def list(self, namespace: str, timeout: Optional[float] = None) -> list[dict[str, Any]]:
        try:
            result = self.api.list_namespaced_custom_object(
                namespace=namespace,
                _request_timeout=self._timeout(timeout),
                **self._resource(),
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, f"list workflows in {namespace}") from e
        return list(result.get("items") or [])

    def delete(self, namespace: str, name: str, timeout: Optional[float] = None) -> None:
        try:
            self.api.delete_namespaced_custom_object(
                namespace=namespace,
                name=name,
                _request_timeout=self._timeout(timeout),
                **self._resource(),
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            raise _translate(e, f"delete workflow {namespace}/{name}") from e
        logger.info(f"Deleted workflow {namespace}/{name}")
