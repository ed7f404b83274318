"""
Workflow store interface for job execution resources.

This module defines the protocol that any backing store must implement,
keeping the lifecycle engine decoupled from the Kubernetes API.

Implementations:
- InMemoryWorkflowStore: For testing and dry-run mode
- KubernetesWorkflowStore: Workflow custom resources via the Kubernetes API

Every call is blocking and bounded by ``timeout`` (seconds). Implementations
raise StoreError subclasses only; anything else is a bug in the store.
"""

from typing import Any, Optional, Protocol, runtime_checkable


class StoreError(Exception):
    """Backing store call failed."""
    pass


class NotFoundError(StoreError):
    """The requested execution does not exist."""
    pass


class AlreadyExistsError(StoreError):
    """An execution with the same (namespace, name) already exists."""
    pass


@runtime_checkable
class WorkflowStore(Protocol):
    """
    Protocol for CRUD + list on execution resources, keyed by (namespace, name).

    Documents are plain dicts in Kubernetes resource shape
    (apiVersion, kind, metadata, spec, status).
    """

    def get(self, namespace: str, name: str, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Fetch one execution.

        Raises:
            NotFoundError: If it does not exist
            StoreError: On any other failure
        """
        ...

    def create(self, manifest: dict[str, Any], timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Create an execution; returns the stored document.

        Raises:
            AlreadyExistsError: If (namespace, name) is taken
            StoreError: On any other failure
        """
        ...

    def list(self, namespace: str, timeout: Optional[float] = None) -> list[dict[str, Any]]:
        """List every execution in a namespace."""
        ...

    def delete(self, namespace: str, name: str, timeout: Optional[float] = None) -> None:
        """
        Delete one execution.

        Raises:
            NotFoundError: If it does not exist
            StoreError: On any other failure
        """
        ...
