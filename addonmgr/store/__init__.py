"""
Backing store clients for job execution resources.

Usage:
    from addonmgr.store import InMemoryWorkflowStore, KubernetesWorkflowStore

    store = InMemoryWorkflowStore()            # tests, dry-run
    store = KubernetesWorkflowStore()          # after load_kube_client_config()
"""

from addonmgr.store.base import (
    WorkflowStore,
    StoreError,
    NotFoundError,
    AlreadyExistsError,
)
from addonmgr.store.memory import InMemoryWorkflowStore
from addonmgr.store.kube import KubernetesWorkflowStore, load_kube_client_config

__all__ = [
    "WorkflowStore",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "InMemoryWorkflowStore",
    "KubernetesWorkflowStore",
    "load_kube_client_config",
]
