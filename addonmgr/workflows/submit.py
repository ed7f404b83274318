"""
Submission - create or locate the execution for a rendered workflow.

Submission is idempotent on the workflow name: the same rendered name always
maps to the same logical execution.

Flow:
1. Look up (namespace, name). Not-found means "does not exist yet".
2. If it exists, resolve collisions; if anything was deleted return Pending
   so the reconcile driver re-drives once the store has settled.
3. If it does not exist, create it with a non-controlling owner reference to
   the addon and record a Created event. A create that loses the race to a
   concurrent pass (already exists) falls through to step 4.
4. Fetch live status and translate it.

Any store failure other than not-found/already-exists is a SubmissionError.
"""

import copy
import logging
from typing import Any, Optional

from addonmgr.config import AddonManagerConfig
from addonmgr.document import Document
from addonmgr.errors import SubmissionError
from addonmgr.events import NORMAL, EventRecorder, LoggingEventRecorder
from addonmgr.schemas import AddonRef, JobExecution, LifecyclePhase, translate_status
from addonmgr.store.base import AlreadyExistsError, NotFoundError, StoreError, WorkflowStore
from addonmgr.workflows.collisions import CollisionResolver

logger = logging.getLogger(__name__)


def owner_reference(addon: AddonRef, config: AddonManagerConfig) -> dict[str, Any]:
    """
    Owner reference from an execution back to its addon.

    ``controller`` is False so the addon's deletion/GC semantics are not
    tied to the execution.
    """
    return {
        "apiVersion": config.addon_api_version,
        "kind": "Addon",
        "name": addon.name,
        "uid": addon.uid,
        "controller": False,
        "blockOwnerDeletion": True,
    }


class SubmissionEngine:
    """
    Submits rendered workflows for one addon.

    Args:
        store: Backing store for executions
        addon: Owner of the submitted executions
        recorder: Sink for the Created event
        config: Workflow identity and request timeout
    """

    def __init__(
        self,
        store: WorkflowStore,
        addon: AddonRef,
        recorder: Optional[EventRecorder] = None,
        config: Optional[AddonManagerConfig] = None,
    ):
        self.store = store
        self.addon = addon
        self.recorder = recorder or LoggingEventRecorder()
        self.config = config or AddonManagerConfig()
        self.timeout = self.config.request_timeout_seconds
        self.resolver = CollisionResolver(store, addon, timeout=self.timeout)

    def find(self, namespace: str, name: str) -> Optional[JobExecution]:
        """
        Look up an execution; None if it does not exist.

        Raises:
            SubmissionError: On any store failure other than not-found
        """
        try:
            manifest = self.store.get(namespace, name, timeout=self.timeout)
        except NotFoundError:
            return None
        except StoreError as e:
            raise SubmissionError(f"failed to look up workflow {namespace}/{name}. {e}") from e
        return JobExecution.from_manifest(manifest)

    def to_execution_manifest(self, doc: Document) -> dict[str, Any]:
        """Copy the rendered document into a create-ready execution manifest."""
        manifest = copy.deepcopy(doc.content)
        metadata = manifest.get("metadata")
        if not isinstance(metadata, dict):
            metadata = manifest["metadata"] = {}
        manifest["apiVersion"] = self.config.workflow_api_version
        manifest["kind"] = self.config.workflow_kind
        metadata["namespace"] = doc.get("metadata", "namespace")
        metadata["name"] = doc.get("metadata", "name")

        owners = [
            ref for ref in metadata.get("ownerReferences") or []
            if not (isinstance(ref, dict) and str(ref.get("kind", "")).lower() == "addon")
        ]
        # The API server rejects owner references without a uid
        if self.addon.uid:
            owners.append(owner_reference(self.addon, self.config))
        else:
            logger.warning(
                f"Addon {self.addon.namespace}/{self.addon.name} has no uid, "
                f"workflow {metadata['namespace']}/{metadata['name']} is created without an owner reference"
            )
        if owners:
            metadata["ownerReferences"] = owners
        else:
            metadata.pop("ownerReferences", None)
        return manifest

    def submit(self, doc: Document) -> LifecyclePhase:
        """
        Submit a rendered workflow.

        Returns:
            Pending when the execution was just created or stale executions
            were deleted; otherwise the translated status of the existing one

        Raises:
            SubmissionError: On backing store failure
        """
        namespace = doc.get("metadata", "namespace")
        name = doc.get("metadata", "name")

        existing = self.find(namespace, name)
        if existing is not None:
            if self.resolver.resolve():
                logger.info(f"Removed stale workflows for addon {self.addon.namespace}/{self.addon.name}, re-check pending")
                return LifecyclePhase.PENDING
            return self.status(namespace, name)

        manifest = self.to_execution_manifest(doc)
        try:
            self.store.create(manifest, timeout=self.timeout)
        except AlreadyExistsError:
            logger.info(f"Workflow {namespace}/{name} was created concurrently, re-checking status")
            return self.status(namespace, name)
        except StoreError as e:
            raise SubmissionError(f"failed to create workflow {namespace}/{name}. {e}") from e

        logger.info(f"Created workflow {namespace}/{name} for addon {self.addon.namespace}/{self.addon.name}")
        self.recorder.event(self.addon, NORMAL, "Created", f"Created Workflow {namespace}/{name}")
        return LifecyclePhase.PENDING

    def status(self, namespace: str, name: str) -> LifecyclePhase:
        """
        Fetch the live execution and translate its phase.

        Raises:
            SubmissionError: If the execution cannot be fetched (including not-found)
        """
        try:
            manifest = self.store.get(namespace, name, timeout=self.timeout)
        except StoreError as e:
            raise SubmissionError(f"could not find workflow {namespace}/{name}. {e}") from e
        return translate_status(JobExecution.from_manifest(manifest).phase)
