"""
WorkflowLifecycle - install/delete an addon through workflow executions.

install() runs the full pipeline for one lifecycle step:

    render -> inject parameters -> post-process artifacts -> submit

and returns the addon-level LifecyclePhase. Every failure is raised as an
AddonManagerError whose ``phase`` is Failed; nothing is retried here. The
reconciliation driver decides when to call install() again.

Usage:
    from addonmgr.store import InMemoryWorkflowStore
    from addonmgr.workflows import WorkflowLifecycle

    lifecycle = WorkflowLifecycle(store, addon)
    phase = lifecycle.install(addon.lifecycle.install, workflow_name(addon, "install"))
"""

import logging
from typing import Optional

from addonmgr.config import AddonManagerConfig
from addonmgr.document import Document
from addonmgr.events import EventRecorder, LoggingEventRecorder
from addonmgr.schemas import AddonRef, LifecyclePhase, WorkflowTemplate, workflow_name
from addonmgr.store.base import WorkflowStore
from addonmgr.workflows.artifacts import process_artifacts
from addonmgr.workflows.parameters import inject_parameters
from addonmgr.workflows.render import render_workflow
from addonmgr.workflows.submit import SubmissionEngine

logger = logging.getLogger(__name__)


class WorkflowLifecycle:
    """
    Drives lifecycle workflows for one addon.

    Args:
        store: Backing store for executions
        addon: The addon being installed/deleted
        recorder: Event sink (defaults to logging)
        config: Runtime configuration
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
        self.engine = SubmissionEngine(store, addon, recorder=self.recorder, config=self.config)

    def render(self, template: WorkflowTemplate, name: str) -> Document:
        """
        Render, parameterize and post-process a workflow without submitting it.

        Raises:
            TemplateParseError, MissingSpecError, ParameterInjectionError, ArtifactParseError
        """
        doc = render_workflow(template.template, name, self.addon.namespace, config=self.config)
        inject_parameters(doc, self.addon.params)
        process_artifacts(doc, self.addon, role=template.role, config=self.config)
        return doc

    def install(self, template: WorkflowTemplate, name: str) -> LifecyclePhase:
        """
        Render and submit a workflow.

        Args:
            template: The lifecycle workflow template
            name: Execution name; must embed the addon checksum

        Returns:
            Pending, Succeeded or Failed as reported by the execution

        Raises:
            AddonManagerError: Any render/submit failure (``exc.phase`` is Failed)
        """
        doc = self.render(template, name)
        phase = self.engine.submit(doc)
        logger.info(f"Addon {self.addon.namespace}/{self.addon.name} workflow {name}: {phase.value}")
        return phase

    def run_step(self, step: str) -> LifecyclePhase:
        """
        Install the workflow for a named lifecycle step (prereqs, install, delete, validate).

        The execution name is derived with workflow_name(), so it carries the
        addon checksum.

        Raises:
            ValueError: If the step is unknown or the addon has no template for it
            AddonManagerError: Any render/submit failure
        """
        template = self.addon.lifecycle.get(step)
        if template is None:
            raise ValueError(f"Addon {self.addon.namespace}/{self.addon.name} has no {step} workflow")
        return self.install(template, workflow_name(self.addon, step))

    def delete(self, name: str) -> None:
        """
        Delete a workflow execution in the addon namespace.

        Raises:
            NotFoundError: If it does not exist (the caller decides whether that matters)
            StoreError: On any other store failure
        """
        self.store.delete(self.addon.namespace, name, timeout=self.config.request_timeout_seconds)
        logger.info(f"Deleted workflow {self.addon.namespace}/{name}")
