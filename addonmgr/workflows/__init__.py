"""
Workflow lifecycle pipeline for addons.

    render_workflow -> inject_parameters -> process_artifacts -> SubmissionEngine
                                                                    |
                                                             CollisionResolver

WorkflowLifecycle wires the stages together behind install()/delete().
"""

from addonmgr.workflows.render import render_workflow
from addonmgr.workflows.parameters import inject_parameters, addon_parameters
from addonmgr.workflows.artifacts import ArtifactProcessor, WorkloadKind, process_artifacts
from addonmgr.workflows.collisions import CollisionResolver
from addonmgr.workflows.submit import SubmissionEngine, owner_reference
from addonmgr.workflows.lifecycle import WorkflowLifecycle

__all__ = [
    "render_workflow",
    "inject_parameters",
    "addon_parameters",
    "ArtifactProcessor",
    "WorkloadKind",
    "process_artifacts",
    "CollisionResolver",
    "SubmissionEngine",
    "owner_reference",
    "WorkflowLifecycle",
]
