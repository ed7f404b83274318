"""
addonmgr.schemas - Data structures for the addon lifecycle.

AddonRef + WorkflowTemplate -> rendered job document -> JobExecution -> LifecyclePhase

- AddonRef: caller-owned addon identity, checksum and parameters
- WorkflowTemplate: raw workflow YAML and optional role
- JobExecution: the execution as the backing store reports it
- LifecyclePhase: Pending / Succeeded / Failed, derived from JobExecution status
"""

from .lifecycle import LifecyclePhase, translate_status
from .addon import (
    AddonRef,
    AddonParams,
    ClusterContext,
    WorkflowTemplate,
    LifecycleWorkflowSpec,
    compute_checksum,
    workflow_name,
)
from .execution import JobExecution

__all__ = [
    # Lifecycle
    "LifecyclePhase",
    "translate_status",
    # Addon
    "AddonRef",
    "AddonParams",
    "ClusterContext",
    "WorkflowTemplate",
    "LifecycleWorkflowSpec",
    "compute_checksum",
    "workflow_name",
    # Execution
    "JobExecution",
]
