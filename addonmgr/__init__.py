"""
addonmgr - Addon lifecycle through workflow executions

Renders addon lifecycle workflow templates, submits them idempotently to the
cluster and reports the addon phase from the execution status.
"""

__version__ = "0.1.0"


__all__ = ["AddonManagerConfig", "load_config", "get_addonmgr_home", "WorkflowLifecycle"]

from .config import AddonManagerConfig, load_config, get_addonmgr_home
from .workflows import WorkflowLifecycle
