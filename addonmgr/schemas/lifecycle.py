"""
LifecyclePhase - the addon-visible summary of a job execution.

The phase is always derived from the execution's observed status; it is
never stored on its own.
"""

from enum import Enum
from typing import Any, Optional


class LifecyclePhase(str, Enum):
    """Three-phase addon lifecycle."""

    PENDING = "Pending"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


_TERMINAL_PHASES = {
    "Succeeded": LifecyclePhase.SUCCEEDED,
    "Failed": LifecyclePhase.FAILED,
}


def translate_status(backend_phase: Optional[Any]) -> LifecyclePhase:
    """
    Map a backend job phase onto the addon lifecycle.

    "Succeeded" and "Failed" map to themselves; anything else, including
    None, the empty string and phases the backend adds later (Running,
    Error, ...), is Pending.

    Examples:
        >>> translate_status("Succeeded")
        <LifecyclePhase.SUCCEEDED: 'Succeeded'>
        >>> translate_status(None)
        <LifecyclePhase.PENDING: 'Pending'>
    """
    if not isinstance(backend_phase, str):
        return LifecyclePhase.PENDING
    return _TERMINAL_PHASES.get(backend_phase, LifecyclePhase.PENDING)
