"""
JobExecution schema - the backing store's view of a submitted workflow.

A JobExecution is created by the submission engine, advanced by the
execution backend as the workflow runs, and removed by collision
resolution or an explicit delete. The raw manifest is kept alongside the
parsed fields so nothing the backend reports is lost.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass
class JobExecution:
    """
    A tracked workflow execution.

    Attributes:
        name: Execution name (embeds addon name and checksum)
        namespace: Execution namespace
        owner_references: Owner references as stored
        status: Observed status block, or None if the backend has not reported yet
        manifest: Full resource document as returned by the store
    """
    name: str
    namespace: str
    owner_references: list[dict[str, Any]] = field(default_factory=list)
    status: Optional[dict[str, Any]] = None
    manifest: dict[str, Any] = field(default_factory=dict)

    @property
    def phase(self) -> str:
        """Backend phase string, empty when unknown."""
        if not self.status:
            return ""
        phase = self.status.get("phase")
        return phase if isinstance(phase, str) else ""

    @property
    def started_at(self) -> Optional[str]:
        """Raw RFC3339 ``status.startedAt``, None when not reported."""
        if not self.status:
            return None
        started_at = self.status.get("startedAt")
        return started_at if isinstance(started_at, str) and started_at else None

    def started_at_time(self) -> Optional[datetime]:
        """
        Parse ``status.startedAt``.

        Raises:
            ValueError: If startedAt is present but not RFC3339
        """
        raw = self.started_at
        if raw is None:
            return None
        # fromisoformat() only accepts a trailing Z from 3.11 on
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        started_at = datetime.fromisoformat(raw)
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        return started_at

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "JobExecution":
        """Build a JobExecution from a stored resource document."""
        metadata = manifest.get("metadata") or {}
        status = manifest.get("status")
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            owner_references=list(metadata.get("ownerReferences") or []),
            status=status if isinstance(status, dict) else None,
            manifest=manifest,
        )
