"""
Collision resolution - remove executions that no longer reflect the addon.

Executions are correlated by name: every execution whose name contains the
addon name is a candidate, and a candidate belongs to the current addon
content when its name contains the addon checksum.

Rules:
- If any candidate has no status (or no startedAt) yet, do nothing; the
  backend has not caught up and the next reconcile pass will retry.
- If the most recently started candidate carries the current checksum, every
  candidate without it is superseded and is deleted unless Pending.
- If the most recently started candidate does not carry the current
  checksum, the addon went back to earlier content. Every candidate that
  carries the current checksum is stale and is deleted unless Pending, so
  the next pass re-creates the current execution.

Deletion is best-effort: failures are logged as warnings and never fail the
caller. A candidate that is already gone counts as deleted.
"""

import logging
from datetime import datetime
from typing import Optional

from addonmgr.errors import SubmissionError
from addonmgr.schemas import AddonRef, JobExecution
from addonmgr.store.base import NotFoundError, StoreError, WorkflowStore

logger = logging.getLogger(__name__)

PENDING = "Pending"


class CollisionResolver:
    """
    Finds and removes stale executions for one addon.

    Args:
        store: Backing store holding the executions
        addon: The addon whose executions are resolved
        timeout: Bound on each store call (seconds)
    """

    def __init__(self, store: WorkflowStore, addon: AddonRef, timeout: Optional[float] = None):
        self.store = store
        self.addon = addon
        self.timeout = timeout

    def candidates(self) -> list[JobExecution]:
        """Executions in the addon namespace whose name contains the addon name."""
        try:
            items = self.store.list(self.addon.namespace, timeout=self.timeout)
        except StoreError as e:
            raise SubmissionError(f"failed to list workflows. {e}") from e
        return [
            execution
            for execution in (JobExecution.from_manifest(item) for item in items)
            if self.addon.name in execution.name
        ]

    @staticmethod
    def most_recent(candidates: list[JobExecution]) -> Optional[JobExecution]:
        """
        The candidate with the latest startedAt; later-listed wins ties.

        Returns None when there are no candidates or any candidate has not
        reported status/startedAt yet.

        Raises:
            SubmissionError: If a startedAt is not RFC3339
        """
        latest: Optional[JobExecution] = None
        latest_time: Optional[datetime] = None
        for execution in candidates:
            if execution.status is None:
                return None
            try:
                started_at = execution.started_at_time()
            except ValueError as e:
                raise SubmissionError(
                    f"workflow {execution.namespace}/{execution.name} has invalid startedAt "
                    f"{execution.started_at!r}. {e}"
                ) from e
            if started_at is None:
                return None
            if latest_time is None or started_at >= latest_time:
                latest, latest_time = execution, started_at
        return latest

    def is_superseded(self, execution: JobExecution) -> bool:
        return self.addon.checksum not in execution.name

    def resolve(self) -> bool:
        """
        Delete stale executions.

        Returns:
            True if at least one execution was deleted

        Raises:
            SubmissionError: If listing fails or a startedAt cannot be parsed
        """
        candidates = self.candidates()
        latest = self.most_recent(candidates)
        if latest is None:
            logger.debug(f"Addon {self.addon.namespace}/{self.addon.name}: workflow status not ready, skipping collision check")
            return False

        # Newest run has older content: the current-checksum runs are stale
        stale_current = self.is_superseded(latest)
        if stale_current:
            logger.info(
                f"Addon {self.addon.namespace}/{self.addon.name}: most recent workflow {latest.name} "
                f"lacks checksum {self.addon.checksum}, removing earlier runs of it"
            )

        deleted = False
        for execution in candidates:
            if self.is_superseded(execution) == stale_current or execution.phase == PENDING:
                continue
            if self._delete(execution):
                deleted = True
        return deleted

    def _delete(self, execution: JobExecution) -> bool:
        try:
            self.store.delete(execution.namespace, execution.name, timeout=self.timeout)
        except NotFoundError:
            logger.info(f"Stale workflow {execution.namespace}/{execution.name} already deleted")
            return True
        except StoreError as e:
            logger.warning(f"Failed to delete stale workflow {execution.namespace}/{execution.name}: {e}")
            return False
        logger.info(
            f"Deleted stale workflow {execution.namespace}/{execution.name} "
            f"(phase={execution.phase or '<none>'}, current checksum={self.addon.checksum})"
        )
        return True
