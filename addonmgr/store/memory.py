"""
In-memory workflow store.

Used by tests and by ``addonmgr install --dry-run``. Create is
unique-on-create like the API server, and every document handed out is a
deep copy so callers cannot mutate stored state behind the store's back.
set_status() lets a caller play the execution backend.
"""

import copy
import logging
from typing import Any, Optional

from addonmgr.store.base import AlreadyExistsError, NotFoundError

logger = logging.getLogger(__name__)


class InMemoryWorkflowStore:
    """Dict-backed WorkflowStore keyed by (namespace, name)."""

    def __init__(self, items: Optional[list[dict[str, Any]]] = None):
        self._items: dict[tuple[str, str], dict[str, Any]] = {}
        self.create_calls = 0
        self.delete_calls: list[tuple[str, str]] = []
        for item in items or []:
            self._items[self._key(item)] = copy.deepcopy(item)

    @staticmethod
    def _key(manifest: dict[str, Any]) -> tuple[str, str]:
        metadata = manifest.get("metadata") or {}
        return metadata.get("namespace", ""), metadata.get("name", "")

    def get(self, namespace: str, name: str, timeout: Optional[float] = None) -> dict[str, Any]:
        try:
            return copy.deepcopy(self._items[(namespace, name)])
        except KeyError:
            raise NotFoundError(f"workflow {namespace}/{name} not found") from None

    def create(self, manifest: dict[str, Any], timeout: Optional[float] = None) -> dict[str, Any]:
        self.create_calls += 1
        key = self._key(manifest)
        if key in self._items:
            raise AlreadyExistsError(f"workflow {key[0]}/{key[1]} already exists")
        self._items[key] = copy.deepcopy(manifest)
        logger.debug(f"Stored workflow {key[0]}/{key[1]}")
        return copy.deepcopy(manifest)

    def list(self, namespace: str, timeout: Optional[float] = None) -> list[dict[str, Any]]:
        return [copy.deepcopy(item) for (ns, _), item in self._items.items() if ns == namespace]

    def delete(self, namespace: str, name: str, timeout: Optional[float] = None) -> None:
        self.delete_calls.append((namespace, name))
        if self._items.pop((namespace, name), None) is None:
            raise NotFoundError(f"workflow {namespace}/{name} not found")

    def set_status(self, namespace: str, name: str, status: Optional[dict[str, Any]]) -> None:
        """Replace the status block of a stored execution (None removes it)."""
        try:
            item = self._items[(namespace, name)]
        except KeyError:
            raise NotFoundError(f"workflow {namespace}/{name} not found") from None
        if status is None:
            item.pop("status", None)
        else:
            item["status"] = copy.deepcopy(status)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
