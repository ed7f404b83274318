"""
Event recording for addon lifecycle milestones.

Events are advisory: a failure to record one is logged and never fails the
lifecycle operation that produced it.

Implementations:
- LoggingEventRecorder: Writes events to the addonmgr logger (default)
- InMemoryEventRecorder: Keeps events in a list (tests)
- KubernetesEventRecorder: Posts core/v1 Events against the Addon resource
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, runtime_checkable

import kubernetes
import urllib3
from kubernetes.client.exceptions import ApiException

from addonmgr.config import AddonManagerConfig
from addonmgr.schemas import AddonRef

logger = logging.getLogger(__name__)

NORMAL = "Normal"
WARNING = "Warning"


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RecordedEvent:
    """One recorded event."""
    addon: str
    namespace: str
    event_type: str
    reason: str
    message: str
    timestamp: datetime = field(default_factory=_utcnow)


@runtime_checkable
class EventRecorder(Protocol):
    """Sink for addon lifecycle events."""

    def event(self, addon: AddonRef, event_type: str, reason: str, message: str) -> None:
        """
        Record an event about an addon.

        Args:
            addon: The addon the event is about
            event_type: "Normal" or "Warning"
            reason: Short CamelCase reason (e.g. "Created")
            message: Human-readable message
        """
        ...


class LoggingEventRecorder:
    """EventRecorder that writes to the log."""

    def event(self, addon: AddonRef, event_type: str, reason: str, message: str) -> None:
        level = logging.WARNING if event_type == WARNING else logging.INFO
        logger.log(
            level,
            f"[{addon.namespace}/{addon.name}] {reason}: {message}",
            extra={"addon": f"{addon.namespace}/{addon.name}", "event": reason},
        )


class InMemoryEventRecorder:
    """EventRecorder that keeps events in memory."""

    def __init__(self):
        self.events: list[RecordedEvent] = []

    def event(self, addon: AddonRef, event_type: str, reason: str, message: str) -> None:
        self.events.append(RecordedEvent(
            addon=addon.name,
            namespace=addon.namespace,
            event_type=event_type,
            reason=reason,
            message=message,
        ))

    def reasons(self) -> list[str]:
        return [e.reason for e in self.events]


class KubernetesEventRecorder:
    """EventRecorder that creates core/v1 Events on the Addon resource."""

    def __init__(
        self,
        api: Optional[kubernetes.client.CoreV1Api] = None,
        config: Optional[AddonManagerConfig] = None,
        component: str = "addonmgr",
    ):
        self.config = config or AddonManagerConfig()
        self.api = api or kubernetes.client.CoreV1Api()
        self.component = component

    def _body(self, addon: AddonRef, event_type: str, reason: str, message: str) -> dict[str, Any]:
        now = _utcnow().isoformat()
        return {
            "apiVersion": "v1",
            "kind": "Event",
            "metadata": {
                "name": f"{addon.name}.{uuid.uuid4().hex[:16]}",
                "namespace": addon.namespace,
            },
            "involvedObject": {
                "apiVersion": self.config.addon_api_version,
                "kind": "Addon",
                "name": addon.name,
                "namespace": addon.namespace,
                "uid": addon.uid,
            },
            "type": event_type,
            "reason": reason,
            "message": message,
            "source": {"component": self.component},
            "firstTimestamp": now,
            "lastTimestamp": now,
            "count": 1,
        }

    def event(self, addon: AddonRef, event_type: str, reason: str, message: str) -> None:
        try:
            self.api.create_namespaced_event(
                namespace=addon.namespace,
                body=self._body(addon, event_type, reason, message),
                _request_timeout=self.config.request_timeout_seconds,
            )
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            logger.warning(f"Could not record event {reason} for addon {addon.namespace}/{addon.name}: {e}")
