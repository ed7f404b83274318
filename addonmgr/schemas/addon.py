"""
Addon schemas - the caller-owned inputs to a lifecycle operation.

An AddonRef is read from an Addon resource document and stays immutable for
the duration of one install/delete. It carries:
- identity (name, namespace, uid)
- the content checksum embedded in every execution name
- the parameter set injected into workflow arguments
- the lifecycle workflow templates (prereqs, install, delete, validate)
"""

import hashlib
import json
from dataclasses import dataclass, field
from operator import attrgetter
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Mapping, Optional


def _string_map(data: Optional[Mapping[str, Any]]) -> Mapping[str, str]:
    """Freeze an open map of named values, coercing values to strings."""
    return MappingProxyType({str(k): "" if v is None else str(v) for k, v in (data or {}).items()})


@dataclass(frozen=True)
class ClusterContext:
    """
    Cluster-scoped parameters shared by every addon.

    STRING_FIELDS lists the string fields in declaration order as
    (external name, accessor) pairs. Parameter injection walks this list
    instead of inspecting the dataclass at runtime.
    """
    cluster_name: str = ""
    cluster_region: str = ""
    additional_configs: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    STRING_FIELDS: ClassVar[tuple[tuple[str, Callable[["ClusterContext"], str]], ...]] = (
        ("clusterName", attrgetter("cluster_name")),
        ("clusterRegion", attrgetter("cluster_region")),
    )

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ClusterContext":
        data = data or {}
        return cls(
            cluster_name=str(data.get("clusterName") or ""),
            cluster_region=str(data.get("clusterRegion") or ""),
            additional_configs=_string_map(data.get("additionalConfigs")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "clusterName": self.cluster_name,
            "clusterRegion": self.cluster_region,
            **({"additionalConfigs": dict(self.additional_configs)} if self.additional_configs else {}),
        }


@dataclass(frozen=True)
class AddonParams:
    """
    Addon parameters injected as global workflow parameters.

    Attributes:
        namespace: Namespace the addon installs into
        context: Cluster context (string fields + additional configs)
        data: Open map of addon-specific values
    """
    namespace: str = ""
    context: ClusterContext = field(default_factory=ClusterContext)
    data: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "AddonParams":
        data = data or {}
        return cls(
            namespace=str(data.get("namespace") or ""),
            context=ClusterContext.from_dict(data.get("context")),
            data=_string_map(data.get("data")),
        )


@dataclass(frozen=True)
class WorkflowTemplate:
    """
    A lifecycle workflow template.

    Attributes:
        template: Raw YAML body of the workflow
        role: Optional IAM role annotated onto rendered workloads
    """
    template: str
    role: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowTemplate":
        return cls(template=data.get("template") or "", role=data.get("role") or "")


@dataclass(frozen=True)
class LifecycleWorkflowSpec:
    """Workflow templates for each lifecycle step. Any of them may be absent."""
    prereqs: Optional[WorkflowTemplate] = None
    install: Optional[WorkflowTemplate] = None
    delete: Optional[WorkflowTemplate] = None
    validate: Optional[WorkflowTemplate] = None

    STEPS = ("prereqs", "install", "delete", "validate")

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "LifecycleWorkflowSpec":
        data = data or {}
        return cls(**{
            step: WorkflowTemplate.from_dict(data[step])
            for step in cls.STEPS
            if isinstance(data.get(step), dict)
        })

    def get(self, step: str) -> Optional[WorkflowTemplate]:
        """Get the template for a lifecycle step by name."""
        if step not in self.STEPS:
            raise ValueError(f"Unknown lifecycle step: {step}. Expected one of {self.STEPS}")
        return getattr(self, step)


def compute_checksum(spec: dict[str, Any]) -> str:
    """
    Content fingerprint of an addon spec.

    First 8 hex chars of sha256 over the canonical JSON of the Addon spec, so any
    change to it produces a new execution name.
    """
    canonical = json.dumps(spec, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:8]


@dataclass(frozen=True)
class AddonRef:
    """
    The addon a lifecycle operation acts on.

    Attributes:
        name: Addon resource name
        namespace: Addon resource namespace (executions are created here)
        checksum: Content fingerprint of the current addon spec
        params: Parameters injected into workflow arguments
        uid: Addon resource uid, used for the owner reference
        pkg_name: Package name
        pkg_version: Package version, stamped onto workload labels
        lifecycle: Lifecycle workflow templates
    """
    name: str
    namespace: str
    checksum: str
    params: AddonParams = field(default_factory=AddonParams)
    uid: str = ""
    pkg_name: str = ""
    pkg_version: str = ""
    lifecycle: LifecycleWorkflowSpec = field(default_factory=LifecycleWorkflowSpec)

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> "AddonRef":
        """
        Build an AddonRef from an Addon resource document.

        If ``status.checksum`` is absent the checksum is computed from ``spec``.

        Raises:
            ValueError: If metadata.name is missing
        """
        metadata = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}
        status = manifest.get("status") or {}

        name = metadata.get("name")
        if not name:
            raise ValueError("Addon manifest missing metadata.name")

        return cls(
            name=name,
            namespace=metadata.get("namespace") or "default",
            checksum=status.get("checksum") or compute_checksum(spec),
            params=AddonParams.from_dict(spec.get("params")),
            uid=metadata.get("uid") or "",
            pkg_name=spec.get("pkgName") or "",
            pkg_version=str(spec.get("pkgVersion") or ""),
            lifecycle=LifecycleWorkflowSpec.from_dict(spec.get("lifecycle")),
        )


def workflow_name(addon: AddonRef, step: str) -> str:
    """
    Name of the execution for one lifecycle step of an addon.

    The name embeds both the addon name and its checksum; collision
    resolution correlates executions by these substrings.

    Example:
        >>> workflow_name(AddonRef(name="fluentd", namespace="addons", checksum="0a1b2c3d"), "install")
        'fluentd-install-0a1b2c3d-wf'
    """
    return f"{addon.name}-{step}-{addon.checksum}-wf"
