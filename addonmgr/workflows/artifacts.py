"""
Artifact post-processing - stamp addon metadata onto embedded manifests.

Workflow steps carry Kubernetes manifests as raw artifacts
(``arguments.artifacts[*].raw.data``, a ``---``-separated YAML stream).
Before submission every document of a recognized workload kind gets:
- the four app.kubernetes.io labels (merged into existing labels)
- the workflow role as a pod template annotation, when a role is set

Documents of any other kind are re-serialized but otherwise untouched.
Processing is idempotent: running it over its own output changes nothing.

Artifacts are visited at:
- spec.arguments.artifacts
- spec.templates[*].steps[*][*].arguments.artifacts
"""

import logging
from enum import Enum
from typing import Any, Optional

import yaml

from addonmgr.config import AddonManagerConfig
from addonmgr.document import (
    DOCUMENT_SEPARATOR,
    Document,
    DocumentShapeError,
    dump_yaml,
    load_yaml,
)
from addonmgr.errors import ArtifactParseError
from addonmgr.schemas import AddonRef

logger = logging.getLogger(__name__)

LABEL_NAME = "app.kubernetes.io/name"
LABEL_VERSION = "app.kubernetes.io/version"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"


class WorkloadKind(str, Enum):
    """Manifest kinds that receive default labels and the role annotation."""

    STATEFUL_SET = "StatefulSet"
    DEPLOYMENT = "Deployment"
    DAEMON_SET = "DaemonSet"
    REPLICA_SET = "ReplicaSet"
    SERVICE = "Service"

    @classmethod
    def from_kind(cls, kind: Any) -> Optional["WorkloadKind"]:
        """The WorkloadKind for a manifest ``kind``, None if not recognized."""
        if not isinstance(kind, str):
            return None
        try:
            return cls(kind)
        except ValueError:
            return None


def default_labels(addon: AddonRef, config: AddonManagerConfig) -> dict[str, str]:
    """Labels stamped onto every recognized workload."""
    return {
        LABEL_NAME: addon.name,
        LABEL_VERSION: addon.pkg_version,
        LABEL_PART_OF: addon.name,
        LABEL_MANAGED_BY: config.addon_group,
    }


class ArtifactProcessor:
    """
    Post-processes raw artifacts of a rendered workflow for one addon.

    Args:
        addon: Source of label values
        role: Role annotated onto pod templates; empty/None to skip
        config: Supplies the managed-by group and the role annotation key
    """

    def __init__(
        self,
        addon: AddonRef,
        role: Optional[str] = None,
        config: Optional[AddonManagerConfig] = None,
    ):
        self.addon = addon
        self.role = role or ""
        self.config = config or AddonManagerConfig()

    def process_workflow(self, doc: Document) -> Document:
        """
        Process every artifact in the workflow document, in place.

        Raises:
            ArtifactParseError: On a malformed manifest or unexpected workflow shape
        """
        try:
            self._process_artifacts(doc.maps("spec", "arguments", "artifacts"), "spec.arguments")
            for t, template in enumerate(doc.maps("spec", "templates")):
                for g, group in enumerate(template.get_list("steps") or []):
                    if not isinstance(group, list):
                        raise DocumentShapeError(("spec", "templates", str(t), "steps", str(g)), "list", group)
                    for s, step in enumerate(group):
                        if not isinstance(step, dict):
                            raise DocumentShapeError(
                                ("spec", "templates", str(t), "steps", str(g), str(s)), "map", step
                            )
                        self._process_artifacts(
                            Document(step).maps("arguments", "artifacts"),
                            f"spec.templates[{t}].steps[{g}][{s}]",
                        )
        except DocumentShapeError as e:
            raise ArtifactParseError(f"invalid workflow artifacts: {e}") from e
        return doc

    def _process_artifacts(self, artifacts: list[Document], where: str) -> None:
        for artifact in artifacts:
            data = artifact.get_string("raw", "data")
            if data is None:
                continue
            artifact.set(self.process_manifests(data), "raw", "data")
            logger.debug(f"Processed artifact {artifact.get('name', default='<unnamed>')} at {where}")

    def process_manifests(self, data: str) -> str:
        """
        Process a ``---``-separated manifest stream and return the new stream.

        Empty documents are kept verbatim so separators round-trip.

        Raises:
            ArtifactParseError: If a document is not valid YAML or not a mapping
        """
        processed = []
        for raw_doc in data.split(DOCUMENT_SEPARATOR):
            try:
                resource = load_yaml(raw_doc)
            except yaml.YAMLError as e:
                raise ArtifactParseError(f"unable to unmarshall artifact: {raw_doc}", document=raw_doc) from e

            if resource is None:
                processed.append(raw_doc)
                continue
            if not isinstance(resource, dict):
                raise ArtifactParseError(
                    f"unable to unmarshall artifact, expected a mapping: {raw_doc}", document=raw_doc
                )

            try:
                self.process_resource(Document(resource))
            except DocumentShapeError as e:
                raise ArtifactParseError(f"unable to process artifact ({e}): {raw_doc}", document=raw_doc) from e

            processed.append(dump_yaml(resource))
        return DOCUMENT_SEPARATOR.join(processed)

    def process_resource(self, resource: Document) -> Document:
        """Apply labels and role annotation to one manifest if its kind is recognized."""
        kind = WorkloadKind.from_kind(resource.get("kind"))
        if kind is None:
            return resource

        resource.ensure_map("metadata", "labels").update(default_labels(self.addon, self.config))

        if self.role:
            annotations = resource.ensure_map("spec", "template", "metadata", "annotations")
            annotations[self.config.role_annotation] = self.role

        return resource


def process_artifacts(
    doc: Document,
    addon: AddonRef,
    role: Optional[str] = None,
    config: Optional[AddonManagerConfig] = None,
) -> Document:
    """Convenience wrapper around ArtifactProcessor.process_workflow()."""
    return ArtifactProcessor(addon, role=role, config=config).process_workflow(doc)
