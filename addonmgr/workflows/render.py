"""
Template rendering - raw workflow YAML to a job document.

Only the template's ``spec`` is carried over. Identity (apiVersion, kind,
metadata.name, metadata.namespace) always comes from the caller, whatever
the template says.
"""

import logging
from typing import Optional

import yaml

from addonmgr.config import AddonManagerConfig
from addonmgr.document import Document, load_first_yaml
from addonmgr.errors import MissingSpecError, TemplateParseError

logger = logging.getLogger(__name__)


def render_workflow(
    template: str,
    name: str,
    namespace: str,
    config: Optional[AddonManagerConfig] = None,
) -> Document:
    """
    Render a workflow template into a job document.

    If ``spec.ttlSecondsAfterFinished`` is absent it is set to the configured
    default (259200s, 3 days) so finished workflows get cleaned up. An
    explicit value, including 0, is preserved.

    Args:
        template: Raw YAML body (first document is used)
        name: Workflow name
        namespace: Workflow namespace
        config: Supplies workflow identity and default TTL

    Returns:
        The rendered job document

    Raises:
        TemplateParseError: If the body is not well-formed YAML or not a mapping
        MissingSpecError: If the template has no top-level spec
    """
    config = config or AddonManagerConfig()

    try:
        data = load_first_yaml(template or "")
    except yaml.YAMLError as e:
        raise TemplateParseError(f"invalid workflow yaml spec passed. {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TemplateParseError(
            f"invalid workflow yaml spec passed. expected a mapping, got {type(data).__name__}"
        )

    spec = data.get("spec")
    if spec is None:
        raise MissingSpecError("invalid workflow, missing spec")
    if not isinstance(spec, dict):
        raise TemplateParseError(f"invalid workflow, spec must be a mapping, got {type(spec).__name__}")

    if spec.get("ttlSecondsAfterFinished") is None:
        spec["ttlSecondsAfterFinished"] = config.default_ttl_seconds

    doc = Document({
        "apiVersion": config.workflow_api_version,
        "kind": config.workflow_kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    })
    logger.debug(f"Rendered workflow {namespace}/{name}")
    return doc
