"""
Parameter injection - addon params become global workflow parameters.

Appended to ``spec.arguments.parameters`` in this order:
1. {name: "namespace", value: params.namespace}
2. Each ClusterContext string field, in ClusterContext.STRING_FIELDS order
3. Each entry of params.context.additional_configs
4. Each entry of params.data

Order within 3 and 4 follows the source mappings and is not part of the
contract; callers must not depend on it.
"""

import logging
from typing import Any

from addonmgr.document import Document, DocumentShapeError
from addonmgr.errors import ParameterInjectionError
from addonmgr.schemas import AddonParams, ClusterContext

logger = logging.getLogger(__name__)


def _param(name: str, value: str) -> dict[str, Any]:
    return {"name": name, "value": value}


def addon_parameters(params: AddonParams) -> list[dict[str, Any]]:
    """Build the parameter entries for an addon, in injection order."""
    entries = [_param("namespace", params.namespace)]

    for external_name, accessor in ClusterContext.STRING_FIELDS:
        entries.append(_param(external_name, accessor(params.context)))

    for name, value in params.context.additional_configs.items():
        entries.append(_param(name, value))

    for name, value in params.data.items():
        entries.append(_param(name, value))

    return entries


def inject_parameters(doc: Document, params: AddonParams) -> Document:
    """
    Append addon parameters to ``spec.arguments.parameters``.

    Creates ``spec.arguments`` and ``spec.arguments.parameters`` when absent.
    Existing template parameters are kept ahead of the injected ones.

    Raises:
        ParameterInjectionError: If spec, arguments or parameters has the wrong shape
    """
    try:
        if doc.get_map("spec") is None:
            raise ParameterInjectionError("invalid workflow parameter: missing spec")
        parameters = doc.ensure_list("spec", "arguments", "parameters")
    except DocumentShapeError as e:
        raise ParameterInjectionError(f"invalid workflow parameter: {e}") from e

    entries = addon_parameters(params)
    parameters.extend(entries)
    logger.debug(f"Injected {len(entries)} workflow parameters")
    return doc
