"""
Typed access to loosely-typed YAML/JSON document trees.

Workflow templates and embedded manifests are plain dict/list trees. Every
lookup here states the type it expects at a path and raises
DocumentShapeError when the tree disagrees, so a template that deviates from
the expected grammar is a recoverable error rather than a TypeError deep
inside a stage.

Paths are tuples of keys, e.g. ("spec", "arguments", "parameters").
"""

from typing import Any, Optional

import yaml

from addonmgr.errors import PermanentError

_MISSING = object()

DOCUMENT_SEPARATOR = "---\n"


class JsonSafeLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as strings so documents stay JSON-compatible."""


JsonSafeLoader.yaml_implicit_resolvers = {
    first: [r for r in resolvers if r[0] != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_yaml(text: str) -> Any:
    """Parse a single YAML document. Raises yaml.YAMLError."""
    return yaml.load(text, Loader=JsonSafeLoader)


def load_first_yaml(text: str) -> Any:
    """Parse the first document of a multi-document YAML stream. Raises yaml.YAMLError."""
    for doc in yaml.load_all(text, Loader=JsonSafeLoader):
        return doc
    return None


def dump_yaml(data: Any) -> str:
    """Serialize with sorted keys and block style; dump(load(dump(x))) == dump(x)."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True)


class DocumentShapeError(PermanentError):
    """A document node has a different type than the caller expected."""

    def __init__(self, path: tuple[str, ...], expected: str, actual: Any):
        self.path = path
        self.expected = expected
        self.actual_type = type(actual).__name__
        super().__init__(
            f"{_dotted(path)}: expected {expected}, got {self.actual_type}"
        )


def _dotted(path: tuple[str, ...]) -> str:
    return ".".join(path) if path else "<root>"


class Document:
    """
    A mutable view over a dict tree with typed accessors.

    The wrapped dict is modified in place; ``content`` returns it.
    """

    def __init__(self, content: dict[str, Any]):
        if not isinstance(content, dict):
            raise DocumentShapeError((), "map", content)
        self._content = content

    @property
    def content(self) -> dict[str, Any]:
        return self._content

    def _walk(self, path: tuple[str, ...]) -> Any:
        node: Any = self._content
        for i, key in enumerate(path):
            if not isinstance(node, dict):
                raise DocumentShapeError(path[:i], "map", node)
            node = node.get(key, _MISSING)
            if node is _MISSING:
                return _MISSING
        return node

    def get(self, *path: str, default: Any = None) -> Any:
        """Get the value at path, or default if any key is absent or null."""
        value = self._walk(path)
        return default if value is _MISSING or value is None else value

    def has(self, *path: str) -> bool:
        """True when path exists and is not null."""
        value = self._walk(path)
        return value is not _MISSING and value is not None

    def get_map(self, *path: str) -> Optional[dict[str, Any]]:
        """Map at path, None if absent. Raises DocumentShapeError if not a map."""
        value = self.get(*path)
        if value is not None and not isinstance(value, dict):
            raise DocumentShapeError(path, "map", value)
        return value

    def get_list(self, *path: str) -> Optional[list[Any]]:
        """List at path, None if absent. Raises DocumentShapeError if not a list."""
        value = self.get(*path)
        if value is not None and not isinstance(value, list):
            raise DocumentShapeError(path, "list", value)
        return value

    def get_string(self, *path: str) -> Optional[str]:
        """String at path, None if absent. Raises DocumentShapeError if not a string."""
        value = self.get(*path)
        if value is not None and not isinstance(value, str):
            raise DocumentShapeError(path, "string", value)
        return value

    def ensure_map(self, *path: str) -> dict[str, Any]:
        """Map at path, creating it and any intermediate maps when absent."""
        node = self._content
        for i, key in enumerate(path):
            child = node.get(key)
            if child is None:
                child = node[key] = {}
            elif not isinstance(child, dict):
                raise DocumentShapeError(path[: i + 1], "map", child)
            node = child
        return node

    def ensure_list(self, *path: str) -> list[Any]:
        """List at path, creating an empty list (and parent maps) when absent."""
        if not path:
            raise ValueError("ensure_list requires a non-empty path")
        parent = self.ensure_map(*path[:-1])
        value = parent.get(path[-1])
        if value is None:
            value = parent[path[-1]] = []
        elif not isinstance(value, list):
            raise DocumentShapeError(path, "list", value)
        return value

    def set(self, value: Any, *path: str) -> None:
        """Set the value at path, creating intermediate maps."""
        if not path:
            raise ValueError("set requires a non-empty path")
        self.ensure_map(*path[:-1])[path[-1]] = value

    def maps(self, *path: str) -> list["Document"]:
        """
        Entries of the list at path, each wrapped as a Document.

        Absent lists yield nothing. Raises DocumentShapeError if the node is
        not a list or an entry is not a map.
        """
        items = self.get_list(*path) or []
        docs = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise DocumentShapeError(path + (str(i),), "map", item)
            docs.append(Document(item))
        return docs
