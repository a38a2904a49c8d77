"""Generic resource documents and the manifest decoder."""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Generator, Optional

from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor
from ruamel.yaml.error import YAMLError

from .errors import DocumentShapeError, ManifestParseError

_LOG = logging.getLogger(__name__)


class _ManifestConstructor(SafeConstructor):
    """Safe constructor that keeps timestamps as the strings the API server expects."""


_ManifestConstructor.add_constructor("tag:yaml.org,2002:timestamp", SafeConstructor.construct_yaml_str)

yaml = YAML(typ="safe", pure=True)
yaml.Constructor = _ManifestConstructor

_MISSING = object()


class ResourceObject:
    """A single Kubernetes object of any kind, held as an untyped document.

    The document is a plain tree of mappings, sequences and scalars. Accessors
    look up a path of keys and raise :class:`DocumentShapeError` when a value
    on that path is not of the requested type; a missing key yields ``None``.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None) -> None:
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise DocumentShapeError(
                f"Resource document must be a mapping, got {type(document).__name__}"
            )
        self.document: Dict[str, Any] = document

    def _lookup(self, path: tuple) -> Any:
        node: Any = self.document
        walked = []
        for key in path:
            if node is None:
                return None
            if not isinstance(node, dict):
                raise DocumentShapeError(
                    f"Expected a mapping at '{'.'.join(walked) or '<root>'}', got {type(node).__name__}"
                )
            node = node.get(key, _MISSING)
            if node is _MISSING:
                return None
            walked.append(key)
        return node

    def has(self, *path: str) -> bool:
        node: Any = self.document
        for key in path:
            if not isinstance(node, dict) or key not in node:
                return False
            node = node[key]
        return True

    def get_mapping(self, *path: str) -> Optional[Dict[str, Any]]:
        value = self._lookup(path)
        if value is not None and not isinstance(value, dict):
            raise DocumentShapeError(f"Expected a mapping at '{'.'.join(path)}', got {type(value).__name__}")
        return value

    def get_string(self, *path: str) -> Optional[str]:
        value = self._lookup(path)
        if value is not None and not isinstance(value, str):
            raise DocumentShapeError(f"Expected a string at '{'.'.join(path)}', got {type(value).__name__}")
        return value

    def get_int(self, *path: str) -> Optional[int]:
        value = self._lookup(path)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise DocumentShapeError(f"Expected an integer at '{'.'.join(path)}', got {type(value).__name__}")
        return value

    def _metadata(self) -> Dict[str, Any]:
        metadata = self.get_mapping("metadata")
        if metadata is None:
            metadata = self.document["metadata"] = {}
        return metadata

    @property
    def api_version(self) -> str:
        return self.get_string("apiVersion") or ""

    @property
    def kind(self) -> str:
        return self.get_string("kind") or ""

    @property
    def name(self) -> str:
        return self.get_string("metadata", "name") or ""

    @property
    def namespace(self) -> str:
        return self.get_string("metadata", "namespace") or ""

    @namespace.setter
    def namespace(self, value: str) -> None:
        self._metadata()["namespace"] = value

    @property
    def resource_version(self) -> Optional[str]:
        return self.get_string("metadata", "resourceVersion")

    @resource_version.setter
    def resource_version(self, value: Optional[str]) -> None:
        metadata = self._metadata()
        if value is None:
            metadata.pop("resourceVersion", None)
        else:
            metadata["resourceVersion"] = value

    @property
    def annotations(self) -> Dict[str, str]:
        """Annotations mapping, created on first access so callers can edit it."""

        metadata = self._metadata()
        annotations = metadata.get("annotations")
        if annotations is None:
            annotations = metadata["annotations"] = {}
        elif not isinstance(annotations, dict):
            raise DocumentShapeError("Expected a mapping at 'metadata.annotations'")
        return annotations

    @property
    def status(self) -> Optional[Dict[str, Any]]:
        """The ``status`` sub-tree, or ``None`` when the object has none."""

        return self.get_mapping("status")

    def replace(self, document: Dict[str, Any]) -> None:
        """Swap in a newer representation of the same object."""

        if not isinstance(document, dict):
            raise DocumentShapeError("Resource document must be a mapping")
        self.document = document

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.document)

    def describe(self) -> str:
        if self.namespace:
            return f"{self.kind}/{self.name} in namespace {self.namespace}"
        return f"{self.kind}/{self.name}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceObject):
            return NotImplemented
        return self.document == other.document

    def __repr__(self) -> str:
        return f"ResourceObject({self.api_version!r}, {self.kind!r}, {self.name!r})"


def _first_yaml_document(content: str) -> Any:
    documents: Generator[Any, None, None] = yaml.load_all(content)
    try:
        return next(documents, None)
    except YAMLError as exc:
        raise ManifestParseError(f"Failed to unmarshal manifest: {exc}") from exc
    finally:
        documents.close()


def _first_document(content: str) -> Any:
    stripped = content.lstrip()
    if stripped.startswith("{"):
        try:
            value, _ = json.JSONDecoder().raw_decode(stripped)
            return value
        except json.JSONDecodeError:
            # flow-style YAML mappings also start with "{"
            _LOG.debug("Manifest is not valid JSON, decoding it as YAML")
    return _first_yaml_document(content)


def decode_manifest(content: str) -> Optional[ResourceObject]:
    """Decode the first document of ``content`` into a :class:`ResourceObject`.

    JSON text is recognised by a leading ``{``; anything else is read as YAML.
    Returns ``None`` when the text holds no document at all. Documents after
    the first are never parsed.
    """

    if not content or not content.strip():
        return None

    data = _first_document(content)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ManifestParseError(
            f"Failed to unmarshal manifest: expected a mapping, got {type(data).__name__}"
        )

    obj = ResourceObject(data)
    try:
        missing = [
            field
            for field, value in (
                ("apiVersion", obj.api_version),
                ("kind", obj.kind),
                ("metadata.name", obj.name),
            )
            if not value
        ]
    except DocumentShapeError as exc:
        raise ManifestParseError(f"Invalid manifest: {exc}") from exc
    if missing:
        raise ManifestParseError(f"Manifest is missing required fields: {', '.join(missing)}")
    return obj
