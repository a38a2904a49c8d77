"""Record the applied manifest on the object itself."""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Optional

from .document import ResourceObject
from .errors import AnnotationError, DocumentShapeError

_LOG = logging.getLogger(__name__)

LAST_APPLIED_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"


def _applied_document(obj: ResourceObject, annotation: str) -> Dict[str, Any]:
    document = copy.deepcopy(obj.document)
    document.pop("status", None)
    metadata = document.get("metadata")
    annotations = metadata.get("annotations") if isinstance(metadata, dict) else None
    if isinstance(annotations, dict):
        annotations.pop(annotation, None)
        if not annotations:
            metadata.pop("annotations")
    return document


def annotate_last_applied(obj: ResourceObject, annotation: str = LAST_APPLIED_ANNOTATION) -> str:
    """Store ``obj`` as JSON in one of its own annotations and return the JSON."""

    try:
        serialized = json.dumps(
            _applied_document(obj, annotation),
            sort_keys=True,
            separators=(",", ":"),
        )
        obj.annotations[annotation] = serialized
    except (TypeError, ValueError, DocumentShapeError) as exc:
        raise AnnotationError(f"Failed to set {annotation} on {obj.describe()}: {exc}") from exc
    _LOG.debug("Annotated %s with %s (%d bytes)", obj.describe(), annotation, len(serialized))
    return serialized


def read_last_applied(obj: ResourceObject, annotation: str = LAST_APPLIED_ANNOTATION) -> Optional[Dict[str, Any]]:
    """Return the document stored by :func:`annotate_last_applied`, if any."""

    annotations = obj.get_mapping("metadata", "annotations") or {}
    raw = annotations.get(annotation)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise AnnotationError(f"Corrupt {annotation} annotation on {obj.describe()}: {exc}") from exc
