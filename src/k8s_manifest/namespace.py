"""Namespace resolution for manifests."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .document import ResourceObject
from .errors import MissingNamespaceError

_LOG = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


class NamespacePolicy(str, Enum):
    """How to handle a manifest when no namespace is given anywhere."""

    PERMISSIVE = "permissive"
    STRICT = "strict"


def resolve_namespace(
    parameter: Optional[str],
    document: Optional[str],
    policy: NamespacePolicy = NamespacePolicy.PERMISSIVE,
) -> str:
    """Pick the namespace an object should live in.

    A namespace embedded in the document takes precedence over the one passed
    by the caller. When neither is set the permissive policy falls back to
    ``default`` and the strict policy raises :class:`MissingNamespaceError`.
    """

    if not parameter and not document:
        if policy is NamespacePolicy.STRICT:
            raise MissingNamespaceError(
                "No namespace given and the manifest does not set metadata.namespace"
            )
        return DEFAULT_NAMESPACE
    if not document:
        return parameter or ""
    if parameter and parameter != document:
        _LOG.debug("Manifest namespace %s overrides requested namespace %s", document, parameter)
    return document


def apply_namespace(
    obj: ResourceObject,
    parameter: Optional[str],
    policy: NamespacePolicy = NamespacePolicy.PERMISSIVE,
) -> str:
    """Resolve the namespace for ``obj`` and write it into its metadata."""

    resolved = resolve_namespace(parameter, obj.namespace, policy)
    obj.namespace = resolved
    return resolved
