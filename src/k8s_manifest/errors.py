"""Error types raised by the manifest reconciler."""
from __future__ import annotations

from typing import Optional


class KubeManifestError(Exception):
    """Base class for every error raised by this package."""


class ManifestParseError(KubeManifestError, ValueError):
    """The manifest text could not be decoded into a resource document."""


class EmptyManifestError(ManifestParseError):
    """The manifest text did not contain any document."""


class DocumentShapeError(KubeManifestError, ValueError):
    """A field in a resource document does not have the expected type."""


class MissingNamespaceError(KubeManifestError, ValueError):
    """Neither the caller nor the document supplied a namespace."""


class InvalidIdentifierError(KubeManifestError, ValueError):
    """A persisted resource identifier could not be parsed."""


class ImmutableFieldError(KubeManifestError, ValueError):
    """An update tried to change a field that identifies the resource."""


class AnnotationError(KubeManifestError):
    """The last-applied annotation could not be written."""


class StatusDecodeError(KubeManifestError, ValueError):
    """The ``status`` of a resource has fields of an unexpected type."""


class ResourceNotFoundError(KubeManifestError):
    """The cluster reported that the requested resource does not exist."""


class ConvergenceError(KubeManifestError):
    """Waiting for a resource to reach its target state failed."""

    def __init__(self, message: str, subject: str = "", last_state: Optional[str] = None) -> None:
        super().__init__(message)
        self.subject = subject
        self.last_state = last_state


class ConvergenceTimeoutError(ConvergenceError):
    """The resource did not reach its target state before the timeout."""

    def __init__(self, subject: str, last_state: Optional[str], timeout: float) -> None:
        super().__init__(
            f"Timeout after {timeout:g}s waiting for {subject or 'resource'} "
            f"(last state: {last_state or 'unknown'})",
            subject=subject,
            last_state=last_state,
        )
        self.timeout = timeout
