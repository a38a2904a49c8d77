"""Create, read, update and delete single-object manifests."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from .annotator import annotate_last_applied
from .config import ReconcilerSettings
from .document import ResourceObject, decode_manifest
from .errors import EmptyManifestError, ImmutableFieldError
from .identity import ResourceIdentity
from .kube import ClusterClient
from .namespace import apply_namespace
from .poller import ConvergenceSpec, wait_for_state
from .readiness import ReadinessState, classify

_LOG = logging.getLogger(__name__)

STATE_DELETING = "deleting"
STATE_DELETED = "deleted"


@dataclass
class ReconcileResult:
    """Outcome of a create or update: the durable identifier and live object."""

    identifier: str
    object: ResourceObject


class Reconciler:
    """Apply manifests to a cluster and wait for them to settle.

    The client is passed in rather than looked up so every call works against
    exactly the cluster the caller chose. No state is kept between calls: the
    identifier returned from :meth:`create` is the only handle later calls need.
    """

    def __init__(
        self,
        client: ClusterClient,
        settings: Optional[ReconcilerSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.settings = settings or ReconcilerSettings()
        self._sleep = sleep
        self._clock = clock

    def _decode(self, content: str) -> ResourceObject:
        obj = decode_manifest(content)
        if obj is None:
            raise EmptyManifestError("Manifest does not contain any object")
        return obj

    @staticmethod
    def _timeout(requested: Optional[float], default: float) -> float:
        return requested if requested is not None else default

    def _spec(self, **kwargs: Any) -> ConvergenceSpec:
        return ConvergenceSpec(
            delay=self.settings.poll_delay,
            min_interval=self.settings.min_poll_interval,
            continuous_target_occurrence=self.settings.continuous_target_occurrence,
            sleep=self._sleep,
            clock=self._clock,
            **kwargs,
        )

    def _wait_for_ready(self, obj: ResourceObject, identity: ResourceIdentity, timeout: float) -> None:
        def refresh() -> Tuple[ResourceObject, str]:
            self.client.get(obj)
            return obj, classify(obj).value

        wait_for_state(
            self._spec(
                pending=frozenset({ReadinessState.PENDING.value}),
                target=frozenset({ReadinessState.READY.value}),
                refresh=refresh,
                timeout=timeout,
                subject=identity.describe(),
            )
        )
        _LOG.info("%s is ready", identity.describe())

    def create(self, content: str, namespace: str = "", timeout: Optional[float] = None) -> ReconcileResult:
        obj = self._decode(content)
        apply_namespace(obj, namespace, self.settings.namespace_policy)
        if self.settings.annotate_last_applied:
            annotate_last_applied(obj, self.settings.last_applied_annotation)

        identity = ResourceIdentity.from_object(obj)
        _LOG.info("Creating new manifest %s", obj.describe())
        self.client.create(obj)

        if self.settings.wait_for_ready:
            self._wait_for_ready(obj, identity, self._timeout(timeout, self.settings.create_timeout))

        identifier = identity.encode()
        return ReconcileResult(identifier=identifier, object=self.read(identifier))

    def read(self, identifier: str) -> ResourceObject:
        identity = ResourceIdentity.decode(identifier)
        obj = identity.empty_object()
        _LOG.info("Reading object %s", identity.name)
        return self.client.get(obj)

    def update(self, identifier: str, content: str, timeout: Optional[float] = None) -> ReconcileResult:
        identity = ResourceIdentity.decode(identifier)
        obj = self._decode(content)
        apply_namespace(obj, identity.namespace, self.settings.namespace_policy)

        changed = [
            field
            for field, current, wanted in (
                ("metadata.namespace", identity.namespace, obj.namespace),
                ("kind", identity.kind, obj.kind),
                ("metadata.name", identity.name, obj.name),
            )
            if current != wanted
        ]
        if changed:
            raise ImmutableFieldError(
                f"Cannot update {identity.describe()} in place, changed: {', '.join(changed)}"
            )

        if self.settings.annotate_last_applied:
            annotate_last_applied(obj, self.settings.last_applied_annotation)

        updated_identity = ResourceIdentity.from_object(obj)
        _LOG.info("Updating object %s", identity.name)
        self.client.update(obj)

        if self.settings.wait_for_ready:
            self._wait_for_ready(obj, updated_identity, self._timeout(timeout, self.settings.update_timeout))

        updated_identifier = updated_identity.encode()
        return ReconcileResult(identifier=updated_identifier, object=self.read(updated_identifier))

    def delete(self, identifier: str, timeout: Optional[float] = None) -> None:
        identity = ResourceIdentity.decode(identifier)
        obj = identity.empty_object()

        _LOG.info("Deleting object %s", identity.name)
        self.client.delete(obj)

        def refresh() -> Tuple[ResourceObject, str]:
            self.client.get(obj)
            return obj, STATE_DELETING

        wait_for_state(
            self._spec(
                pending=frozenset({STATE_DELETING}),
                target=frozenset({STATE_DELETED}),
                refresh=refresh,
                timeout=self._timeout(timeout, self.settings.delete_timeout),
                not_found_target=STATE_DELETED,
                subject=identity.describe(),
            )
        )
        _LOG.info("Deleted object %s", identity.describe())
