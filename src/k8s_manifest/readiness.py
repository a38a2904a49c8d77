"""Kind-agnostic readiness checks based on an object's ``status``."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .document import ResourceObject
from .errors import StatusDecodeError

_LOG = logging.getLogger(__name__)


class ReadinessState(str, Enum):
    PENDING = "pending"
    READY = "ready"


class StatusSnapshot(BaseModel):
    """The few ``status`` fields the heuristic understands. Others are ignored."""

    model_config = ConfigDict(populate_by_name=True, strict=True, extra="ignore")

    ready_replicas: Optional[int] = Field(default=None, alias="readyReplicas")
    phase: Optional[str] = None


def classify(obj: ResourceObject) -> ReadinessState:
    """Decide whether ``obj`` has settled.

    Objects without a status sub-resource are ready as soon as they exist. An
    empty status means the controller has not reported yet. Otherwise the
    object is ready once it has a ready replica or reports the ``Active``
    phase.
    """

    if not obj.has("status"):
        return ReadinessState.READY

    status = obj.status
    if not status:
        return ReadinessState.PENDING

    try:
        snapshot = StatusSnapshot.model_validate(status)
    except ValidationError as exc:
        raise StatusDecodeError(f"Unable to decode status of {obj.describe()}: {exc}") from exc

    _LOG.debug("Status of %s: %s", obj.describe(), snapshot)
    if snapshot.ready_replicas is not None and snapshot.ready_replicas > 0:
        return ReadinessState.READY
    if snapshot.phase == "Active":
        return ReadinessState.READY
    return ReadinessState.PENDING
