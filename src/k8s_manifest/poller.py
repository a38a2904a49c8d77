"""Bounded polling until a resource reaches a target state."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Optional, Tuple

from .errors import ConvergenceError, ConvergenceTimeoutError, ResourceNotFoundError

_LOG = logging.getLogger(__name__)

RefreshFunc = Callable[[], Tuple[Any, str]]

INITIAL_WAIT = 0.1
MAX_WAIT = 10.0


@dataclass
class ConvergenceSpec:
    """Describes one wait: which states to expect and how long to keep trying.

    ``refresh`` returns ``(value, state)`` on every tick. When
    ``not_found_target`` is set, a :class:`ResourceNotFoundError` from
    ``refresh`` counts as reaching that state instead of failing the wait.
    """

    pending: FrozenSet[str]
    target: FrozenSet[str]
    refresh: RefreshFunc
    timeout: float
    delay: float = 0.0
    min_interval: float = 0.0
    continuous_target_occurrence: int = 1
    not_found_target: Optional[str] = None
    subject: str = ""
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        self.pending = frozenset(self.pending)
        self.target = frozenset(self.target)
        if self.continuous_target_occurrence < 1:
            raise ValueError("continuous_target_occurrence must be at least 1")
        if self.not_found_target is not None and self.not_found_target not in self.target:
            raise ValueError("not_found_target must be one of the target states")


def _tick(spec: ConvergenceSpec, last_state: Optional[str]) -> Tuple[Any, str]:
    try:
        return spec.refresh()
    except ResourceNotFoundError as exc:
        if spec.not_found_target is None:
            raise ConvergenceError(
                f"Resource {spec.subject} disappeared while waiting: {exc}",
                subject=spec.subject,
                last_state=last_state,
            ) from exc
        _LOG.debug("%s not found, treating as %s", spec.subject, spec.not_found_target)
        return None, spec.not_found_target
    except ConvergenceError:
        raise
    except Exception as exc:
        raise ConvergenceError(
            f"Error waiting for {spec.subject}: {exc}",
            subject=spec.subject,
            last_state=last_state,
        ) from exc


def wait_for_state(spec: ConvergenceSpec) -> Any:
    """Refresh until a target state is seen often enough, or time runs out.

    Returns the value produced by the last refresh. Ticks never overlap: the
    loop sleeps between refreshes for at least ``min_interval``, starting from
    a short wait that doubles up to ten seconds, and never past the deadline.
    """

    deadline = spec.clock() + spec.timeout
    if spec.delay > 0:
        spec.sleep(min(spec.delay, max(spec.timeout, 0.0)))

    wait = INITIAL_WAIT
    target_occurrences = 0
    last_state: Optional[str] = None
    while True:
        value, state = _tick(spec, last_state)
        _LOG.debug("Waiting for %s: state=%s", spec.subject, state)
        last_state = state

        if state in spec.target:
            target_occurrences += 1
            if target_occurrences >= spec.continuous_target_occurrence:
                return value
        elif state in spec.pending:
            target_occurrences = 0
        else:
            raise ConvergenceError(
                f"Unexpected state {state!r} for {spec.subject}, wanted target {sorted(spec.target)}",
                subject=spec.subject,
                last_state=state,
            )

        remaining = deadline - spec.clock()
        if remaining <= 0:
            raise ConvergenceTimeoutError(spec.subject, last_state, spec.timeout)

        spec.sleep(min(max(wait, spec.min_interval), remaining))
        wait = min(wait * 2, MAX_WAIT)
