"""Resource lifecycle state machine.

Implements the read-triggered transition flow:
  creating --(roll 0)--> error
  creating --(roll 1..3)--> created
  creating --(roll 4..9)--> creating (re-rolled on the next read)

Terminal states never change. A resource only becomes eligible for a roll
once strictly more than the eligibility threshold has elapsed since creation.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Mapping

from .models import ResourceStatus

ROLL_SIDES = 10
DEFAULT_ELIGIBILITY = timedelta(seconds=3)

# Draw in [0, ROLL_SIDES) -> new status. Draws not listed leave the
# resource pending.
ROLL_OUTCOMES: Mapping[int, ResourceStatus] = MappingProxyType(
    {
        0: ResourceStatus.FAILED,
        1: ResourceStatus.READY,
        2: ResourceStatus.READY,
        3: ResourceStatus.READY,
    }
)

ALLOWED_TRANSITIONS: Mapping[ResourceStatus, frozenset[ResourceStatus]] = MappingProxyType(
    {
        ResourceStatus.PENDING: frozenset({ResourceStatus.READY, ResourceStatus.FAILED}),
        ResourceStatus.READY: frozenset(),
        ResourceStatus.FAILED: frozenset(),
    }
)


class InvalidStateTransition(ValueError):
    """Raised for transitions outside ALLOWED_TRANSITIONS."""

    def __init__(self, from_state: ResourceStatus, to_state: ResourceStatus) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"invalid state transition: {from_state.value!r} -> {to_state.value!r}"
        )


def is_eligible(
    status: ResourceStatus,
    created_at: datetime,
    now: datetime,
    threshold: timedelta = DEFAULT_ELIGIBILITY,
) -> bool:
    """Return True if a resource may roll for a transition at ``now``."""
    return status is ResourceStatus.PENDING and (now - created_at) > threshold


def outcome_for_roll(draw: int) -> ResourceStatus | None:
    """Map a uniform draw in [0, ROLL_SIDES) to the status it produces.

    Returns None when the draw leaves the resource pending.
    """
    if not 0 <= draw < ROLL_SIDES:
        raise ValueError(f"roll must be in [0, {ROLL_SIDES}), got {draw}")
    return ROLL_OUTCOMES.get(draw)


def check_transition(from_state: ResourceStatus, to_state: ResourceStatus) -> None:
    if to_state not in ALLOWED_TRANSITIONS[from_state]:
        raise InvalidStateTransition(from_state, to_state)
