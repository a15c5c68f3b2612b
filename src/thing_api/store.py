"""Thread-safe in-memory resource store.

The store exclusively owns every record. All map access and the
read-triggered transition check happen under a single lock, so two
concurrent reads of the same eligible resource cannot both commit a
transition. Records are immutable snapshots, so callers never see later
changes to what they were handed.

Nothing here persists across restarts.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Protocol

from .errors import InvalidResourceState, ResourceNotFound
from .kinds import ResourceKind
from .models import Resource, ResourceStatus
from .observability.logging import get_logger
from .observability.metrics import RESOURCES_CREATED_TOTAL, RESOURCE_TRANSITIONS_TOTAL
from .state_machine import (
    DEFAULT_ELIGIBILITY,
    ROLL_SIDES,
    check_transition,
    is_eligible,
    outcome_for_roll,
)

logger = get_logger(__name__)

PAYLOAD_BITS = 63

Clock = Callable[[], datetime]


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...

    def getrandbits(self, k: int) -> int: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResourceStore:
    """Owns the id -> Resource mapping for one resource kind."""

    def __init__(
        self,
        kind: ResourceKind,
        *,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        eligibility: timedelta = DEFAULT_ELIGIBILITY,
    ) -> None:
        self.kind = kind
        self._clock = clock or utc_now
        self._rng = rng if rng is not None else random.Random()
        self._eligibility = eligibility
        self._resources: dict[str, Resource] = {}
        self._lock = Lock()

    def create(self, name: str) -> Resource:
        """Store a new pending resource. ``name`` must already be sanitized."""
        with self._lock:
            resource_id = str(uuid.uuid4())
            while resource_id in self._resources:
                resource_id = str(uuid.uuid4())
            now = self._clock()
            resource = Resource(
                id=resource_id,
                name=name,
                status=ResourceStatus.PENDING,
                created_at=now,
                updated_at=now,
                payload=self._rng.getrandbits(PAYLOAD_BITS),
            )
            self._resources[resource_id] = resource

        RESOURCES_CREATED_TOTAL.labels(kind=self.kind.name).inc()
        logger.info("resource_created", kind=self.kind.name, resource_id=resource_id)
        return resource

    def get(self, resource_id: str) -> Resource:
        """Return a resource, rolling once for a transition if it is eligible.

        Raises:
            ResourceNotFound: if the id is unknown.
        """
        with self._lock:
            resource = self._resources.get(resource_id)
            if resource is None:
                raise ResourceNotFound(resource_id)

            now = self._clock()
            if not is_eligible(resource.status, resource.created_at, now, self._eligibility):
                return resource

            outcome = outcome_for_roll(self._rng.randrange(ROLL_SIDES))
            if outcome is None:
                return resource

            check_transition(resource.status, outcome)
            resource = replace(resource, status=outcome, updated_at=now)
            self._resources[resource_id] = resource

        RESOURCE_TRANSITIONS_TOTAL.labels(kind=self.kind.name, status=outcome.value).inc()
        logger.info(
            "resource_transitioned",
            kind=self.kind.name,
            resource_id=resource_id,
            status=outcome.value,
        )
        return resource

    def delete(self, resource_id: str) -> None:
        """Remove a terminal resource.

        Raises:
            ResourceNotFound: if the id is unknown.
            InvalidResourceState: if the resource is still pending.
        """
        with self._lock:
            resource = self._resources.get(resource_id)
            if resource is None:
                raise ResourceNotFound(resource_id)
            if resource.status is ResourceStatus.PENDING:
                raise InvalidResourceState(self.kind.name, resource_id)
            del self._resources[resource_id]

        logger.info("resource_deleted", kind=self.kind.name, resource_id=resource_id)

    def list(self) -> list[Resource]:
        """Snapshot of all stored resources, in insertion order."""
        with self._lock:
            return list(self._resources.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)
