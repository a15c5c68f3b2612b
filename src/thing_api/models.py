"""Resource record and lifecycle status.

``Resource`` is an immutable snapshot: the store replaces records on
transition instead of mutating them, so callers always hold a copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ResourceStatus(str, Enum):
    """Closed set of lifecycle states. Values are the wire strings."""

    PENDING = "creating"
    READY = "created"
    FAILED = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not ResourceStatus.PENDING


@dataclass(frozen=True, slots=True)
class Resource:
    """State snapshot for one resource."""

    id: str
    name: str
    status: ResourceStatus
    created_at: datetime
    updated_at: datetime
    payload: int

    def to_dict(self, payload_field: str = "payload") -> dict[str, Any]:
        """Serialize to the JSON shape served by the API."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            payload_field: self.payload,
        }
