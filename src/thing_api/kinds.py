"""Resource kind descriptors.

One generic store/router pair serves every kind; a kind only differs in its
base path, the name of its generated integer attribute, whether it can be
listed and how strictly names are validated.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True, slots=True)
class ResourceKind:
    name: str
    payload_field: str
    listable: bool = False
    min_name_length: int = 5
    max_name_length: int | None = None
    forbidden_chars: str = ""

    @property
    def base_path(self) -> str:
        return f"/api/{self.name}"


THING = ResourceKind(name="thing", payload_field="flooble")

TOKEN = ResourceKind(
    name="token",
    payload_field="nonce",
    listable=True,
    max_name_length=64,
    forbidden_chars=";",
)

BUILTIN_KINDS: Mapping[str, ResourceKind] = MappingProxyType(
    {kind.name: kind for kind in (THING, TOKEN)}
)
