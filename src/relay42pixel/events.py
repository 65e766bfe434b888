"""Event kinds accepted by the pixel client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Engagement:
    uuid: str
    type: str
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Fact:
    uuid: str
    type: str
    ttl_seconds: int
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Mapping:
    uuid: str
    profile_id: str
    partner_id: str | None = None
    merge: bool = True
