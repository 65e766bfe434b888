"""Map events onto the collector's query parameters.

Engagements and facts are sent to ``/t-<site_id>``; mappings to
``/syncResponse``. Each encoder returns an ordered list of ``(key, value)``
pairs. Percent-encoding happens later in :func:`encode_query`.
"""

from __future__ import annotations

import time
from itertools import islice
from typing import Callable
from urllib.parse import quote

from relay42pixel.config.models import PixelConfig
from relay42pixel.errors import InvalidRequest
from relay42pixel.events import Engagement, Fact, Mapping
from relay42pixel.runtime_logging import get_runtime_logger

MAX_PROPERTIES = 32
SYNC_PATH = "/syncResponse"

QueryItems = list[tuple[str, str]]
Clock = Callable[[], float]


def cachebuster(clock: Clock = time.time) -> str:
    """Milliseconds since the Unix epoch, as a base-10 string."""
    return str(int(clock() * 1000))


def tracking_path(config: PixelConfig) -> str:
    return f"/t-{config.site_id}"


def property_items(properties: dict[str, str] | None) -> QueryItems:
    if not properties:
        return []

    items = [("cup", f"{key}:{value}") for key, value in islice(properties.items(), MAX_PROPERTIES)]
    dropped = len(properties) - len(items)
    if dropped > 0:
        get_runtime_logger().debug(
            "pixel.properties_truncated",
            kept=len(items),
            dropped=dropped,
        )
    return items


def encode_engagement(event: Engagement, cb: str) -> QueryItems:
    return [
        ("i", event.uuid),
        ("e", "true"),
        ("et", event.type),
        ("cb", cb),
        *property_items(event.properties),
    ]


def encode_fact(event: Fact, cb: str) -> QueryItems:
    return [
        ("i", event.uuid),
        ("f", "true"),
        ("ft", event.type),
        ("fttl", str(int(event.ttl_seconds))),
        ("cb", cb),
        *property_items(event.properties),
    ]


def resolve_partner_id(event: Mapping, config: PixelConfig) -> str:
    partner_id = event.partner_id if event.partner_id is not None else config.default_partner_id
    if partner_id is None:
        raise InvalidRequest("mapping needs a partner id and no default_partner_id is configured")
    return partner_id


def encode_mapping(event: Mapping, config: PixelConfig, cb: str) -> QueryItems:
    partner_id = resolve_partner_id(event, config)
    return [
        ("ca_site", config.site_id),
        ("ca_partner", partner_id),
        ("ca_cookie", event.uuid),
        ("pid", event.profile_id),
        ("cb", cb),
        ("ca_merge", "1" if event.merge else "0"),
    ]


def encode_query(items: QueryItems) -> str:
    # quote() keeps only alphanumerics and "-._~"; ":" in cup values becomes %3A.
    return "&".join(f"{quote(key, safe='')}={quote(value, safe='')}" for key, value in items)
