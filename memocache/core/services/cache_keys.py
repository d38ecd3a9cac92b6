"""Standard cache keys and namespace invalidation.

Keys are colon-delimited and hierarchical: `<namespace>:<kind>[:<arg>]`.
Namespace invalidation relies on the `^<namespace>:` prefix, so changing
the delimiter or the prefixes breaks every caller that invalidates.
"""

import json
import logging
from typing import Any, Mapping, Optional

from memocache.domain.interfaces.cache import CacheStore
from memocache.domain.models.common import KEY_DELIMITER, CacheKey, CacheNamespace, KeyPattern

logger = logging.getLogger(__name__)

EVENTS = CacheNamespace("events")
CLIENTS = CacheNamespace("clients")
TESTIMONIALS = CacheNamespace("testimonials")
SETTINGS = CacheNamespace("settings")
IMAGES = CacheNamespace("images")

NAMESPACES = (EVENTS, CLIENTS, TESTIMONIALS, SETTINGS, IMAGES)


def make_key(namespace: str, *parts: Any) -> CacheKey:
    """Joins a namespace and its parts with the key delimiter."""
    return CacheKey(KEY_DELIMITER.join([namespace, *map(str, parts)]))


def namespace_pattern(namespace: str) -> KeyPattern:
    """Regex source matching every key in `namespace`."""
    return KeyPattern(f"^{namespace}{KEY_DELIMITER}")


def namespace_of(key: str) -> CacheNamespace:
    return CacheNamespace(key.split(KEY_DELIMITER, 1)[0])


class EventKeys:
    ALL = make_key(EVENTS, "all")
    ACTIVE = make_key(EVENTS, "active")
    STATS = make_key(EVENTS, "stats")

    @staticmethod
    def by_type(event_type: str) -> CacheKey:
        return make_key(EVENTS, "type", event_type)

    @staticmethod
    def by_id(event_id: Any) -> CacheKey:
        return make_key(EVENTS, "id", event_id)

    @staticmethod
    def filtered(filters: Optional[Mapping[str, Any]] = None, page: int = 1, limit: int = 10) -> CacheKey:
        """Key for a filtered, paginated listing.

        The descriptor is canonical JSON (sorted keys), so equal filters map
        to the same key regardless of insertion order.
        """
        descriptor = json.dumps(
            {"filters": dict(filters or {}), "page": page, "limit": limit},
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        return make_key(EVENTS, "filtered", descriptor)


class ClientKeys:
    ALL = make_key(CLIENTS, "all")
    ACTIVE = make_key(CLIENTS, "active")
    STATS = make_key(CLIENTS, "stats")

    @staticmethod
    def by_id(client_id: Any) -> CacheKey:
        return make_key(CLIENTS, "id", client_id)


class TestimonialKeys:
    ALL = make_key(TESTIMONIALS, "all")
    APPROVED = make_key(TESTIMONIALS, "approved")
    FEATURED = make_key(TESTIMONIALS, "featured")

    @staticmethod
    def by_id(testimonial_id: Any) -> CacheKey:
        return make_key(TESTIMONIALS, "id", testimonial_id)


class SettingKeys:
    ALL = make_key(SETTINGS, "all")

    @staticmethod
    def by_key(name: str) -> CacheKey:
        return make_key(SETTINGS, "key", name)


class ImageKeys:
    CAROUSEL = make_key(IMAGES, "carousel")

    @staticmethod
    def by_id(image_id: Any) -> CacheKey:
        return make_key(IMAGES, "id", image_id)


class CacheKeys:
    """Entry point grouping the key builders by namespace."""
    events = EventKeys
    clients = ClientKeys
    testimonials = TestimonialKeys
    settings = SettingKeys
    images = ImageKeys


class NamespaceInvalidator:
    """Bulk invalidation of whole namespaces on a store."""

    def __init__(self, store: CacheStore):
        self.store = store

    def invalidate(self, namespace: str) -> int:
        count = self.store.invalidate_pattern(namespace_pattern(namespace))
        logger.info(f"Invalidated namespace '{namespace}': {count} entries")
        return count

    def invalidate_events(self) -> int:
        return self.invalidate(EVENTS)

    def invalidate_clients(self) -> int:
        return self.invalidate(CLIENTS)

    def invalidate_testimonials(self) -> int:
        return self.invalidate(TESTIMONIALS)

    def invalidate_settings(self) -> int:
        return self.invalidate(SETTINGS)

    def invalidate_images(self) -> int:
        return self.invalidate(IMAGES)

    def invalidate_all(self) -> None:
        self.store.clear()
