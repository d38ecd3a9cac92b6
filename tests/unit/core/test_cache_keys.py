import json

import pytest

from memocache.core.services import cache_keys
from memocache.core.services.cache_keys import CacheKeys, NamespaceInvalidator, make_key, namespace_of


def test_static_keys():
    assert CacheKeys.events.ALL == "events:all"
    assert CacheKeys.events.ACTIVE == "events:active"
    assert CacheKeys.clients.STATS == "clients:stats"
    assert CacheKeys.testimonials.FEATURED == "testimonials:featured"
    assert CacheKeys.settings.ALL == "settings:all"
    assert CacheKeys.images.CAROUSEL == "images:carousel"


def test_parameterized_keys():
    assert CacheKeys.events.by_type("workshop") == "events:type:workshop"
    assert CacheKeys.events.by_id(7) == "events:id:7"
    assert CacheKeys.clients.by_id("abc") == "clients:id:abc"
    assert CacheKeys.testimonials.by_id(3) == "testimonials:id:3"
    assert CacheKeys.settings.by_key("theme") == "settings:key:theme"
    assert CacheKeys.images.by_id(9) == "images:id:9"


def test_filtered_key_is_canonical():
    first = CacheKeys.events.filtered({"type": "talk", "city": "Jakarta"}, page=2, limit=5)
    second = CacheKeys.events.filtered({"city": "Jakarta", "type": "talk"}, page=2, limit=5)
    assert first == second
    assert first.startswith("events:filtered:")

    descriptor = json.loads(first[len("events:filtered:"):])
    assert descriptor == {"filters": {"city": "Jakarta", "type": "talk"}, "page": 2, "limit": 5}


def test_filtered_key_defaults_and_distinct_pages():
    assert CacheKeys.events.filtered() == 'events:filtered:{"filters":{},"limit":10,"page":1}'
    assert CacheKeys.events.filtered(page=1) != CacheKeys.events.filtered(page=2)


def test_make_key_and_namespace_of():
    key = make_key("events", "id", 1)
    assert key == "events:id:1"
    assert namespace_of(key) == "events"


@pytest.fixture
def populated(store):
    store.set(CacheKeys.events.ALL, [1])
    store.set(CacheKeys.events.by_id(1), {"id": 1})
    store.set(CacheKeys.events.filtered({"type": "talk"}), [])
    store.set(CacheKeys.clients.ALL, [2])
    store.set(CacheKeys.images.CAROUSEL, [3])
    # shares a prefix with a namespace but is not inside it
    store.set("eventsarchive:all", [4])
    return store


def test_invalidate_events_only_touches_events(populated):
    invalidator = NamespaceInvalidator(populated)
    assert invalidator.invalidate_events() == 3
    assert sorted(populated.keys()) == ["clients:all", "eventsarchive:all", "images:carousel"]
    assert invalidator.invalidate_events() == 0


@pytest.mark.parametrize("method, namespace", [
    ("invalidate_clients", cache_keys.CLIENTS),
    ("invalidate_testimonials", cache_keys.TESTIMONIALS),
    ("invalidate_settings", cache_keys.SETTINGS),
    ("invalidate_images", cache_keys.IMAGES),
])
def test_namespace_helpers_delegate_to_pattern(method, namespace, mocker):
    store = mocker.MagicMock()
    store.invalidate_pattern.return_value = 4
    assert getattr(NamespaceInvalidator(store), method)() == 4
    store.invalidate_pattern.assert_called_once_with(f"^{namespace}:")


def test_invalidate_all_clears_store(populated):
    NamespaceInvalidator(populated).invalidate_all()
    assert populated.keys() == []
