"""Shared fixtures for engine and server tests."""

from datetime import datetime, timedelta, timezone

import pytest

from personalization import ContentItem, EngineConfig

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_item(item_id, categories=(), hours_old=24.0, now=NOW, **fields) -> ContentItem:
    """ContentItem published hours_old before now."""
    data = {
        "id": item_id,
        "title": fields.pop("title", f"Item {item_id}"),
        "categories": list(categories),
        "published_at": now - timedelta(hours=hours_old),
    }
    data.update(fields)
    return ContentItem.model_validate(data)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def item_factory():
    return make_item
