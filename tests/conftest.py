"""Shared test fixtures: lightweight settings, a temporary event store and HTTP stubs."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union
from unittest.mock import Mock

import httpx
import pytest
import pytest_asyncio

from eventsync.config.settings import OrganizationConfig
from eventsync.events.models import Event
from eventsync.store.database import EventStore

BASE_START = datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings(tmp_path):
    """Create lightweight settings without file or environment I/O."""
    settings = Mock()
    settings.request_timeout = 5
    settings.user_agent = None
    settings.block_private_networks = True
    settings.default_timezone = "America/Chicago"
    settings.sync_concurrency = 2
    settings.organizations = {}
    settings.database_file = tmp_path / "events.db"
    settings.data_dir = tmp_path
    return settings


@pytest_asyncio.fixture
async def store(tmp_path):
    """Event store backed by a temporary SQLite file."""
    event_store = EventStore(tmp_path / "events.db")
    await event_store.initialize()
    yield event_store


def make_event(uid: str = "event-1", organization: str = "Test Org", **overrides: Any) -> Event:
    """Build an event with sensible defaults."""
    values: Dict[str, Any] = {
        "uid": uid,
        "organization": organization,
        "summary": f"Event {uid}",
        "location": "City Hall",
        "start_time": BASE_START,
        "end_time": BASE_START + timedelta(hours=1),
        "sequence": 0,
    }
    values.update(overrides)
    return Event(**values)


@pytest.fixture
def event_factory() -> Callable[..., Event]:
    """Factory for test events."""
    return make_event


Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def mock_transport(routes: Dict[str, Responder], requests: Optional[list] = None) -> httpx.MockTransport:
    """MockTransport answering by full URL; unknown URLs get a 404.

    Args:
        routes: URL to response (or callable producing one)
        requests: Optional list every request is appended to
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        responder = routes.get(str(request.url))
        if responder is None:
            return httpx.Response(404, text="not found")
        if callable(responder):
            return responder(request)
        return responder

    return httpx.MockTransport(handler)


@pytest.fixture
def organization_config() -> Callable[..., OrganizationConfig]:
    """Factory for organization configs."""

    def _make(url: str = "https://example.com/feed.ics", importer: str = "ical", **kwargs: Any) -> OrganizationConfig:
        return OrganizationConfig(url=url, importer=importer, **kwargs)

    return _make


@pytest.fixture
def transport_factory() -> Callable[..., httpx.MockTransport]:
    """Factory for URL-routed mock transports."""
    return mock_transport
