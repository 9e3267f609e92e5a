"""Tests for the Action Network importer."""

import json
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import httpx
import pytest

from eventsync.ics.fetcher import FeedFetcher
from eventsync.importers.action_network import (
    ActionNetworkImporter,
    format_location,
    select_uid,
)
from eventsync.importers.exceptions import ImporterConfigError, ImporterDataError, ImporterFetchError

BASE_URL = "https://actionnetwork.org/api/v2/events"
CHICAGO = ZoneInfo("America/Chicago")


def _osdi_event(number: int, **overrides):
    item = {
        "identifiers": ["facebook:123", f"action_network:event-{number}"],
        "title": f"Event {number}",
        "status": "confirmed",
        "start_date": "2025-06-01T18:00:00Z",
        "end_date": "2025-06-01T20:00:00Z",
        "created_date": "2025-05-01T12:00:00Z",
        "browser_url": f"https://actionnetwork.org/events/event-{number}",
        "location": {
            "venue": "Library",
            "address_lines": ["1515 Young St"],
            "locality": "Dallas",
            "region": "TX",
            "postal_code": "75201",
        },
    }
    item.update(overrides)
    return item


def _page(events, next_href=None):
    body = {"_embedded": {"osdi:events": events}, "_links": {}}
    if next_href:
        body["_links"]["next"] = {"href": next_href}
    return httpx.Response(200, content=json.dumps(body).encode())


class TestActionNetworkImporter:
    """Tests for ActionNetworkImporter.import_events."""

    @pytest.mark.asyncio
    async def test_import_when_three_pages_then_all_events_in_order(self, test_settings, transport_factory):
        requests = []
        routes = {
            BASE_URL: _page([_osdi_event(1), _osdi_event(2)], f"{BASE_URL}?page=2"),
            f"{BASE_URL}?page=2": _page([_osdi_event(3), _osdi_event(4)], f"{BASE_URL}?page=3"),
            f"{BASE_URL}?page=3": _page([_osdi_event(5), _osdi_event(6)]),
        }

        async with FeedFetcher(test_settings, transport=transport_factory(routes, requests)) as fetcher:
            importer = ActionNetworkImporter(fetcher)
            events = await importer.import_events(BASE_URL, "Riders", {"api_key": "token"})

        assert [e.uid for e in events] == [f"action_network:event-{n}" for n in range(1, 7)]
        assert len(requests) == 3
        assert all(r.headers["OSDI-API-Token"] == "token" for r in requests)
        assert requests[0].headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_import_when_api_key_missing_then_config_error_names_organization(self, test_settings):
        importer = ActionNetworkImporter(FeedFetcher(test_settings))

        with pytest.raises(ImporterConfigError, match="Riders"):
            await importer.import_events(BASE_URL, "Riders", {})

    @pytest.mark.asyncio
    async def test_import_when_page_fails_then_fetch_error(self, test_settings, transport_factory):
        routes = {BASE_URL: _page([_osdi_event(1)], f"{BASE_URL}?page=2")}

        async with FeedFetcher(test_settings, transport=transport_factory(routes)) as fetcher:
            with pytest.raises(ImporterFetchError):
                await ActionNetworkImporter(fetcher).import_events(BASE_URL, "Riders", {"api_key": "k"})

    @pytest.mark.asyncio
    async def test_import_when_next_link_loops_then_data_error(self, test_settings, transport_factory):
        routes = {BASE_URL: _page([_osdi_event(1)], BASE_URL)}

        async with FeedFetcher(test_settings, transport=transport_factory(routes)) as fetcher:
            with pytest.raises(ImporterDataError):
                await ActionNetworkImporter(fetcher).import_events(BASE_URL, "Riders", {"api_key": "k"})

    @pytest.mark.asyncio
    async def test_import_when_endpoint_empty_then_default_api_used(self, test_settings, transport_factory):
        routes = {BASE_URL: _page([])}

        async with FeedFetcher(test_settings, transport=transport_factory(routes)) as fetcher:
            events = await ActionNetworkImporter(fetcher).import_events("", "Riders", {"api_key": "k"})

        assert events == []


class TestActionNetworkConversion:
    """Tests for converting one OSDI event."""

    def _convert(self, test_settings, item):
        return ActionNetworkImporter(FeedFetcher(test_settings)).convert(item, "Riders")

    def test_convert_when_full_event_then_fields_mapped(self, test_settings):
        event = self._convert(test_settings, _osdi_event(1))

        assert event.organization == "Riders"
        assert event.summary == "Event 1"
        assert event.location == "Library, 1515 Young St, Dallas, TX, 75201"
        assert event.status == "CONFIRMED"
        assert event.transparency == "OPAQUE"
        assert event.created == event.modified == datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_convert_when_created_has_no_offset_then_read_in_default_zone(self, test_settings):
        event = self._convert(test_settings, _osdi_event(1, created_date="2025-05-01T12:00:00"))

        assert event.created == event.modified == datetime(2025, 5, 1, 12, 0, tzinfo=CHICAGO)

    def test_convert_when_utc_designator_then_wall_clock_in_default_zone(self, test_settings):
        event = self._convert(test_settings, _osdi_event(1))

        assert event.start_time == datetime(2025, 6, 1, 18, 0, tzinfo=CHICAGO)
        assert event.end_time == datetime(2025, 6, 1, 20, 0, tzinfo=CHICAGO)

    def test_convert_when_no_end_date_then_one_hour_after_start(self, test_settings):
        item = _osdi_event(1)
        del item["end_date"]

        event = self._convert(test_settings, item)

        assert event.end_time - event.start_time == timedelta(hours=1)

    def test_convert_when_description_then_registration_text_escaped(self, test_settings):
        event = self._convert(test_settings, _osdi_event(1))

        assert event.description == (
            "Register for this event from Riders on Action Network: "
            "https://actionnetwork.org/events/event-1"
        )

    def test_convert_when_organization_has_comma_then_description_escaped(self, test_settings):
        importer = ActionNetworkImporter(FeedFetcher(test_settings))

        event = importer.convert(_osdi_event(1), "Walk, Bike")

        assert "Walk\\, Bike" in event.description


class TestHelpers:
    """Tests for UID and location helpers."""

    def test_select_uid_when_no_action_network_identifier_then_empty(self):
        assert select_uid(["facebook:1", "plain"]) == ""
        assert select_uid(None) == ""

    def test_select_uid_when_several_then_first_action_network(self):
        assert select_uid(["action_network:a", "action_network:b"]) == "action_network:a"

    def test_format_location_when_parts_missing_then_omitted(self):
        assert format_location({"venue": "", "address_lines": [], "locality": "Dallas", "region": "TX"}) == (
            "Dallas, TX"
        )
        assert format_location(None) == ""

    def test_format_location_when_multiple_address_lines_then_comma_joined(self):
        location = {"address_lines": ["Suite 2", "100 Main St"], "postal_code": "75201"}

        assert format_location(location) == "Suite 2, 100 Main St, 75201"
