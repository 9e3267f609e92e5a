"""Tests for the sync driver."""

import asyncio
from typing import Any, Dict, List, Mapping, Optional
from unittest.mock import Mock

import pytest

from eventsync.events.models import Event
from eventsync.importers.base import Importer
from eventsync.importers.exceptions import ImporterFetchError
from eventsync.importers.registry import ImporterRegistry
from eventsync.sync.manager import SyncManager


class StubImporter(Importer):
    """Importer serving canned events per organization."""

    name = "stub"

    def __init__(self, events: Dict[str, List[Event]], failures: Optional[Dict[str, Exception]] = None):
        super().__init__(fetcher=Mock())
        self.events = events
        self.failures = failures or {}
        self.active = 0
        self.peak = 0
        self.calls: List[str] = []

    async def import_events(
        self, endpoint: str, organization: str, options: Optional[Mapping[str, Any]] = None
    ) -> List[Event]:
        self.calls.append(organization)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01)
            if organization in self.failures:
                raise self.failures[organization]
            return list(self.events.get(organization, []))
        finally:
            self.active -= 1


def _manager(test_settings, store, organization_config, importer, names, concurrency=None):
    test_settings.organizations = {name: organization_config(importer="stub") for name in names}
    registry = ImporterRegistry()
    registry.register("stub", importer)
    return SyncManager(test_settings, store, registry, concurrency=concurrency)


class TestSyncManager:
    """Tests for SyncManager.run."""

    @pytest.mark.asyncio
    async def test_run_when_one_organization_fails_then_others_still_sync(
        self, test_settings, store, organization_config, event_factory
    ):
        importer = StubImporter(
            {"One": [event_factory("a", "One")], "Three": [event_factory("c", "Three")]},
            failures={"Two": ImporterFetchError("HTTP 500", "Two")},
        )
        manager = _manager(test_settings, store, organization_config, importer, ["One", "Two", "Three"])

        report = await manager.run()

        by_name = {r.organization: r for r in report.organizations}
        assert by_name["One"].success and by_name["Three"].success
        assert by_name["Two"].error == "HTTP 500"
        assert [r.organization for r in report.failed] == ["Two"]
        assert not report.success
        assert await store.count_events() == 2

    @pytest.mark.asyncio
    async def test_run_when_fetch_fails_then_existing_events_not_pruned(
        self, test_settings, store, organization_config, event_factory
    ):
        await store.insert(event_factory("kept", "One"))
        importer = StubImporter({}, failures={"One": ImporterFetchError("timeout", "One")})
        manager = _manager(test_settings, store, organization_config, importer, ["One"])

        report = await manager.run()

        assert report.organizations[0].prune is None
        assert [e.uid for e in await store.list_events()] == ["kept"]

    @pytest.mark.asyncio
    async def test_run_when_unexpected_error_then_reported(self, test_settings, store, organization_config):
        importer = StubImporter({}, failures={"One": RuntimeError("boom")})
        manager = _manager(test_settings, store, organization_config, importer, ["One"])

        report = await manager.run()

        assert report.organizations[0].error == "boom"

    @pytest.mark.asyncio
    async def test_run_when_successful_then_reconciles_and_prunes(
        self, test_settings, store, organization_config, event_factory
    ):
        await store.insert(event_factory("gone", "One"))
        importer = StubImporter({"One": [event_factory("new", "One")]})
        manager = _manager(test_settings, store, organization_config, importer, ["One"])

        report = await manager.run()

        org_report = report.organizations[0]
        assert org_report.fetched == 1
        assert org_report.sync.inserted == 1
        assert org_report.prune.pruned == 1
        assert report.finished_at is not None
        assert [e.uid for e in await store.list_events()] == ["new"]

    @pytest.mark.asyncio
    async def test_run_when_stop_requested_then_organizations_skipped(
        self, test_settings, store, organization_config, event_factory
    ):
        importer = StubImporter({"One": [event_factory("a", "One")]})
        manager = _manager(test_settings, store, organization_config, importer, ["One", "Two"])
        stop_event = asyncio.Event()
        stop_event.set()

        report = await manager.run(stop_event=stop_event)

        assert report.cancelled is True
        assert all(r.skipped for r in report.organizations)
        assert importer.calls == []

    @pytest.mark.asyncio
    async def test_run_when_concurrency_limited_then_bound_respected(
        self, test_settings, store, organization_config
    ):
        names = [f"Org {i}" for i in range(6)]
        importer = StubImporter({name: [] for name in names})
        manager = _manager(test_settings, store, organization_config, importer, names, concurrency=2)

        await manager.run()

        assert sorted(importer.calls) == sorted(names)
        assert importer.peak <= 2

    @pytest.mark.asyncio
    async def test_run_when_organizations_named_then_only_those_synced(
        self, test_settings, store, organization_config
    ):
        importer = StubImporter({})
        manager = _manager(test_settings, store, organization_config, importer, ["One", "Two"])

        report = await manager.run(organizations=["Two", "Missing"])

        assert [r.organization for r in report.organizations] == ["Two"]
        assert importer.calls == ["Two"]

    @pytest.mark.asyncio
    async def test_run_when_organization_disabled_then_not_selected(
        self, test_settings, store, organization_config
    ):
        importer = StubImporter({})
        test_settings.organizations = {
            "On": organization_config(importer="stub"),
            "Off": organization_config(importer="stub", enabled=False),
        }
        registry = ImporterRegistry()
        registry.register("stub", importer)

        report = await SyncManager(test_settings, store, registry).run()

        assert [r.organization for r in report.organizations] == ["On"]

    @pytest.mark.asyncio
    async def test_run_when_importer_unknown_then_organization_fails(
        self, test_settings, store, organization_config
    ):
        test_settings.organizations = {"One": organization_config(importer="nope")}

        report = await SyncManager(test_settings, store, ImporterRegistry()).run()

        assert "nope" in report.organizations[0].error
