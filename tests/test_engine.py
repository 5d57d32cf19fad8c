"""Tests for SyncEngine

Tests: background cycles, result/error publishing, single-flight absorption
"""
import asyncio
from unittest.mock import Mock

import pytest

from featuresync.engine import SyncEngine
from featuresync.errors import MissingFeatureError, ProviderRegistrationError
from featuresync.events import SyncCompletedEvent, SyncFailedEvent
from featuresync.scheduler import SyncScheduler


class TestStartSync:

    @pytest.mark.asyncio
    async def test_successful_cycle_publishes_results(self, make_provider, make_api, make_response, endpoints):
        api = make_api(make_response(bookmarks=("5", [{"id": "r"}])))
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        on_results = Mock()
        on_errors = Mock()
        engine.subscribe_results(on_results)
        engine.subscribe_errors(on_errors)

        assert engine.start_sync() is True
        await engine.wait_idle()

        on_results.assert_called_once()
        event = on_results.call_args[0][0]
        assert isinstance(event, SyncCompletedEvent)
        assert len(event.results) == 1
        assert event.results[0].last_sync_timestamp == "5"
        on_errors.assert_not_called()
        assert engine.last_error is None

    @pytest.mark.asyncio
    async def test_start_sync_does_not_block(self, make_provider, make_api, make_response, endpoints):
        gate = asyncio.Event()
        api = make_api(make_response(bookmarks=("1", [])), gate=gate)
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)

        engine.start_sync()

        assert engine.in_flight
        gate.set()
        await engine.wait_idle()
        assert not engine.in_flight

    @pytest.mark.asyncio
    async def test_failed_cycle_publishes_error_only(self, make_provider, make_api, endpoints):
        api = make_api({})
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        on_results = Mock()
        on_errors = Mock()
        engine.subscribe_results(on_results)
        engine.subscribe_errors(on_errors)

        engine.start_sync()
        await engine.wait_idle()

        on_results.assert_not_called()
        on_errors.assert_called_once()
        event = on_errors.call_args[0][0]
        assert isinstance(event, SyncFailedEvent)
        assert isinstance(event.error, MissingFeatureError)
        assert engine.last_error is event.error

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_reported(self, make_provider, make_api, endpoints):
        api = make_api(error=RuntimeError("boom"))
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        on_errors = Mock()
        engine.subscribe_errors(on_errors)

        engine.start_sync()
        await engine.wait_idle()

        on_errors.assert_called_once()
        assert isinstance(engine.last_error, RuntimeError)

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self, make_provider, make_api, make_response, endpoints):
        api = make_api({})
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)

        engine.start_sync()
        await engine.wait_idle()
        assert engine.last_error is not None

        api.data = b'{"bookmarks": {"last_modified": "1", "entries": []}}'
        engine.start_sync()
        await engine.wait_idle()
        assert engine.last_error is None


class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_requests_during_cycle_collapse_into_one_follow_up(self, make_provider, make_api, make_response, endpoints):
        gate = asyncio.Event()
        api = make_api(make_response(bookmarks=("1", [])), gate=gate)
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        on_results = Mock()
        engine.subscribe_results(on_results)

        assert engine.start_sync() is True
        await asyncio.sleep(0.01)
        assert engine.start_sync() is False
        assert engine.start_sync() is False
        assert engine.start_sync() is False

        gate.set()
        await engine.wait_idle()

        assert len(api.requests) == 2
        assert api.max_active == 1
        assert on_results.call_count == 2

    @pytest.mark.asyncio
    async def test_no_follow_up_without_new_requests(self, make_provider, make_api, make_response, endpoints):
        api = make_api(make_response(bookmarks=("1", [])))
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)

        engine.start_sync()
        await engine.wait_idle()

        assert len(api.requests) == 1


class TestProviders:

    def test_register_after_construction_fails(self, make_provider, make_api, endpoints):
        engine = SyncEngine([make_provider("bookmarks")], make_api({}), endpoints)

        with pytest.raises(ProviderRegistrationError):
            engine.register_provider(make_provider("settings"))

        assert [p.feature.name for p in engine.data_providers] == ["bookmarks"]

    def test_duplicate_feature_fails_at_construction(self, make_provider, make_api, endpoints):
        with pytest.raises(ProviderRegistrationError):
            SyncEngine([make_provider("bookmarks"), make_provider("bookmarks")], make_api({}), endpoints)

    @pytest.mark.asyncio
    async def test_results_handed_back_to_providers(self, make_provider, make_api, make_response, endpoints):
        bookmarks = make_provider("bookmarks")
        settings = make_provider("settings", changes=[{"id": "s"}], last_sync_timestamp="3")
        api = make_api(make_response(bookmarks=("10", []), settings=("11", [])))
        engine = SyncEngine([bookmarks, settings], api, endpoints)

        engine.start_sync()
        await engine.wait_idle()

        assert [r.last_sync_timestamp for r in bookmarks.handled] == ["10"]
        assert [r.last_sync_timestamp for r in settings.handled] == ["11"]
        # Next cycle uses the relayed cursor
        assert settings.last_sync_timestamp == "11"

    @pytest.mark.asyncio
    async def test_failed_handoff_waits_for_every_provider(self, make_provider, make_api, make_response, endpoints):
        bookmarks = make_provider("bookmarks")
        settings = make_provider("settings")
        applied = bookmarks.handle_result

        async def slow_apply(result):
            await asyncio.sleep(0.05)
            await applied(result)

        async def failing_apply(result):
            raise OSError("disk full")

        bookmarks.handle_result = slow_apply
        settings.handle_result = failing_apply
        api = make_api(make_response(bookmarks=("10", []), settings=("11", [])))
        engine = SyncEngine([bookmarks, settings], api, endpoints)
        on_results = Mock()
        engine.subscribe_results(on_results)

        engine.start_sync()
        await engine.wait_idle()

        # The slow provider finished before the engine went idle
        assert [r.last_sync_timestamp for r in bookmarks.handled] == ["10"]
        assert bookmarks.last_sync_timestamp == "10"
        assert isinstance(engine.last_error, OSError)
        on_results.assert_not_called()


class TestScheduler:

    @pytest.mark.asyncio
    async def test_scheduler_signal_starts_cycle(self, make_provider, make_api, make_response, endpoints):
        api = make_api(make_response(bookmarks=("1", [])))
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        scheduler = SyncScheduler(immediate_sync_interval=0.01, app_lifecycle_interval=0.01)
        engine.attach(scheduler)

        for _ in range(5):
            scheduler.notify_data_changed()
        await asyncio.sleep(0.1)
        await engine.wait_idle()

        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_detach_stops_reacting(self, make_provider, make_api, make_response, endpoints):
        api = make_api(make_response(bookmarks=("1", [])))
        engine = SyncEngine([make_provider("bookmarks")], api, endpoints)
        scheduler = SyncScheduler(immediate_sync_interval=0.01)
        engine.attach(scheduler)
        engine.detach()

        scheduler.request_sync_immediately()
        await asyncio.sleep(0.05)

        assert api.requests == []
