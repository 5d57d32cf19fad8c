"""Unit Tests for EventBus and sync events

Tests: EventBus subscribe/publish, wildcard subscriptions, thread safety, event serialization
"""
import threading
from unittest.mock import Mock

import pytest

from featuresync.errors import NoResponseBodyError
from featuresync.event_bus import EventBus
from featuresync.events import SyncCompletedEvent, SyncFailedEvent, SyncStartRequestedEvent
from featuresync.models import Feature, Syncable, SyncResult


def completed_event():
    result = SyncResult.create(Feature("bookmarks"), received=[Syncable({"id": "1"})], last_sync_timestamp="7")
    return SyncCompletedEvent(results=(result,))


class TestEventBusBasics:
    """Tests for core EventBus functionality."""

    def test_instantiation(self):
        bus = EventBus()
        assert bus._subscribers == {}

    def test_subscribe_multiple_callbacks_same_type(self):
        bus = EventBus()
        callback1 = Mock()
        callback2 = Mock()

        bus.subscribe('sync.completed', callback1)
        bus.subscribe('sync.completed', callback2)

        assert bus._subscribers['sync.completed'] == [callback1, callback2]

    def test_specific_subscribers_run_before_wildcard(self):
        bus = EventBus()
        calls = []
        bus.subscribe('*', lambda event: calls.append('wildcard'))
        bus.subscribe('sync.failed', lambda event: calls.append('specific'))

        bus.publish(SyncFailedEvent(error=NoResponseBodyError()))

        assert calls == ['specific', 'wildcard']


class TestEventBusPublish:
    """Tests for event publishing."""

    def test_publish_calls_matching_subscribers_only(self):
        bus = EventBus()
        on_completed = Mock()
        on_failed = Mock()
        bus.subscribe('sync.completed', on_completed)
        bus.subscribe('sync.failed', on_failed)

        event = completed_event()
        bus.publish(event)

        on_completed.assert_called_once_with(event)
        on_failed.assert_not_called()

    def test_publish_missing_event_type_attribute(self):
        """Objects without event_type are dropped."""
        bus = EventBus()
        callback = Mock()
        bus.subscribe('sync.completed', callback)

        bus.publish({"data": "test"})

        callback.assert_not_called()

    def test_publish_handles_callback_exception(self):
        """Publishing continues if a callback raises exception."""
        bus = EventBus()

        def failing_callback(event):
            raise ValueError("Callback error")

        callback2 = Mock()
        bus.subscribe('sync.failed', failing_callback)
        bus.subscribe('sync.failed', callback2)

        event = SyncFailedEvent(error=NoResponseBodyError())
        bus.publish(event)

        callback2.assert_called_once_with(event)

    def test_wildcard_and_specific_both_called(self):
        bus = EventBus()
        wildcard_callback = Mock()
        specific_callback = Mock()
        bus.subscribe('*', wildcard_callback)
        bus.subscribe('sync.start_requested', specific_callback)

        event = SyncStartRequestedEvent(source="sync_trigger")
        bus.publish(event)

        wildcard_callback.assert_called_once_with(event)
        specific_callback.assert_called_once_with(event)


class TestEventBusUnsubscribe:

    def test_unsubscribe_cleans_up_empty_lists(self):
        bus = EventBus()
        callback = Mock()

        bus.subscribe('sync.completed', callback)
        assert bus.unsubscribe('sync.completed', callback) is True

        assert 'sync.completed' not in bus._subscribers
        assert bus.unsubscribe('sync.completed', callback) is False


class TestEventBusThreadSafety:

    def test_concurrent_publish(self):
        """Multiple threads can publish concurrently."""
        bus = EventBus()
        callback = Mock()
        bus.subscribe('sync.start_requested', callback)

        threads = [
            threading.Thread(target=bus.publish, args=(SyncStartRequestedEvent(source=f"t{i}"),))
            for i in range(10)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert callback.call_count == 10


class TestEvents:
    """Event serialization."""

    def test_completed_to_dict(self):
        data = completed_event().to_dict()

        assert data["event_type"] == "sync.completed"
        assert data["results"] == [{
            "feature": "bookmarks",
            "sent": [],
            "received": [{"id": "1"}],
            "last_sync_timestamp": "7",
        }]
        assert data["metadata"] == {}

    def test_failed_to_dict(self):
        data = SyncFailedEvent(error=NoResponseBodyError()).to_dict()

        assert data["event_type"] == "sync.failed"
        assert data["syncError"] == "noResponseBody"
        assert data["server_error"] is True

    @pytest.mark.parametrize("source", ["sync_trigger", "app_lifecycle"])
    def test_start_requested_to_dict(self, source):
        data = SyncStartRequestedEvent(source=source).to_dict()

        assert data["event_type"] == "sync.start_requested"
        assert data["source"] == source
