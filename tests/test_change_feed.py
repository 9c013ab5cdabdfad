"""
Change feed: channel filters, delivery across connections, teardown and the
background poll thread.
"""

import sqlite3
import time
import uuid

import pytest
from unittest.mock import MagicMock, patch

from src.core.change_feed import ChangeFeed, ANY_EVENT
from src.core.dao import create_entry, delete_entry, update_entry
from src.core.errors import StoreError


@pytest.fixture
def feed():
    feed = ChangeFeed(poll_interval=0.05, background=False)
    yield feed
    feed.stop()


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class TestChannelBindings:

    def test_unknown_event_rejected(self, feed):
        with pytest.raises(ValueError, match="Unknown change event"):
            feed.channel("bad").on("TRUNCATE", "schedule_entries", lambda c: None)

    def test_non_callable_rejected(self, feed):
        with pytest.raises(ValueError, match="must be callable"):
            feed.channel("bad").on(ANY_EVENT, "schedule_entries", "not_callable")

    def test_subscribe_registers_channel(self, feed):
        channel = feed.channel("table-db-changes").on(ANY_EVENT, "schedule_entries", lambda c: None).subscribe()
        assert channel.subscribed
        assert feed.channels() == ["table-db-changes"]

    def test_subscribe_twice_is_single_registration(self, feed):
        channel = feed.channel("dup").on(ANY_EVENT, "schedule_entries", lambda c: None)
        channel.subscribe()
        channel.subscribe()
        assert feed.channels() == ["dup"]


class TestDelivery:

    def test_only_changes_after_subscribe_are_delivered(self, feed, entry_fields):
        create_entry(entry_fields(title="before"))
        callback = MagicMock()
        feed.channel("c").on(ANY_EVENT, "schedule_entries", callback).subscribe()

        assert feed.poll() == 0
        callback.assert_not_called()

        created = create_entry(entry_fields(title="after"))
        assert feed.poll() == 1
        callback.assert_called_once()
        change = callback.call_args[0][0]
        assert change.event_type == "INSERT"
        assert change.entry_id == created.id

    def test_wildcard_receives_every_event_kind(self, feed, standup_fields):
        received = []
        feed.channel("c").on(ANY_EVENT, "schedule_entries", lambda c: received.append(c.event_type)).subscribe()

        created = create_entry(standup_fields)
        update_entry(created.id, {"day": "3"})
        delete_entry(created.id)
        feed.poll()

        assert received == ["INSERT", "UPDATE", "DELETE"]

    def test_event_filter(self, feed, standup_fields):
        deletes = MagicMock()
        feed.channel("deletes").on("DELETE", "schedule_entries", deletes).subscribe()

        created = create_entry(standup_fields)
        feed.poll()
        deletes.assert_not_called()

        delete_entry(created.id)
        feed.poll()
        deletes.assert_called_once()

    def test_table_filter(self, feed, standup_fields):
        other = MagicMock()
        feed.channel("other").on(ANY_EVENT, "other_table", other).subscribe()

        create_entry(standup_fields)
        feed.poll()
        other.assert_not_called()

    def test_changes_from_another_connection(self, feed, test_db):
        """Writes made outside the DAO still reach subscribers."""
        callback = MagicMock()
        feed.channel("c").on("INSERT", "schedule_entries", callback).subscribe()

        conn = sqlite3.connect(test_db)
        try:
            conn.execute(
                "INSERT INTO schedule_entries (id, title, person, context, day, type, time_slot) "
                "VALUES (?, 'External', 'Jaden', 'Security', '4', 'Task', 'PM')",
                (str(uuid.uuid4()),)
            )
            conn.commit()
        finally:
            conn.close()

        assert feed.poll() == 1
        callback.assert_called_once()

    def test_removed_channel_receives_nothing(self, feed, standup_fields):
        callback = MagicMock()
        channel = feed.channel("c").on(ANY_EVENT, "schedule_entries", callback).subscribe()

        feed.remove_channel(channel)
        assert not channel.subscribed
        assert feed.channels() == []

        create_entry(standup_fields)
        feed.poll()
        callback.assert_not_called()

    def test_resubscribe_skips_changes_made_while_unsubscribed(self, feed, entry_fields):
        first = feed.channel("a").on(ANY_EVENT, "schedule_entries", lambda c: None).subscribe()
        feed.remove_channel(first)

        create_entry(entry_fields(title="unheard"))

        callback = MagicMock()
        feed.channel("b").on(ANY_EVENT, "schedule_entries", callback).subscribe()
        assert feed.poll() == 0
        callback.assert_not_called()

        created = create_entry(entry_fields(title="heard"))
        feed.poll()
        callback.assert_called_once()
        assert callback.call_args[0][0].entry_id == created.id

    def test_remove_unknown_channel_is_safe(self, feed):
        feed.remove_channel(feed.channel("never-subscribed"))

    def test_failing_callback_does_not_starve_others(self, feed, standup_fields):
        def boom(change):
            raise RuntimeError("listener exploded")

        healthy = MagicMock()
        feed.channel("broken").on(ANY_EVENT, "schedule_entries", boom).subscribe()
        feed.channel("healthy").on(ANY_EVENT, "schedule_entries", healthy).subscribe()

        create_entry(standup_fields)
        feed.poll()

        healthy.assert_called_once()


class TestBackgroundPolling:

    def test_invalid_poll_interval(self):
        with pytest.raises(ValueError, match="Poll interval must be > 0"):
            ChangeFeed(poll_interval=0)

    def test_thread_starts_on_subscribe_and_stops_with_last_channel(self, standup_fields):
        feed = ChangeFeed(poll_interval=0.05, background=True)
        received = []
        channel = feed.channel("live").on(ANY_EVENT, "schedule_entries", received.append).subscribe()

        try:
            assert feed.running
            create_entry(standup_fields)
            assert wait_for(lambda: len(received) == 1)
        finally:
            feed.remove_channel(channel)

        assert not feed.running

    def test_poll_errors_do_not_kill_thread(self, standup_fields):
        feed = ChangeFeed(poll_interval=0.05, background=True)
        received = []

        with patch('src.core.change_feed.dao.list_changes_since', side_effect=StoreError("database is locked")):
            channel = feed.channel("live").on(ANY_EVENT, "schedule_entries", received.append).subscribe()
            time.sleep(0.2)

        try:
            assert feed.running
            create_entry(standup_fields)
            assert wait_for(lambda: len(received) == 1)
        finally:
            feed.remove_channel(channel)
