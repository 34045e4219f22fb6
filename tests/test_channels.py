"""Tests for storage channel adapters and the signal bus."""
import json

import pytest

from src.data.channels import (
    AddressChannel,
    ChannelWriteError,
    JsonFileChannel,
    MemoryChannel,
    SessionStateChannel,
)
from src.data.signals import DATA_CHANGED, DATA_SYNCED, SignalBus


class TestMemoryChannel:
    def test_get_set(self):
        channel = MemoryChannel({"a": "1"})
        channel.set("b", "2")
        assert channel.get("a") == "1"
        assert channel.get("b") == "2"
        assert channel.get("missing") is None

    def test_capacity_exceeded(self):
        channel = MemoryChannel(capacity=5)
        with pytest.raises(ChannelWriteError):
            channel.set("k", "x" * 6)
        assert channel.get("k") is None

    def test_set_does_not_notify(self):
        channel = MemoryChannel()
        seen = []
        channel.subscribe(seen.append)

        channel.set("k", "v")

        assert seen == []

    def test_external_write_notifies(self):
        channel = MemoryChannel()
        seen = []
        channel.subscribe(seen.append)

        channel.external_write("k", "v")

        assert seen == ["k"]
        assert channel.get("k") == "v"

    def test_unsubscribe(self):
        channel = MemoryChannel()
        seen = []
        unsubscribe = channel.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        channel.publish("k")

        assert seen == []
        assert channel.subscriber_count == 0

    def test_failing_listener_does_not_block_others(self):
        channel = MemoryChannel()
        seen = []

        def broken(key):
            raise RuntimeError("listener bug")

        channel.subscribe(broken)
        channel.subscribe(seen.append)
        channel.publish("k")

        assert seen == ["k"]


class TestJsonFileChannel:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "sync" / "providers.json"
        JsonFileChannel(path).set("adminProviders", "[]")

        assert JsonFileChannel(path).get("adminProviders") == "[]"
        assert json.loads(path.read_text()) == {"adminProviders": "[]"}

    def test_missing_file(self, tmp_path):
        assert JsonFileChannel(tmp_path / "absent.json").get("k") is None

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_unreadable_file_reads_empty(self, tmp_path, content):
        path = tmp_path / "providers.json"
        path.write_text(content)
        assert JsonFileChannel(path).get("k") is None

    def test_write_keeps_other_keys(self, tmp_path):
        channel = JsonFileChannel(tmp_path / "providers.json")
        channel.set("a", "1")
        channel.set("b", "2")
        assert channel.get("a") == "1"

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        channel = JsonFileChannel(blocker / "providers.json")

        with pytest.raises(ChannelWriteError):
            channel.set("k", "v")

    def test_poll_reports_writes_from_other_sessions(self, tmp_path):
        path = tmp_path / "providers.json"
        mine = JsonFileChannel(path)
        theirs = JsonFileChannel(path)
        seen = []
        mine.subscribe(seen.append)

        assert mine.poll("adminProviders") == []
        theirs.set("adminProviders", '[{"id": "p1"}]')

        assert mine.poll("adminProviders") == ["adminProviders"]
        assert seen == ["adminProviders"]
        assert mine.poll("adminProviders") == []

    def test_poll_ignores_own_writes(self, tmp_path):
        channel = JsonFileChannel(tmp_path / "providers.json")
        channel.poll("adminProviders")

        channel.set("adminProviders", "[]")

        assert channel.poll("adminProviders") == []


class TestSessionStateChannel:
    def test_values_are_namespaced(self):
        state = {}
        channel = SessionStateChannel(state, namespace="providers")

        channel.set("adminProviders", "[]")

        assert state == {"providers:adminProviders": "[]"}
        assert channel.get("adminProviders") == "[]"

    def test_non_string_values_are_ignored(self):
        channel = SessionStateChannel({"channel:k": 42})
        assert channel.get("k") is None


class TestAddressChannel:
    def test_list_parameter_uses_last_value(self):
        channel = AddressChannel({"sync": ["old", "new"]})
        assert channel.get("sync") == "new"

    def test_capacity(self):
        channel = AddressChannel({}, capacity=10)
        with pytest.raises(ChannelWriteError):
            channel.set("sync", "x" * 11)

    def test_poll_detects_external_change(self):
        params = {"sync": "abc"}
        channel = AddressChannel(params)
        seen = []
        channel.subscribe(seen.append)

        assert channel.poll("sync", "t") == []
        params["sync"] = "def"
        params["t"] = "123"

        assert channel.poll("sync", "t") == ["sync", "t"]
        assert seen == ["sync", "t"]

    def test_own_write_is_not_a_change(self):
        params = {}
        channel = AddressChannel(params)
        channel.poll("sync")

        channel.set("sync", "abc")

        assert params["sync"] == "abc"
        assert channel.poll("sync") == []


class TestSignalBus:
    def test_emit_to_connected_listeners(self):
        bus = SignalBus()
        received = []
        bus.connect(DATA_CHANGED, received.append)

        count = bus.emit(DATA_CHANGED, {"action": "dataSync"})

        assert count == 1
        assert received == [{"action": "dataSync"}]
        assert bus.emit(DATA_SYNCED, {}) == 0

    def test_disconnect(self):
        bus = SignalBus()
        received = []
        disconnect = bus.connect(DATA_SYNCED, received.append)

        disconnect()
        bus.emit(DATA_SYNCED, {"providers": []})

        assert received == []

    def test_failing_listener_is_isolated(self):
        bus = SignalBus()
        received = []
        bus.connect(DATA_CHANGED, lambda detail: 1 / 0)
        bus.connect(DATA_CHANGED, received.append)

        assert bus.emit(DATA_CHANGED, {"x": 1}) == 2
        assert received == [{"x": 1}]
