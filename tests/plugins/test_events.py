"""Tests for EventSink dispatch."""

from __future__ import annotations

from netbundle.plugins.events import EventSink
from netbundle.plugins.hookspecs import hookimpl
from netbundle.plugins.manager import PluginManager
from tests.helpers import Recorder, recording_sink


class _Exploding:
    @hookimpl
    def error(self, text: str) -> None:
        raise RuntimeError("reporter crashed")


class TestEventSink:
    def test_without_manager_is_noop(self) -> None:
        sink = EventSink()
        sink.module_started("a")
        sink.warning("w")
        sink.shutdown()
        assert sink.failures == 0

    def test_sync_dispatch_in_order(self) -> None:
        sink, recorder = recording_sink()
        sink.module_started("a")
        sink.module_completed("a")
        sink.warning("slow")
        sink.error("broken")
        assert recorder.events == [
            ("module_started", "a"),
            ("module_completed", "a"),
            ("warning", "slow"),
            ("error", "broken"),
        ]

    def test_threaded_dispatch_delivers_after_flush(self) -> None:
        recorder = Recorder()
        pm = PluginManager()
        pm.register_plugin(recorder, name="recorder")
        sink = EventSink(pm)
        for i in range(20):
            sink.module_started(str(i))
        sink.shutdown()
        assert recorder.of("module_started") == [str(i) for i in range(20)]

    def test_reporter_failure_is_counted_not_raised(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Exploding(), name="exploding")
        sink = EventSink(pm, sync=True)
        sink.error("x")
        sink.error("y")
        assert sink.failures == 2

    def test_threaded_reporter_failure_is_contained(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Exploding(), name="exploding")
        sink = EventSink(pm)
        sink.error("x")
        sink.shutdown()
        assert sink.failures == 1
