"""Tests for the process-wide tracer slot."""

from __future__ import annotations

import threading
import unittest
from unittest import mock

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from meshtrace.tracing import global_tracer
from meshtrace.tracing.global_tracer import GlobalTracerSlot


def _recording_provider():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider, exporter


class TestGlobalTracerSlot(unittest.TestCase):
    def test_starts_with_noop_provider(self):
        slot = GlobalTracerSlot()

        self.assertIsInstance(slot.get(), trace.NoOpTracerProvider)
        self.assertTrue(slot.is_noop())

    def test_set_returns_previous_provider(self):
        slot = GlobalTracerSlot()
        first, second = TracerProvider(), TracerProvider()

        initial = slot.set(first)
        replaced = slot.set(second)

        self.assertIsInstance(initial, trace.NoOpTracerProvider)
        self.assertIs(replaced, first)
        self.assertIs(slot.get(), second)

    def test_compare_and_clear_only_clears_matching_provider(self):
        slot = GlobalTracerSlot()
        mine, theirs = TracerProvider(), TracerProvider()
        slot.set(mine)
        slot.set(theirs)

        self.assertFalse(slot.compare_and_clear(mine))
        self.assertIs(slot.get(), theirs)

        self.assertTrue(slot.compare_and_clear(theirs))
        self.assertTrue(slot.is_noop())

    def test_concurrent_clears_only_succeed_once(self):
        slot = GlobalTracerSlot()
        provider = TracerProvider()
        slot.set(provider)
        results = []
        barrier = threading.Barrier(8)

        def clear():
            barrier.wait()
            results.append(slot.compare_and_clear(provider))

        threads = [threading.Thread(target=clear) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(results.count(True), 1)
        self.assertTrue(slot.is_noop())


class TestModuleSlot(unittest.TestCase):
    def setUp(self):
        self._saved = global_tracer.get_tracer_provider()

    def tearDown(self):
        global_tracer.set_tracer_provider(self._saved)

    def test_get_tracer_follows_the_slot(self):
        tracer = global_tracer.get_tracer("early-module")
        provider, exporter = _recording_provider()

        global_tracer.set_tracer_provider(provider)
        with tracer.start_as_current_span("after-install") as span:
            self.assertTrue(span.is_recording())
        tracer.start_span("manual").end()

        names = [span.name for span in exporter.get_finished_spans()]
        self.assertEqual(names, ["after-install", "manual"])

    def test_get_tracer_is_noop_after_clear(self):
        tracer = global_tracer.get_tracer("module")
        provider, exporter = _recording_provider()
        global_tracer.set_tracer_provider(provider)

        self.assertTrue(global_tracer.clear_tracer_provider_if(provider))
        with tracer.start_as_current_span("dropped") as span:
            self.assertFalse(span.is_recording())

        self.assertEqual(exporter.get_finished_spans(), ())

    def test_get_tracer_reuses_underlying_tracer_per_provider(self):
        tracer = global_tracer.get_tracer("cached")
        provider, exporter = _recording_provider()
        global_tracer.set_tracer_provider(provider)

        with mock.patch.object(provider, "get_tracer", wraps=provider.get_tracer) as get_sdk_tracer:
            for name in ("one", "two", "three"):
                with tracer.start_as_current_span(name):
                    pass

        get_sdk_tracer.assert_called_once_with("cached", None)
        self.assertEqual(len(exporter.get_finished_spans()), 3)

    def test_get_tracer_switches_when_provider_changes(self):
        tracer = global_tracer.get_tracer("switching")
        first, first_exporter = _recording_provider()
        second, second_exporter = _recording_provider()

        global_tracer.set_tracer_provider(first)
        tracer.start_span("on-first").end()
        global_tracer.set_tracer_provider(second)
        tracer.start_span("on-second").end()

        self.assertEqual([span.name for span in first_exporter.get_finished_spans()], ["on-first"])
        self.assertEqual([span.name for span in second_exporter.get_finished_spans()], ["on-second"])


class TestOtelBridge(unittest.TestCase):
    """The bridge mutates OpenTelemetry's set-once global, so it is saved and restored here."""

    def setUp(self):
        self._original_provider = trace._TRACER_PROVIDER
        self._original_once = trace._TRACER_PROVIDER_SET_ONCE
        self._saved_slot = global_tracer.get_tracer_provider()
        trace._TRACER_PROVIDER = None
        trace._TRACER_PROVIDER_SET_ONCE = trace.Once()

    def tearDown(self):
        trace._TRACER_PROVIDER = self._original_provider
        trace._TRACER_PROVIDER_SET_ONCE = self._original_once
        global_tracer.set_tracer_provider(self._saved_slot)

    def test_bridge_installs_when_global_is_unset(self):
        self.assertTrue(global_tracer.install_otel_bridge())
        self.assertIsInstance(trace.get_tracer_provider(), global_tracer.SlotTracerProvider)

        # idempotent
        self.assertTrue(global_tracer.install_otel_bridge())

    def test_otel_tracers_follow_the_slot_through_the_bridge(self):
        global_tracer.install_otel_bridge()
        provider, exporter = _recording_provider()
        global_tracer.set_tracer_provider(provider)

        with trace.get_tracer("otel-user").start_as_current_span("via-otel"):
            pass

        self.assertEqual([span.name for span in exporter.get_finished_spans()], ["via-otel"])

    def test_bridge_does_not_override_existing_provider(self):
        existing = TracerProvider()
        trace.set_tracer_provider(existing)

        self.assertFalse(global_tracer.install_otel_bridge())
        self.assertIs(trace.get_tracer_provider(), existing)


if __name__ == "__main__":
    unittest.main()
