import logging

from conftest import FakeClock
from namecraft.utils.telemetry import StructuredTelemetry, TelemetryLogger

LOGGER_NAME = "namecraft.utils.telemetry"


def test_telemetry_logger_writes_each_event(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    telemetry = StructuredTelemetry(listeners=[TelemetryLogger()])

    telemetry.start_trace("test-trace")
    with telemetry.timer("stage-a"):
        pass
    telemetry.increment("hits")
    telemetry.annotate("mode", "offline")

    messages = [record.getMessage() for record in caplog.records if record.name == LOGGER_NAME]
    expected = [
        "Telemetry trace_started: test-trace",
        "Telemetry timer_started: stage-a",
        "Telemetry timing: stage-a",
        "Telemetry counter: hits",
        "Telemetry metadata: mode",
    ]
    for prefix, message in zip(expected, messages):
        assert message.startswith(prefix)
    assert len(messages) == len(expected)


def test_level_map_silences_chatty_events(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    telemetry = StructuredTelemetry(listeners=[TelemetryLogger(level_map={"timer_started": logging.DEBUG})])

    with telemetry.timer("stage-b"):
        pass

    messages = [record.getMessage() for record in caplog.records if record.name == LOGGER_NAME]
    assert len(messages) == 1
    assert messages[0].startswith("Telemetry timing: stage-b")


def test_failing_listener_does_not_interrupt_recording():
    def broken(event_type, payload):
        raise RuntimeError("listener down")

    telemetry = StructuredTelemetry(listeners=[broken])
    telemetry.start_trace("resilient")
    telemetry.increment("hits", 2)

    assert telemetry.snapshot()["counters"] == {"hits": 2.0}


def test_timings_and_trace_reset():
    clock = FakeClock(0.0)
    telemetry = StructuredTelemetry(time_fn=clock)

    first = telemetry.start_trace("one")
    with telemetry.timer("stage") as details:
        clock.advance(2.0)
        details["items"] = 3
    with telemetry.timer("stage"):
        clock.advance(1.0)

    timing = telemetry.snapshot()["timings"]["stage"]
    assert timing["count"] == 2
    assert timing["total"] == 3.0
    assert timing["min"] == 1.0
    assert timing["max"] == 2.0
    assert telemetry.snapshot()["events"][0]["metadata"] == {"items": 3}

    second = telemetry.start_trace("two")
    assert second == first + 1
    assert telemetry.latest_snapshot()["timings"] == {}
    assert telemetry.latest_snapshot()["metadata"]["trace_name"] == "two"


def test_event_history_is_bounded():
    telemetry = StructuredTelemetry(max_events=2)
    for index in range(5):
        telemetry.record_timing(f"stage-{index}", 0.1)

    events = telemetry.snapshot()["events"]
    assert [event["name"] for event in events] == ["stage-3", "stage-4"]
