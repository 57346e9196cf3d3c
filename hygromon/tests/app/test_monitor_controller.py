from __future__ import annotations

import queue
from pathlib import Path

import pytest

from hygromon.app.config import MonitorConfig
from hygromon.app.controller import MonitorController
from hygromon.core.context import Context
from hygromon.core.errors import MetadataError, TransportConfigError
from hygromon.runtime.state import ConnectionState
from hygromon.transport.base import FrameTransport
from hygromon.transport.errors import TransportOpenError
from hygromon.transport.registry import TransportDriverRegistry


TRANSPORTS_YML = """
transports:
  1:
    label: fake
    driver: fake
    key_param: name
    params:
      name: {type: str, default: "bench"}
      fail_open: {type: bool, default: false}
"""

SENSORS_YML = """
sensors:
  7:
    name: Humidity
    model: HMZ-433A1
    adc_max: 1023
"""


class FakeTransport(FrameTransport):
    created: list = []

    def __init__(self, *, name: str, fail_open: bool = False):
        self.name = name
        self.fail_open = fail_open
        self.frames: "queue.Queue" = queue.Queue()
        self.closed = 0
        self._open = False
        FakeTransport.created.append(self)

    def open(self) -> None:
        if self.fail_open:
            raise TransportOpenError("no route")
        self._open = True

    def close(self) -> None:
        self.closed += 1
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def recv(self, timeout: float):
        try:
            return self.frames.get(timeout=timeout)
        except queue.Empty:
            return None


class ManualScheduler:
    class _Handle:
        def __init__(self, cb):
            self.cb = cb
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []

    def __call__(self, delay, cb):
        h = self._Handle(cb)
        self.handles.append(h)
        return h

    def expire_all(self):
        for h in list(self.handles):
            if not h.cancelled:
                h.cancelled = True
                h.cb()


class RecordingSink:
    def __init__(self):
        self.readings = []
        self.changes = []
        self.closed = False

    def on_reading(self, reading):
        self.readings.append(reading)

    def on_state(self, change):
        self.changes.append(change)

    def close(self):
        self.closed = True


@pytest.fixture
def context(tmp_path: Path) -> Context:
    (tmp_path / "transports.yml").write_text(TRANSPORTS_YML, encoding="utf-8")
    (tmp_path / "sensors.yml").write_text(SENSORS_YML, encoding="utf-8")
    FakeTransport.created = []
    return Context.load(tmp_path, drivers=TransportDriverRegistry({"fake": FakeTransport}))


def _controller(context, sched, **overrides) -> MonitorController:
    cfg = MonitorConfig(transport_type_id=1, transport_overrides=overrides, poll_s=0.01)
    return MonitorController(cfg, context=context, scheduler=sched)


def test_context_defaults_to_lowest_sensor_profile(context):
    assert context.sensor_profile().type_id == 7
    with pytest.raises(MetadataError):
        context.sensor_profile(99)


def test_context_load_missing_dir(tmp_path):
    with pytest.raises(MetadataError):
        Context.load(tmp_path / "missing")


def test_packaged_metadata_loads():
    ctx = Context.load()
    labels = sorted(t.label for t in ctx.transports.values())
    assert labels == ["replay", "uart", "websocket"]


def test_start_and_stop(context):
    sched = ManualScheduler()
    sink = RecordingSink()
    c = _controller(context, sched)
    c.add_sink(sink)

    c.start()
    assert c.state == ConnectionState.CONNECTED
    assert c.source.key_param_value == "bench"
    assert [ch.current for ch in sink.changes] == [ConnectionState.CONNECTING, ConnectionState.CONNECTED]

    c.stop()
    assert sink.closed is True
    assert FakeTransport.created[0].closed >= 1
    # deliberate stop produces no disconnect notice
    assert ConnectionState.DISCONNECTED not in [ch.current for ch in sink.changes]


def test_readings_fan_out_to_sinks(context):
    sched = ManualScheduler()
    sink = RecordingSink()
    c = _controller(context, sched)
    c.add_sink(sink)

    with c:
        c._ingestor.handle_frame("Valor: 252 | Volts: 4.94")

    assert len(sink.readings) == 1
    assert sink.readings[0].adc_value == 252


def test_failing_sink_does_not_block_others(context):
    class Broken(RecordingSink):
        def on_reading(self, reading):
            raise RuntimeError("nope")

    sched = ManualScheduler()
    good = RecordingSink()
    c = _controller(context, sched)
    c.add_sink(Broken())
    c.add_sink(good)

    with c:
        c._ingestor.handle_frame("Valor: 1 | Volts: 0.1")

    assert len(good.readings) == 1


def test_reconnect_after_stall_uses_fresh_transport(context):
    sched = ManualScheduler()
    sink = RecordingSink()
    c = _controller(context, sched)
    c.add_sink(sink)

    c.start()
    sched.expire_all()
    assert c.state == ConnectionState.STALLED

    c.reconnect()
    try:
        assert c.state == ConnectionState.CONNECTED
        assert c.sessions_started == 2
        assert len(FakeTransport.created) == 2
        assert FakeTransport.created[0] is not FakeTransport.created[1]
        assert FakeTransport.created[0].closed >= 1

        currents = [ch.current for ch in sink.changes]
        assert currents == [
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
            ConnectionState.STALLED,
            ConnectionState.CONNECTING,
            ConnectionState.CONNECTED,
        ]
    finally:
        c.stop()


def test_open_failure_reports_disconnected(context):
    sched = ManualScheduler()
    sink = RecordingSink()
    c = _controller(context, sched, fail_open=True)
    c.add_sink(sink)

    c.start()
    try:
        assert c.state == ConnectionState.DISCONNECTED
        assert sink.changes[-1].reconnect_required is True
        assert "no route" in sink.changes[-1].notice
        assert c.status().last_error == "no route"
    finally:
        c.stop()


def test_unknown_override_is_config_error(context):
    c = _controller(context, ManualScheduler(), colour="red")
    with pytest.raises(TransportConfigError):
        c.start()


def test_status_before_start(context):
    c = _controller(context, ManualScheduler())
    assert c.status() is None
    assert c.state is None


def test_removed_sink_gets_nothing(context):
    sched = ManualScheduler()
    sink = RecordingSink()
    c = _controller(context, sched)
    c.add_sink(sink)
    c.add_sink(sink)
    c.remove_sink(sink)

    with c:
        c._ingestor.handle_frame("Valor: 1 | Volts: 0.1")

    assert sink.readings == []
    assert sink.changes == []
    assert sink.closed is False


def test_reconnect_clears_previous_reading_from_panel(context):
    from hygromon.app.presenter import HUMIDITY_PLACEHOLDER, ConsolePresenter

    sched = ManualScheduler()
    out = []
    c = _controller(context, sched)
    panel = ConsolePresenter(profile=c.profile, out=out.append)
    c.add_sink(panel)

    c.start()
    c._ingestor.handle_frame("Valor: 252 | Volts: 4.94")
    assert panel.view.humidity == "98.8"
    sched.expire_all()
    assert c.state == ConnectionState.STALLED

    c.reconnect()
    try:
        assert c.status().reading is None
        assert panel.view.humidity == HUMIDITY_PLACEHOLDER
        assert panel.view.adc == "----"
        assert panel.view.status == "Connected"
        assert "98.8" not in out[-1]
    finally:
        c.stop()
