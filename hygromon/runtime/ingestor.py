# hygromon/runtime/ingestor.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from hygromon.model.frame import FrameDecodeError, IncompleteFrameError, decode_frame
from hygromon.model.reading import Reading
from hygromon.model.sensor import SensorProfile
from hygromon.runtime.liveness import LivenessTimer, Scheduler
from hygromon.runtime.state import ConnectionState, IngestStatus, StateChange
from hygromon.runtime.stream_pump import StreamPump
from hygromon.transport.base import Frame, FrameTransport
from hygromon.transport.errors import TransportError

ReadingCallback = Callable[[Reading], None]
StateCallback = Callable[[StateChange], None]

DEFAULT_STALL_TIMEOUT_S = 10.0


class StreamIngestor:
    """
    Owns one live connection: opens the transport, decodes frames into
    Readings, and flags the stream as stalled after a silence window.

    Lifecycle: start() once, teardown() once (idempotent). A new connection
    attempt needs a new instance; Stalled and Disconnected are final here.

    All event handlers (frames, transport events, timer expiry) run under one
    re-entrant lock, and observers are notified while it is held, so they see
    transitions in the order they happened.
    """

    def __init__(
        self,
        transport: FrameTransport,
        *,
        stall_timeout_s: float = DEFAULT_STALL_TIMEOUT_S,
        poll_s: float = 0.2,
        profile: Optional[SensorProfile] = None,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._transport = transport
        self._profile = profile
        self._poll_s = float(poll_s)
        self._log = logger or logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._timer = LivenessTimer(
            stall_timeout_s,
            self._on_silence,
            scheduler=scheduler,
            lock=self._lock,
        )

        self._state = ConnectionState.CONNECTING
        self._started = False
        self._terminated = False
        self._pump: Optional[StreamPump] = None
        self._emitting_thread: Optional[int] = None

        self._reading: Optional[Reading] = None
        self._frames_decoded = 0
        self._frames_dropped = 0
        self._last_decode_monotonic: Optional[float] = None
        self._last_error: Optional[str] = None

        self._reading_cbs: List[ReadingCallback] = []
        self._state_cbs: List[StateCallback] = []

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def reading(self) -> Optional[Reading]:
        with self._lock:
            return self._reading

    @property
    def stall_timeout_s(self) -> float:
        return self._timer.window_s

    @property
    def is_terminated(self) -> bool:
        with self._lock:
            return self._terminated

    def status(self) -> IngestStatus:
        with self._lock:
            age = (
                time.monotonic() - self._last_decode_monotonic
                if self._last_decode_monotonic is not None
                else None
            )
            return IngestStatus(
                state=self._state,
                reading=self._reading,
                source=self._transport.describe(),
                frames_decoded=self._frames_decoded,
                frames_dropped=self._frames_dropped,
                last_decode_age_s=age,
                last_error=self._last_error,
                terminated=self._terminated,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._started or self._terminated:
                return
            self._started = True
            self._state = ConnectionState.CONNECTING
            self._emit_state(StateChange(previous=None, current=ConnectionState.CONNECTING))

        source = self._transport.describe()
        self._log.info("INGEST_START source=%s stall_timeout_s=%.1f", source, self.stall_timeout_s)

        try:
            self._transport.open()
        except TransportError as e:
            self._log.warning("INGEST_OPEN_FAILED source=%s err=%s", source, e)
            with self._lock:
                self._last_error = str(e)
                if not self._terminated:
                    self._set_state(
                        ConnectionState.DISCONNECTED,
                        notice=f"Could not connect to {source}: {e}",
                    )
            return

        with self._lock:
            if self._terminated:
                # torn down while open() was in flight
                self._close_transport()
                return
            self._set_state(ConnectionState.CONNECTED)
            self._timer.arm()
            self._pump = StreamPump(self, self._transport, poll_s=self._poll_s, logger=self._log)
            self._pump.start()

        self._log.info("INGEST_CONNECTED source=%s", source)

    def teardown(self) -> None:
        """
        Deliberate close: no notices, no further events, transport released.
        Safe to call repeatedly and from inside an observer callback.
        """
        with self._lock:
            if self._terminated:
                return
            self._terminated = True
            self._timer.cancel()
            pump, self._pump = self._pump, None
            in_callback = self._emitting_thread == threading.get_ident()

        self._log.info("INGEST_TEARDOWN source=%s", self._transport.describe())

        if pump is not None:
            pump.stop()
            if not in_callback and pump is not threading.current_thread():
                pump.join(timeout=self._poll_s + 1.0)

        self._close_transport()

    def __enter__(self) -> "StreamIngestor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def subscribe_readings(self, cb: ReadingCallback) -> Callable[[], None]:
        with self._lock:
            self._reading_cbs.append(cb)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._reading_cbs:
                    self._reading_cbs.remove(cb)

        return _unsubscribe

    def subscribe_state(self, cb: StateCallback) -> Callable[[], None]:
        with self._lock:
            self._state_cbs.append(cb)

        def _unsubscribe() -> None:
            with self._lock:
                if cb in self._state_cbs:
                    self._state_cbs.remove(cb)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Events (called by StreamPump; public so tests can drive them directly)
    # ------------------------------------------------------------------
    def handle_frame(self, frame: Frame) -> Optional[Reading]:
        with self._lock:
            if self._terminated or self._state not in (ConnectionState.CONNECTED, ConnectionState.STALLED):
                return None

            try:
                reading = decode_frame(frame, profile=self._profile)
            except IncompleteFrameError as e:
                self._frames_dropped += 1
                self._log.debug("FRAME_INCOMPLETE frame=%r err=%s", frame, e)
                return None
            except FrameDecodeError as e:
                self._frames_dropped += 1
                self._last_error = str(e)
                self._log.warning("FRAME_DROPPED field=%s frame=%r err=%s", e.field, frame, e)
                return None

            self._reading = reading
            self._frames_decoded += 1
            self._last_decode_monotonic = time.monotonic()
            self._timer.arm()

            if reading.flags:
                self._log.warning(
                    "READING_FLAGGED flags=%s adc=%d volts=%.3f",
                    ",".join(reading.flags),
                    reading.adc_value,
                    reading.sensor_voltage_raw,
                )

            if self._state == ConnectionState.STALLED:
                self._log.info("STREAM_RESUMED")
                self._set_state(ConnectionState.CONNECTED, notice="Data flow resumed.")

            self._emit_reading(reading)
            return reading

    def handle_transport_error(self, error: BaseException) -> None:
        with self._lock:
            if self._terminated or self._state == ConnectionState.DISCONNECTED:
                return
            self._timer.cancel()
            self._last_error = str(error)
            self._log.warning("TRANSPORT_ERROR err=%s", error)
            self._set_state(
                ConnectionState.DISCONNECTED,
                notice=f"Connection error: {error}. Reconnect to resume.",
            )
        self._close_transport()

    def handle_transport_closed(self, reason: str = "") -> None:
        with self._lock:
            if self._terminated or self._state == ConnectionState.DISCONNECTED:
                return
            self._timer.cancel()
            self._log.warning("TRANSPORT_CLOSED reason=%s", reason or "-")
            self._set_state(
                ConnectionState.DISCONNECTED,
                notice="Connection closed by the source. Reconnect to resume.",
            )
        self._close_transport()

    def _on_silence(self) -> None:
        # LivenessTimer holds self._lock here
        if self._terminated or self._state != ConnectionState.CONNECTED:
            return
        self._log.warning("STREAM_STALLED silence_s=%.1f", self.stall_timeout_s)
        self._set_state(
            ConnectionState.STALLED,
            notice=f"No data received for {self.stall_timeout_s:g}s. Reconnect to resume.",
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _set_state(self, new: ConnectionState, *, notice: Optional[str] = None) -> None:
        prev = self._state
        self._state = new
        change = StateChange(previous=prev, current=new, notice=notice)
        self._emit_state(change)

    def _emit_state(self, change: StateChange) -> None:
        for cb in list(self._state_cbs):
            if self._terminated:
                break
            self._dispatch(cb, change, "STATE_CALLBACK_ERROR")

    def _emit_reading(self, reading: Reading) -> None:
        for cb in list(self._reading_cbs):
            if self._terminated:
                break
            self._dispatch(cb, reading, "READING_CALLBACK_ERROR")

    def _dispatch(self, cb, arg, error_event: str) -> None:
        prev_emitter = self._emitting_thread
        self._emitting_thread = threading.get_ident()
        try:
            cb(arg)
        except Exception:
            self._log.exception(error_event)
        finally:
            self._emitting_thread = prev_emitter

    def _close_transport(self) -> None:
        try:
            self._transport.close()
        except Exception:
            self._log.exception("Failed to close transport")
