# hygromon/app/controller.py
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from hygromon.app.config import MonitorConfig
from hygromon.core.context import Context
from hygromon.interfaces.reading_sink import ReadingSink
from hygromon.model.reading import Reading
from hygromon.model.sensor import SensorProfile
from hygromon.runtime.ingestor import StreamIngestor
from hygromon.runtime.liveness import Scheduler
from hygromon.runtime.state import ConnectionState, IngestStatus, StateChange
from hygromon.transport.factory import SourceTransport


class MonitorController:
    """
    App-level controller: owns the current StreamIngestor and fans its
    readings and state changes out to sinks.

    reconnect() is the only way back from Stalled/Disconnected: it tears the
    current ingestor down and starts a fresh one on a fresh transport.
    """

    def __init__(
        self,
        config: MonitorConfig,
        *,
        context: Context,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._context = context
        self._scheduler = scheduler
        self._log = logger or logging.getLogger(__name__)

        self._profile = context.sensor_profile(config.sensor_type_id)
        self._lock = threading.RLock()

        self._sinks: List[ReadingSink] = []
        self._ingestor: Optional[StreamIngestor] = None
        self._source: Optional[SourceTransport] = None
        self._unsubscribe: List[Callable[[], None]] = []
        self._sessions = 0

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def profile(self) -> SensorProfile:
        return self._profile

    @property
    def source(self) -> Optional[SourceTransport]:
        with self._lock:
            return self._source

    @property
    def sessions_started(self) -> int:
        with self._lock:
            return self._sessions

    @property
    def state(self) -> Optional[ConnectionState]:
        with self._lock:
            ingestor = self._ingestor
        return ingestor.state if ingestor is not None else None

    def add_sink(self, sink: ReadingSink) -> None:
        with self._lock:
            if sink not in self._sinks:
                self._sinks.append(sink)

    def remove_sink(self, sink: ReadingSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def start(self) -> None:
        with self._lock:
            if self._ingestor is not None:
                return
            ingestor = self._new_ingestor()
        ingestor.start()

    def stop(self) -> None:
        self._teardown_current()

        with self._lock:
            sinks = list(self._sinks)
            self._sinks.clear()

        for s in sinks:
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")

    def reconnect(self) -> None:
        """Full reload of the ingestion session."""
        self._log.info("RECONNECT requested")
        self._teardown_current()
        with self._lock:
            ingestor = self._new_ingestor()
        ingestor.start()

    def status(self) -> Optional[IngestStatus]:
        with self._lock:
            ingestor = self._ingestor
        return ingestor.status() if ingestor is not None else None

    def __enter__(self) -> "MonitorController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _new_ingestor(self) -> StreamIngestor:
        cfg = self._config
        source = self._context.transport_factory.create(
            cfg.transport_type_id,
            overrides=dict(cfg.transport_overrides),
        )
        ingestor = StreamIngestor(
            source.transport,
            stall_timeout_s=cfg.stall_timeout_s,
            poll_s=cfg.poll_s,
            profile=self._profile,
            scheduler=self._scheduler,
            logger=self._log,
        )
        self._unsubscribe = [
            ingestor.subscribe_readings(self._fanout_reading),
            ingestor.subscribe_state(self._fanout_state),
        ]
        self._ingestor = ingestor
        self._source = source
        self._sessions += 1
        self._log.info(
            "SESSION_START n=%d driver=%s %s=%s",
            self._sessions,
            source.meta.driver,
            source.meta.key_param,
            source.key_param_value,
        )
        return ingestor

    def _teardown_current(self) -> None:
        with self._lock:
            ingestor, self._ingestor = self._ingestor, None
            unsubscribe, self._unsubscribe = self._unsubscribe, []

        for unsub in unsubscribe:
            unsub()

        if ingestor is not None:
            try:
                ingestor.teardown()
            except Exception:
                self._log.exception("INGEST_TEARDOWN_ERROR")

    def _fanout_reading(self, reading: Reading) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for s in sinks:
            try:
                s.on_reading(reading)
            except Exception:
                self._log.exception("SINK_ON_READING_ERROR")

    def _fanout_state(self, change: StateChange) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for s in sinks:
            try:
                s.on_state(change)
            except Exception:
                self._log.exception("SINK_ON_STATE_ERROR")
