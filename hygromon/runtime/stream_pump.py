# hygromon/runtime/stream_pump.py
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from hygromon.transport.base import FrameTransport
from hygromon.transport.errors import TransportClosedError, TransportError

if TYPE_CHECKING:
    from hygromon.runtime.ingestor import StreamIngestor


class StreamPump(threading.Thread):
    """Thread that reads frames from the transport and feeds StreamIngestor."""

    def __init__(
        self,
        ingestor: "StreamIngestor",
        transport: FrameTransport,
        *,
        poll_s: float = 0.2,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(daemon=True, name="hygromon-pump")
        self.ingestor = ingestor
        self.transport = transport
        self.poll_s = float(poll_s)
        self._log = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                frame = self.transport.recv(self.poll_s)
            except TransportClosedError as e:
                if not self.stopped:
                    self.ingestor.handle_transport_closed(str(e))
                return
            except TransportError as e:
                if not self.stopped:
                    self.ingestor.handle_transport_error(e)
                return
            except Exception as e:
                # a transport closed under our feet during teardown lands here
                if self.stopped:
                    return
                self._log.exception("STREAM_PUMP_EXCEPTION")
                self.ingestor.handle_transport_error(e)
                return

            if frame is not None and not self.stopped:
                self.ingestor.handle_frame(frame)

    def stop(self) -> None:
        self._stop_event.set()
