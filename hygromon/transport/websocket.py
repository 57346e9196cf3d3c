# hygromon/transport/websocket.py
from __future__ import annotations

from typing import Optional, Union

from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.sync.client import ClientConnection, connect

from .base import FrameTransport
from .errors import TransportClosedError, TransportIOError, TransportOpenError


class WebSocketTransport(FrameTransport):
    """
    WebSocket client transport implemented via the websockets sync client.

    Each WebSocket message is one frame. A close from the server (clean or not)
    surfaces as TransportClosedError.
    """

    def __init__(self, url: str, open_timeout_s: float = 10.0):
        self.url = url
        self.open_timeout_s = float(open_timeout_s)
        self.ws: Optional[ClientConnection] = None

    def open(self) -> None:
        try:
            self.ws = connect(self.url, open_timeout=self.open_timeout_s)
        except (InvalidURI, InvalidHandshake, OSError, TimeoutError) as e:
            self.ws = None
            raise TransportOpenError(f"{self.url}: {e}") from None

    def close(self) -> None:
        if self.ws is not None:
            try:
                self.ws.close()
            finally:
                self.ws = None

    def is_open(self) -> bool:
        return self.ws is not None

    def describe(self) -> str:
        return f"websocket {self.url}"

    def recv(self, timeout: float) -> Optional[Union[str, bytes]]:
        if self.ws is None:
            raise TransportIOError("recv while transport not open")

        try:
            return self.ws.recv(timeout=timeout)
        except TimeoutError:
            return None
        except ConnectionClosed as e:
            self.ws = None
            raise TransportClosedError(f"WebSocket closed: {e}") from None
        except OSError as e:
            self.ws = None
            raise TransportIOError(f"WebSocket read failed: {e}") from None
