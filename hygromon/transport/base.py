from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

Frame = Union[str, bytes]


class FrameTransport(ABC):
    """
    Abstract message-oriented transport (WebSocket, UART line, replay file, etc.).

    Contract:
      - open() establishes the connection; raises TransportOpenError on failure.
      - close() releases it; calling it on a closed transport is a no-op.
      - recv(timeout) returns one complete frame, or None when nothing arrived
        within `timeout` seconds. Raises TransportClosedError when the peer
        closed the stream and TransportIOError on any other I/O failure.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def recv(self, timeout: float) -> Optional[Frame]: ...

    def describe(self) -> str:
        return type(self).__name__

    def __enter__(self) -> "FrameTransport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
