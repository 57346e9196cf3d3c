# hygromon/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hygromon.model.reading import Reading


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    STALLED = "stalled"
    DISCONNECTED = "disconnected"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def reconnect_required(self) -> bool:
        """Stalled and Disconnected never recover on their own."""
        return self in (ConnectionState.STALLED, ConnectionState.DISCONNECTED)


@dataclass(frozen=True)
class StateChange:
    """
    One connection-state transition, as delivered to state observers.

    notice: user-facing text for failures and recoveries (None for routine steps).
    """
    previous: Optional[ConnectionState]
    current: ConnectionState
    notice: Optional[str] = None

    @property
    def reconnect_required(self) -> bool:
        return self.current.reconnect_required


@dataclass(frozen=True)
class IngestStatus:
    """
    A snapshot of the ingestor, safe to share across threads.
    """
    state: ConnectionState
    reading: Optional[Reading]
    source: str
    frames_decoded: int = 0
    frames_dropped: int = 0
    last_decode_age_s: Optional[float] = None
    last_error: Optional[str] = None
    terminated: bool = False
