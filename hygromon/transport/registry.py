from __future__ import annotations

from typing import Dict, Type

from .base import FrameTransport
from .errors import TransportError
from .replay import ReplayTransport
from .uart import UARTTransport
from .websocket import WebSocketTransport


class TransportDriverRegistry:
    """
    Driver key (the `driver:` field of transports.yml) -> FrameTransport class.

    Keys match case-insensitively. Tests pass their own registry to
    Context.load() to swap in fake transports.
    """

    def __init__(self, drivers: Dict[str, Type[FrameTransport]]):
        # normalize keys to be case-insensitive
        self._drivers: Dict[str, Type[FrameTransport]] = {k.lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls(
            drivers={
                "websocket": WebSocketTransport,
                "uart": UARTTransport,
                "replay": ReplayTransport,
            }
        )

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def get_class(self, driver: str) -> Type[FrameTransport]:
        key = driver.lower()
        if key not in self._drivers:
            raise TransportError(f"Transport driver '{driver}' not registered")
        return self._drivers[key]

    def create(self, driver: str, **params) -> FrameTransport:
        """
        Instantiate a transport by driver key.
        """
        transport_cls = self.get_class(driver)
        return transport_cls(**params)
