# hygromon/transport/uart.py
from __future__ import annotations

import time
from typing import Optional

import serial
from serial import SerialException

from .base import Frame, FrameTransport
from .errors import TransportIOError, TransportOpenError


class UARTTransport(FrameTransport):
    """
    UART transport implemented via pyserial, one frame per text line.

    Partial lines (read timeout mid-line) are buffered until the newline arrives.
    """

    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 0.2):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None
        self._pending = b""

    def open(self) -> None:
        try:
            self.ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
            )
            self.ser.reset_input_buffer()
        except SerialException as e:
            self.ser = None
            raise TransportOpenError(str(e)) from None
        self._pending = b""

    def close(self) -> None:
        if self.ser is not None:
            try:
                self.ser.close()
            finally:
                self.ser = None
                self._pending = b""

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    def describe(self) -> str:
        return f"uart {self.port}@{self.baudrate}"

    def recv(self, timeout: float) -> Optional[Frame]:
        if self.ser is None:
            raise TransportIOError("recv while transport not open")

        deadline = time.monotonic() + max(0.0, float(timeout))
        try:
            while True:
                chunk = self.ser.readline()
                if chunk:
                    self._pending += chunk
                    if self._pending.endswith(b"\n"):
                        line, self._pending = self._pending, b""
                        raw = line.strip()
                        if raw:
                            try:
                                return raw.decode("utf-8")
                            except UnicodeDecodeError:
                                # left to the decoder, which counts it as dropped
                                return raw
                if time.monotonic() >= deadline:
                    return None
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"UART read failed: {e}") from None
