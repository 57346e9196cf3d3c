# hygromon/transport/replay.py
from __future__ import annotations

import time
from pathlib import Path
from typing import List, Optional

from .base import FrameTransport
from .errors import TransportClosedError, TransportIOError, TransportOpenError


class ReplayTransport(FrameTransport):
    """
    Plays back a text file, one frame per line, every `interval_s` seconds.

    Blank lines are skipped. When the file is exhausted the transport reports a
    peer close, unless `loop` is set.
    """

    def __init__(self, path: str, interval_s: float = 1.0, loop: bool = False):
        self.path = Path(path)
        self.interval_s = max(0.0, float(interval_s))
        self.loop = bool(loop)

        self._lines: Optional[List[str]] = None
        self._idx = 0
        self._next_due = 0.0

    def open(self) -> None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise TransportOpenError(f"Cannot read replay file {self.path}: {e}") from None

        self._lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
        self._idx = 0
        self._next_due = time.monotonic()

    def close(self) -> None:
        self._lines = None
        self._idx = 0

    def is_open(self) -> bool:
        return self._lines is not None

    def describe(self) -> str:
        return f"replay {self.path}"

    def recv(self, timeout: float) -> Optional[str]:
        if self._lines is None:
            raise TransportIOError("recv while transport not open")

        if self._idx >= len(self._lines):
            if not self.loop or not self._lines:
                self._lines = None
                raise TransportClosedError(f"Replay of {self.path} finished")
            self._idx = 0

        wait_s = self._next_due - time.monotonic()
        if wait_s > timeout:
            time.sleep(max(0.0, timeout))
            return None
        if wait_s > 0:
            time.sleep(wait_s)

        line = self._lines[self._idx]
        self._idx += 1
        self._next_due = time.monotonic() + self.interval_s
        return line
