from typing import Protocol

from hygromon.model.reading import Reading
from hygromon.runtime.state import StateChange


class ReadingSink(Protocol):
    def on_reading(self, reading: Reading) -> None: ...
    def on_state(self, change: StateChange) -> None: ...
    def close(self) -> None: ...
