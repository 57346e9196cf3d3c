# hygromon/app/presenter.py
"""
Console presentation of the latest reading and connection state.

Layout rules:
  - humidity with 1 decimal, '--.-' before the first reading
  - sensor voltage with 2 decimals, '-.--' before the first reading
  - raw ADC count as an integer, '----' before the first reading
  - a status line; Stalled/Disconnected also offer the reconnect action
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

from hygromon.model.reading import Reading
from hygromon.model.sensor import SensorProfile
from hygromon.runtime.state import ConnectionState, StateChange

HUMIDITY_PLACEHOLDER = "--.-"
VOLTAGE_PLACEHOLDER = "-.--"
ADC_PLACEHOLDER = "----"

RECONNECT_PROMPT = "[r] reconnect  [q] quit"


def format_humidity(reading: Optional[Reading]) -> str:
    return f"{reading.relative_humidity:.1f}" if reading is not None else HUMIDITY_PLACEHOLDER


def format_voltage(reading: Optional[Reading]) -> str:
    return f"{reading.sensor_voltage:.2f}" if reading is not None else VOLTAGE_PLACEHOLDER


def format_adc(reading: Optional[Reading]) -> str:
    return str(reading.adc_value) if reading is not None else ADC_PLACEHOLDER


@dataclass(frozen=True)
class PanelView:
    humidity: str
    voltage: str
    adc: str
    status: str
    reconnect_offered: bool
    notice: Optional[str] = None
    flags: str = ""


def build_view(reading: Optional[Reading], state: ConnectionState, notice: Optional[str] = None) -> PanelView:
    return PanelView(
        humidity=format_humidity(reading),
        voltage=format_voltage(reading),
        adc=format_adc(reading),
        status=state.label,
        reconnect_offered=state.reconnect_required,
        notice=notice,
        flags=",".join(reading.flags) if reading is not None else "",
    )


def render_panel(view: PanelView, *, sensor_name: str = "") -> str:
    lines = ["Humidity Monitor"]
    if sensor_name:
        lines.append(f"Sensor: {sensor_name}")
    lines.append(f"  Relative humidity : {view.humidity} %")
    lines.append(f"  Sensor voltage    : {view.voltage} V")
    lines.append(f"  ADC value         : {view.adc}")
    if view.flags:
        lines.append(f"  Out of range      : {view.flags}")
    lines.append(f"Status: {view.status}")
    if view.notice:
        lines.append(f"  {view.notice}")
    if view.reconnect_offered:
        lines.append(RECONNECT_PROMPT)
    return "\n".join(lines)


class ConsolePresenter:
    """
    ReadingSink that re-renders the panel on every reading and state change.

    Each reading replaces the previous one; the last notice sticks until the
    next state change. A session's first change (previous=None) clears the
    reading, so a reconnect starts from placeholders.
    """

    def __init__(
        self,
        *,
        profile: Optional[SensorProfile] = None,
        out: Callable[[str], None] = print,
    ):
        self._profile = profile
        self._out = out
        self._lock = Lock()

        self._reading: Optional[Reading] = None
        self._state = ConnectionState.CONNECTING
        self._notice: Optional[str] = None

    @property
    def view(self) -> PanelView:
        with self._lock:
            return build_view(self._reading, self._state, self._notice)

    def on_reading(self, reading: Reading) -> None:
        with self._lock:
            self._reading = reading
        self._render()

    def on_state(self, change: StateChange) -> None:
        with self._lock:
            if change.previous is None:
                # a new session starts from an empty panel
                self._reading = None
            self._state = change.current
            self._notice = change.notice
        self._render()

    def close(self) -> None:
        return None

    def _render(self) -> None:
        name = self._profile.display_name if self._profile is not None else ""
        self._out(render_panel(self.view, sensor_name=name))
