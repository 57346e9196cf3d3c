from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Conversion used by the HMZ-433A1 board firmware.
RH_PER_VOLT = 20.0
SUPPLY_VOLTS = 3.3


def humidity_from_volts(volts: float) -> float:
    return RH_PER_VOLT * float(volts)


def sensor_volts_from_humidity(relative_humidity: float) -> float:
    return (SUPPLY_VOLTS / 100.0) * float(relative_humidity)


@dataclass(frozen=True)
class Reading:
    """
    One decoded humidity sample.

    relative_humidity and sensor_voltage are derived from sensor_voltage_raw;
    build instances with `Reading.from_raw()` so they stay consistent.

    flags: range-check findings (e.g. "adc_out_of_range"); empty when the
    values sit inside the sensor profile limits or no profile was applied.
    """
    adc_value: int
    sensor_voltage_raw: float
    relative_humidity: float
    sensor_voltage: float
    flags: Tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, adc_value: int, sensor_voltage_raw: float, *, flags: Tuple[str, ...] = ()) -> "Reading":
        volts = float(sensor_voltage_raw)
        rh = humidity_from_volts(volts)
        return cls(
            adc_value=int(adc_value),
            sensor_voltage_raw=volts,
            relative_humidity=rh,
            sensor_voltage=sensor_volts_from_humidity(rh),
            flags=tuple(flags),
        )

    @property
    def flagged(self) -> bool:
        return bool(self.flags)

    def as_dict(self) -> dict:
        return {
            "adc_value": self.adc_value,
            "sensor_voltage_raw": self.sensor_voltage_raw,
            "relative_humidity": self.relative_humidity,
            "sensor_voltage": self.sensor_voltage,
            "flags": list(self.flags),
        }
