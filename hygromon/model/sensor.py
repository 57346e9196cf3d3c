from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

FLAG_ADC_OUT_OF_RANGE = "adc_out_of_range"
FLAG_VOLTS_OUT_OF_RANGE = "volts_out_of_range"


@dataclass(frozen=True)
class SensorProfile:
    """
    Static model of the sensor feeding the stream (catalog entry).

    Limits are advisory: values outside them are still delivered, only flagged.
    volts_max = None leaves the upper voltage bound open.
    """
    type_id: int
    name: str
    model: str = ""
    adc_min: int = 0
    adc_max: int = 1023
    volts_min: float = 0.0
    volts_max: Optional[float] = None

    def __post_init__(self) -> None:
        if self.adc_min > self.adc_max:
            raise ValueError(f"Sensor '{self.name}': adc_min {self.adc_min} > adc_max {self.adc_max}")
        if self.volts_max is not None and self.volts_min > self.volts_max:
            raise ValueError(f"Sensor '{self.name}': volts_min {self.volts_min} > volts_max {self.volts_max}")

    def check(self, adc_value: int, volts: float) -> Tuple[str, ...]:
        flags = []
        if not (self.adc_min <= adc_value <= self.adc_max):
            flags.append(FLAG_ADC_OUT_OF_RANGE)
        if volts < self.volts_min or (self.volts_max is not None and volts > self.volts_max):
            flags.append(FLAG_VOLTS_OUT_OF_RANGE)
        return tuple(flags)

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.model})" if self.model else self.name


DEFAULT_PROFILE = SensorProfile(type_id=1, name="Humidity", model="HMZ-433A1")
