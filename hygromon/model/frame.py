from __future__ import annotations

import re
from typing import Optional, Union

from .reading import Reading
from .sensor import SensorProfile

PART_SEP = "|"
FIELD_SEP = ":"
MIN_PARTS = 2

# plain ASCII decimals only: no exponent, sign prefix "+", "_" or non-ASCII digits
ADC_RE = re.compile(r"-?[0-9]+")
VOLTS_RE = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


class FrameDecodeError(ValueError):
    """A frame was received but its fields could not be parsed."""

    def __init__(self, message: str, *, frame: str = "", field: Optional[str] = None):
        super().__init__(message)
        self.frame = frame
        self.field = field


class IncompleteFrameError(FrameDecodeError):
    """Frame carries fewer than MIN_PARTS '|'-separated parts (partial or noise)."""


def _field_value(part: str, *, field: str, frame: str) -> str:
    pieces = part.split(FIELD_SEP)
    if len(pieces) < 2:
        raise FrameDecodeError(
            f"Field '{field}' has no '{FIELD_SEP}' separator: {part.strip()!r}",
            frame=frame,
            field=field,
        )
    return pieces[1].strip()


def decode_frame(frame: Union[str, bytes], *, profile: Optional[SensorProfile] = None) -> Reading:
    """
    Decode one text frame "Valor: <int>|Volts: <float>" into a Reading.

    Labels and whitespace may vary, extra parts are ignored.
    Raises IncompleteFrameError for too few parts, FrameDecodeError otherwise.
    """
    if isinstance(frame, (bytes, bytearray)):
        try:
            frame = bytes(frame).decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameDecodeError(f"Frame is not valid UTF-8: {e}") from None

    parts = frame.split(PART_SEP)
    if len(parts) < MIN_PARTS:
        raise IncompleteFrameError(
            f"Expected at least {MIN_PARTS} '{PART_SEP}'-separated parts, got {len(parts)}",
            frame=frame,
        )

    adc_text = _field_value(parts[0], field="adc", frame=frame)
    volts_text = _field_value(parts[1], field="volts", frame=frame)

    if not ADC_RE.fullmatch(adc_text):
        raise FrameDecodeError(f"ADC value is not an integer: {adc_text!r}", frame=frame, field="adc")
    if not VOLTS_RE.fullmatch(volts_text):
        raise FrameDecodeError(f"Voltage is not a number: {volts_text!r}", frame=frame, field="volts")

    adc_value = int(adc_text)
    volts = float(volts_text)

    flags = profile.check(adc_value, volts) if profile is not None else ()
    return Reading.from_raw(adc_value, volts, flags=flags)


def encode_frame(adc_value: int, volts: float) -> str:
    """Build a frame in the sensor board's own layout (used for replay files)."""
    return f"Valor: {int(adc_value)} {PART_SEP} Volts: {float(volts):.2f}"
