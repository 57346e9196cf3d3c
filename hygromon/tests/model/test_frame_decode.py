from __future__ import annotations

import pytest

from hygromon.model.frame import (
    FrameDecodeError,
    IncompleteFrameError,
    decode_frame,
    encode_frame,
)
from hygromon.model.sensor import FLAG_ADC_OUT_OF_RANGE, FLAG_VOLTS_OUT_OF_RANGE, SensorProfile


def test_decode_reference_frame():
    r = decode_frame("Valor: 252 | Volts: 4.94")

    assert r.adc_value == 252
    assert r.sensor_voltage_raw == pytest.approx(4.94)
    assert r.relative_humidity == pytest.approx(98.8)
    assert r.sensor_voltage == pytest.approx(3.2604)
    assert r.flags == ()


@pytest.mark.parametrize(
    "adc, volts",
    [(0, 0.0), (1023, 5.0), (512, 2.5), (17, 0.01)],
)
def test_derived_values_follow_raw_voltage(adc, volts):
    r = decode_frame(f"Valor: {adc}|Volts: {volts}")

    assert r.adc_value == adc
    assert r.sensor_voltage_raw == pytest.approx(volts)
    assert r.relative_humidity == pytest.approx(20.0 * volts)
    assert r.sensor_voltage == pytest.approx(0.033 * 20.0 * volts)


def test_labels_and_whitespace_may_vary():
    r = decode_frame("  adc :   7   |volts:1.5  ")
    assert r.adc_value == 7
    assert r.sensor_voltage_raw == pytest.approx(1.5)


def test_extra_parts_are_ignored():
    r = decode_frame("Valor: 3|Volts: 0.5|Temp: 21.0|junk")
    assert r.adc_value == 3
    assert r.relative_humidity == pytest.approx(10.0)


def test_bytes_frame_is_decoded_as_utf8():
    r = decode_frame(b"Valor: 100 | Volts: 1.00")
    assert r.adc_value == 100


def test_invalid_utf8_is_a_decode_error():
    with pytest.raises(FrameDecodeError):
        decode_frame(b"\xff\xfe|\x00")


@pytest.mark.parametrize("frame", ["garbage", "", "Valor: 252"])
def test_too_few_parts_is_incomplete(frame):
    with pytest.raises(IncompleteFrameError):
        decode_frame(frame)


def test_non_numeric_adc():
    with pytest.raises(FrameDecodeError) as ei:
        decode_frame("Valor: abc | Volts: 4.94")
    assert ei.value.field == "adc"
    assert not isinstance(ei.value, IncompleteFrameError)


def test_float_adc_is_rejected():
    with pytest.raises(FrameDecodeError):
        decode_frame("Valor: 25.2 | Volts: 4.94")


def test_non_numeric_volts():
    with pytest.raises(FrameDecodeError) as ei:
        decode_frame("Valor: 252 | Volts: high")
    assert ei.value.field == "volts"


def test_missing_field_separator():
    with pytest.raises(FrameDecodeError) as ei:
        decode_frame("Valor 252 | Volts: 4.94")
    assert ei.value.field == "adc"


@pytest.mark.parametrize("text", ["nan", "inf", "-inf"])
def test_non_finite_volts_rejected(text):
    with pytest.raises(FrameDecodeError):
        decode_frame(f"Valor: 1 | Volts: {text}")


def test_profile_flags_out_of_range_but_still_decodes():
    profile = SensorProfile(type_id=1, name="H", adc_max=1023, volts_min=0.0, volts_max=5.0)

    r = decode_frame("Valor: 2000 | Volts: -0.5", profile=profile)

    assert r.adc_value == 2000
    assert r.flags == (FLAG_ADC_OUT_OF_RANGE, FLAG_VOLTS_OUT_OF_RANGE)
    assert r.flagged is True
    assert r.relative_humidity == pytest.approx(-10.0)


def test_profile_in_range_has_no_flags():
    profile = SensorProfile(type_id=1, name="H")
    assert decode_frame("Valor: 1023 | Volts: 4.99", profile=profile).flags == ()


def test_encode_frame_decodes_back():
    r = decode_frame(encode_frame(252, 4.94))
    assert r.adc_value == 252
    assert r.sensor_voltage_raw == pytest.approx(4.94)


@pytest.mark.parametrize(
    "frame, field",
    [
        ("Valor: 1_000 | Volts: 1.0", "adc"),
        ("Valor: +5 | Volts: 1.0", "adc"),
        ("Valor: ٢٥٢ | Volts: 1.0", "adc"),
        ("Valor: 5 | Volts: 1e2", "volts"),
        ("Valor: 5 | Volts: 1_0.5", "volts"),
        ("Valor: 5 | Volts: +1.0", "volts"),
        ("Valor: 5 | Volts: ٤.94", "volts"),
    ],
)
def test_only_plain_ascii_numbers_accepted(frame, field):
    with pytest.raises(FrameDecodeError) as ei:
        decode_frame(frame)
    assert ei.value.field == field


@pytest.mark.parametrize("text, expected", [("-0.5", -0.5), (".5", 0.5), ("5.", 5.0), ("3", 3.0)])
def test_plain_decimal_volts_forms(text, expected):
    assert decode_frame(f"Valor: 1 | Volts: {text}").sensor_voltage_raw == pytest.approx(expected)


def test_undecodable_bytes_are_a_parse_failure():
    with pytest.raises(FrameDecodeError):
        decode_frame(b"Valor: 1 | Volts: \xff\xfe")
