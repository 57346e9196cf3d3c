from __future__ import annotations

import dataclasses

import pytest

from hygromon.model.reading import Reading
from hygromon.model.sensor import SensorProfile


def test_from_raw_derives_humidity_and_voltage():
    r = Reading.from_raw(252, 4.94)

    assert r.relative_humidity == pytest.approx(98.8)
    assert r.sensor_voltage == pytest.approx(3.2604)


def test_reading_is_immutable():
    r = Reading.from_raw(1, 1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        r.relative_humidity = 50.0  # type: ignore[misc]


def test_as_dict():
    d = Reading.from_raw(10, 0.5, flags=("adc_out_of_range",)).as_dict()

    assert d["adc_value"] == 10
    assert d["relative_humidity"] == pytest.approx(10.0)
    assert d["flags"] == ["adc_out_of_range"]


def test_sensor_profile_rejects_inverted_limits():
    with pytest.raises(ValueError):
        SensorProfile(type_id=1, name="bad", adc_min=10, adc_max=5)
    with pytest.raises(ValueError):
        SensorProfile(type_id=1, name="bad", volts_min=3.0, volts_max=1.0)


def test_sensor_profile_display_name():
    assert SensorProfile(type_id=1, name="Humidity", model="HMZ-433A1").display_name == "Humidity (HMZ-433A1)"
    assert SensorProfile(type_id=1, name="Humidity").display_name == "Humidity"
