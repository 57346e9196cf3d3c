from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import yaml

from .sensor import SensorProfile
from .transport import TransportType

TRANSPORTS_FILE = "transports.yml"
SENSORS_FILE = "sensors.yml"


class MetadataLoader:
    """
    Reads the YAML catalogs into model objects.

    After load_all():
        self.transports : dict[int, TransportType]
        self.sensors    : dict[int, SensorProfile]

    Malformed files raise ValueError; missing files raise FileNotFoundError.
    """

    def __init__(self, config_dir: str | Path):
        self.config_dir = Path(config_dir)
        self.transports: Dict[int, TransportType] = {}
        self.sensors: Dict[int, SensorProfile] = {}

    def load_all(self) -> None:
        self.transports = {tid: self._transport(tid, info) for tid, info in self._entries(TRANSPORTS_FILE, "transports")}
        self.sensors = {sid: self._sensor(sid, info) for sid, info in self._entries(SENSORS_FILE, "sensors")}

    def get_transport(self, tid: int) -> Optional[TransportType]:
        return self.transports.get(tid)

    def get_sensor(self, sid: int) -> Optional[SensorProfile]:
        return self.sensors.get(sid)

    # ------------------------------------------------------------------

    def _entries(self, filename: str, root: str) -> Iterator[Tuple[int, Dict[str, Any]]]:
        path = self.config_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Missing metadata file: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        entries = data.get(root) if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise ValueError(f"{filename}: expected a '{root}' mapping at the top level")

        for raw_id, info in entries.items():
            entry_id = int(raw_id)
            if not isinstance(info, dict):
                raise ValueError(f"{filename}: entry {entry_id} must be a mapping")
            yield entry_id, info

    @staticmethod
    def _required(info: Dict[str, Any], key: str, *, where: str) -> str:
        value = info.get(key)
        if not value:
            raise ValueError(f"{where} is missing '{key}'")
        return str(value)

    def _transport(self, tid: int, info: Dict[str, Any]) -> TransportType:
        where = f"Transport {tid}"
        params = info.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError(f"{where}: 'params' must be a mapping")

        key_param = self._required(info, "key_param", where=where)
        if key_param not in params:
            raise ValueError(f"{where}: key_param '{key_param}' is not one of its params")

        # param values are checked by TransportParamResolver at connect time
        return TransportType(
            type_id=tid,
            label=self._required(info, "label", where=where),
            driver=self._required(info, "driver", where=where),
            params=params,
            key_param=key_param,
            description=str(info.get("description", "")),
        )

    def _sensor(self, sid: int, info: Dict[str, Any]) -> SensorProfile:
        volts_max = info.get("volts_max")
        return SensorProfile(
            type_id=sid,
            name=self._required(info, "name", where=f"Sensor {sid}"),
            model=str(info.get("model", "")),
            adc_min=int(info.get("adc_min", 0)),
            adc_max=int(info.get("adc_max", 1023)),
            volts_min=float(info.get("volts_min", 0.0)),
            volts_max=float(volts_max) if volts_max is not None else None,
        )
