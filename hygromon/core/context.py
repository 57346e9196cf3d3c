from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml

from hygromon.model.loader import MetadataLoader
from hygromon.model.sensor import DEFAULT_PROFILE, SensorProfile
from hygromon.model.transport import TransportType

from hygromon.transport.registry import TransportDriverRegistry
from hygromon.transport.factory import TransportFactory

from hygromon.core.errors import MetadataError

PACKAGED_METADATA_DIR = Path(__file__).resolve().parents[1] / "metadata"


@dataclass(frozen=True)
class Context:
    transports: Dict[int, TransportType]
    sensors: Dict[int, SensorProfile]
    transport_factory: TransportFactory

    @classmethod
    def load(
        cls,
        metadata_dir: str | Path | None = None,
        *,
        drivers: Optional[TransportDriverRegistry] = None,
    ) -> "Context":
        """
        Load metadata and construct a transport factory.

        `metadata_dir` defaults to the YAML shipped with the package.
        `drivers` is injectable to support testing and custom driver registries.
        """
        metadata_dir = Path(metadata_dir) if metadata_dir is not None else PACKAGED_METADATA_DIR

        ml = MetadataLoader(metadata_dir)
        try:
            ml.load_all()
        except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as e:
            raise MetadataError(
                "Failed to load metadata.",
                hint=str(e),
                details={"metadata_dir": str(metadata_dir)},
            ) from None

        drivers = drivers or TransportDriverRegistry.default()
        factory = TransportFactory(ml.transports, drivers)

        return cls(
            transports=ml.transports,
            sensors=ml.sensors,
            transport_factory=factory,
        )

    def sensor_profile(self, type_id: Optional[int] = None) -> SensorProfile:
        """Profile by id, else the lowest-id profile, else the built-in default."""
        if type_id is not None:
            profile = self.sensors.get(int(type_id))
            if profile is None:
                raise MetadataError(
                    f"Unknown sensor type id '{type_id}'.",
                    hint=f"Known ids: {sorted(self.sensors.keys())}",
                )
            return profile
        if self.sensors:
            return self.sensors[min(self.sensors.keys())]
        return DEFAULT_PROFILE
