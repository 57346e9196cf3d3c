from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class TransportType:
    """
    Catalog entry for one way of reaching the sensor (no runtime state).

    `params` is the constructor schema of the driver:
        param_name -> {type, default, required, help}
    `key_param` names the param that identifies a concrete source
    (the relay URL, the serial port, the replay file).
    """

    type_id: int
    label: str
    driver: str
    params: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    key_param: str = "url"
    description: str = ""
