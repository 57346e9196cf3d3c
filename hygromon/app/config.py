from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MonitorConfig:
    transport_type_id: int
    transport_overrides: dict = field(default_factory=dict)
    metadata_dir: Optional[str] = None  # None = YAML shipped with the package
    sensor_type_id: Optional[int] = None
    stall_timeout_s: float = 10.0
    poll_s: float = 0.2
