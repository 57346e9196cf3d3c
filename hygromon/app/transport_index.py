from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from hygromon.core.context import Context
from hygromon.core.errors import TransportConfigError
from hygromon.model.transport import TransportType


@dataclass(frozen=True)
class TransportIndex:
    """
    Read-only view of the transport catalog for the CLI.

    `watch --transport <label>` is resolved here before the second parsing
    stage knows which parameter flags to accept. Labels match case-insensitively.
    """
    _transports: Mapping[int, TransportType]

    @classmethod
    def from_context(cls, context: Context) -> "TransportIndex":
        return cls(_transports=context.transport_factory.transports())

    def list(self) -> List[TransportType]:
        return sorted(self._transports.values(), key=lambda t: t.type_id)

    def meta_for_type_id(self, type_id: int) -> TransportType:
        try:
            return self._transports[int(type_id)]
        except KeyError:
            raise TransportConfigError(
                f"Unknown transport type id '{type_id}'.",
                hint="Run: hygromon transports",
            ) from None

    def resolve_type_id_by_label(self, label: str) -> int:
        by_label: Dict[str, List[int]] = {}
        for meta in self._transports.values():
            by_label.setdefault(meta.label.strip().lower(), []).append(meta.type_id)

        ids = by_label.get(label.strip().lower(), [])
        if len(ids) == 1:
            return ids[0]
        if not ids:
            raise TransportConfigError(
                f"Unknown transport '{label}'.",
                hint=f"Run: hygromon transports (known: {', '.join(sorted(by_label))})",
            )
        raise TransportConfigError(
            f"Ambiguous transport label '{label}'.",
            hint=f"Type ids {sorted(ids)} share it; labels must be unique.",
        )

    def schema_for_type_id(self, type_id: int) -> Mapping[str, Mapping[str, Any]]:
        return self.meta_for_type_id(type_id).params
