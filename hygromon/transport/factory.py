# hygromon/transport/factory.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from hygromon.model.transport import TransportType
from hygromon.transport.base import FrameTransport
from hygromon.transport.registry import TransportDriverRegistry
from hygromon.transport.params import TransportParamResolver
from hygromon.transport.errors import TransportError
from hygromon.core.errors import TransportConfigError


@dataclass(frozen=True)
class SourceTransport:
    transport: FrameTransport
    params: Dict[str, Any]
    meta: TransportType

    @property
    def key_param_value(self) -> str:
        return str(self.params.get(self.meta.key_param, ""))


class TransportFactory:
    """
    Constructs a transport instance from metadata + overrides.
    Note: does NOT open the transport. Each call returns a fresh instance,
    which is what a reconnect needs.
    """

    def __init__(
        self,
        transports: Mapping[int, TransportType],
        drivers: TransportDriverRegistry,
    ):
        self._transports = transports
        self._drivers = drivers
        self._params = TransportParamResolver(transports)

    def transports(self) -> Mapping[int, TransportType]:
        return dict(self._transports)

    def create(self, type_id: int, overrides: Optional[Dict[str, Any]] = None) -> SourceTransport:
        overrides = overrides or {}
        meta = self._transports.get(int(type_id))
        if not meta:
            raise TransportConfigError(
                f"No transport metadata id={type_id}.",
                hint="Run: hygromon transports",
                details={"type_id": int(type_id)},
            ) from None

        params = self._params.resolve_for(meta, overrides)
        try:
            hw = self._drivers.create(meta.driver, **params)
        except (TransportError, TypeError) as e:
            # unknown driver key or constructor mismatch
            raise TransportConfigError(
                f"Failed to construct transport '{meta.label}' (driver='{meta.driver}').",
                hint=str(e),
                details={
                    "type_id": int(type_id),
                    "driver": meta.driver,
                    "overrides": dict(overrides),
                },
            ) from None

        return SourceTransport(transport=hw, params=params, meta=meta)
