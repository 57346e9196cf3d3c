# hygromon/transport/params.py
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from hygromon.model.transport import TransportType
from hygromon.core.errors import TransportConfigError

_MISSING = object()


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected str, got {type(value).__name__}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    return value


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected float, got {type(value).__name__}")
    return float(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise TypeError(f"Expected bool (or 0/1), got {type(value).__name__}")


CASTERS: Dict[str, Callable[[Any], Any]] = {
    "str": _as_str,
    "int": _as_int,
    "float": _as_float,
    "bool": _as_bool,
}


class TransportParamResolver:
    """
    Turns a TransportType schema plus user overrides into driver kwargs.

    Overrides win over schema defaults. Optional params without a default are
    left out so the driver's own default applies.
    """

    def __init__(self, transports: Mapping[int, TransportType]):
        self._transports = transports

    def resolve(self, type_id: int, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        meta = self._transports.get(int(type_id))
        if meta is None:
            raise TransportConfigError(
                f"No transport metadata id={type_id}.",
                hint="Run: hygromon transports",
                details={"type_id": int(type_id)},
            )
        return self.resolve_for(meta, overrides or {})

    def resolve_for(self, meta: TransportType, overrides: Mapping[str, Any]) -> Dict[str, Any]:
        for name in sorted(overrides):
            if name not in meta.params:
                raise TransportConfigError(
                    f"Unknown transport param '{name}' for transport '{meta.label}'.",
                    hint=f"Valid params: {sorted(meta.params)}",
                    details={"label": meta.label, "driver": meta.driver, "param": name},
                )

        resolved: Dict[str, Any] = {}
        for name, spec in meta.params.items():
            value = overrides.get(name, spec.get("default", _MISSING))
            if value is _MISSING:
                if spec.get("required", False):
                    flag = "--" + name.replace("_", "-")
                    raise TransportConfigError(
                        f"Missing required transport param '{name}' for transport '{meta.label}'.",
                        hint=f"Pass it as {flag} <value>.",
                        details={"label": meta.label, "driver": meta.driver, "param": name},
                    )
                continue
            resolved[name] = None if value is None else self._cast(meta, name, spec, value)

        return resolved

    @staticmethod
    def _cast(meta: TransportType, name: str, spec: Mapping[str, Any], value: Any) -> Any:
        type_name = spec.get("type")
        caster = CASTERS.get(str(type_name))
        try:
            if caster is None:
                raise TypeError(f"Unknown schema type '{type_name}'")
            return caster(value)
        except (TypeError, ValueError) as e:
            raise TransportConfigError(
                f"Invalid value for transport '{meta.label}' param '{name}'.",
                hint=str(e),
                details={"label": meta.label, "param": name, "value": value, "expected_type": type_name},
            ) from None
