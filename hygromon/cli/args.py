from __future__ import annotations

import argparse
from typing import Any, Mapping, Optional, Tuple

from hygromon.app.transport_index import TransportIndex
from hygromon.core.context import Context
from hygromon.runtime.ingestor import DEFAULT_STALL_TIMEOUT_S


# ---------------- transport helpers (CLI-local) ----------------

def cast_type_name(type_name: Any):
    """
    Cast argparse values based on metadata schema type strings.

    NOTE: This only affects CLI parsing. TransportParamResolver still
    validates/casts strictly.
    """
    if type_name == "int":
        return int
    if type_name == "float":
        return float
    if type_name == "bool":

        def _to_bool(v: str) -> bool:
            s = str(v).strip().lower()
            if s in ("1", "true", "yes"):
                return True
            if s in ("0", "false", "no"):
                return False
            raise argparse.ArgumentTypeError(f"Invalid bool literal '{v}' (use true/false)")

        return _to_bool

    return str


def positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'") from None
    if not f > 0:
        raise argparse.ArgumentTypeError(f"Must be greater than 0, got {value}")
    return f


def is_effectively_required(spec: Mapping[str, Any]) -> bool:
    if "default" in spec:
        return False
    return bool(spec.get("required", False))


def param_flag(name: str) -> str:
    return "--" + name.replace("_", "-")


# ---------------- argparse (two-stage) ----------------

def _global_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--metadata-dir", default=None, help="Directory holding transports.yml and sensors.yml.")
    common.add_argument("-v", "--verbose", action="store_true", help="Log INFO events to stderr.")
    return common


def _add_watch_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--stall-timeout-s",
        type=positive_float,
        default=DEFAULT_STALL_TIMEOUT_S,
        help=f"Silence window before the stream is flagged as stalled (default: {DEFAULT_STALL_TIMEOUT_S:g}).",
    )
    p.add_argument("--poll-s", type=positive_float, default=0.2, help="Receive poll interval in seconds.")
    p.add_argument("--secs", type=float, default=None, help="Stop after N seconds (default: run until 'q' or Ctrl+C).")
    p.add_argument("--sensor-id", type=int, default=None, help="Sensor profile id from sensors.yml.")
    p.add_argument("--log-file", default=None, help="Append application log to this file.")


def build_base_parser() -> argparse.ArgumentParser:
    """
    Stage 1 parser: parse only command + --transport + app-level args.
    Transport params are NOT declared here.
    """
    common = _global_options()
    parser = argparse.ArgumentParser(prog="hygromon")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("transports", parents=[common])

    p_decode = sub.add_parser("decode", parents=[common])
    p_decode.add_argument("frames", nargs="*", help="Frames to decode (default: one per stdin line).")
    p_decode.add_argument("--sensor-id", type=int, default=None)

    p_watch = sub.add_parser("watch", parents=[common])
    p_watch.add_argument("--transport", required=True, help="Transport label (see: hygromon transports).")
    _add_watch_options(p_watch)

    return parser


def build_full_parser_for(*, tindex: TransportIndex, transport_type_id: int) -> argparse.ArgumentParser:
    """
    Stage 2 parser: `watch` gains dynamic transport param flags based on metadata.
    """
    meta = tindex.meta_for_type_id(transport_type_id)
    params = meta.params
    key_param = meta.key_param

    common = _global_options()
    parser = argparse.ArgumentParser(prog="hygromon")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_watch = sub.add_parser("watch", parents=[common])
    p_watch.add_argument("--transport", required=True)
    _add_watch_options(p_watch)

    # key param first
    ordered = [key_param] + [n for n in params if n != key_param]
    for name in ordered:
        spec = params[name]
        p_watch.add_argument(
            param_flag(name),
            dest=name,
            required=is_effectively_required(spec),
            default=None,
            type=cast_type_name(spec.get("type")),
            help=spec.get("help") or f"Transport {'key ' if name == key_param else ''}param for '{meta.label}'"
            + (f" (default: {spec['default']!r})" if "default" in spec else "."),
        )

    return parser


def parse_args(
    argv: Optional[list[str]] = None,
) -> Tuple[argparse.Namespace, Context, Optional[int], dict]:
    """
    Returns: (args, context, transport_type_id, overrides)

    - transport_type_id is None for commands other than 'watch'
    - overrides contains only transport params given on the command line;
      schema defaults are applied later by TransportParamResolver
    """
    base_parser = build_base_parser()
    base, _unknown = base_parser.parse_known_args(argv)

    context = Context.load(base.metadata_dir)

    if base.cmd != "watch":
        # re-parse strictly so stray flags are still reported
        return base_parser.parse_args(argv), context, None, {}

    tindex = TransportIndex.from_context(context)
    type_id = tindex.resolve_type_id_by_label(base.transport)

    full_parser = build_full_parser_for(tindex=tindex, transport_type_id=type_id)
    args = full_parser.parse_args(argv)

    params = tindex.schema_for_type_id(type_id)
    overrides = {
        name: getattr(args, name)
        for name in params.keys()
        if getattr(args, name, None) is not None
    }

    return args, context, type_id, overrides
