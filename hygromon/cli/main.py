from __future__ import annotations

import sys
from typing import Optional

from hygromon.core.errors import MonitorError

from hygromon.cli.args import parse_args
from hygromon.cli.commands import (
    cmd_decode,
    cmd_transports,
    cmd_watch,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args, context, transport_type_id, overrides = parse_args(argv)
        configure_logging(verbose=args.verbose, log_file=getattr(args, "log_file", None))

        if args.cmd == "transports":
            return cmd_transports(context=context)

        if args.cmd == "decode":
            frames = args.frames or sys.stdin
            return cmd_decode(frames, context=context, sensor_id=args.sensor_id)

        if args.cmd == "watch":
            assert transport_type_id is not None
            return cmd_watch(
                args,
                context=context,
                transport_type_id=transport_type_id,
                transport_overrides=overrides,
            )

        return 2
    except MonitorError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
