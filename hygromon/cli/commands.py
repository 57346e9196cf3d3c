# hygromon/cli/commands.py
from __future__ import annotations

import logging
import queue
import sys
import threading
import time
from pathlib import Path
from typing import Iterable, Optional, TextIO

from hygromon.app.config import MonitorConfig
from hygromon.app.controller import MonitorController
from hygromon.app.presenter import ConsolePresenter
from hygromon.app.transport_index import TransportIndex
from hygromon.core.context import Context
from hygromon.model.frame import FrameDecodeError, IncompleteFrameError, decode_frame

from hygromon.cli.args import is_effectively_required, param_flag

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Logging ----------------

def configure_logging(*, verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Console handler on the root logger (WARNING, or INFO with --verbose),
    plus an optional file handler. Idempotent.
    """
    root = logging.getLogger()
    level = logging.INFO if verbose else logging.WARNING

    if not any(getattr(h, "_hygromon_console", False) for h in root.handlers):
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        sh._hygromon_console = True  # type: ignore[attr-defined]
        root.addHandler(sh)
    for h in root.handlers:
        if getattr(h, "_hygromon_console", False):
            h.setLevel(level)

    if log_file:
        configure_file_logging(Path(log_file))

    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)


def configure_file_logging(app_log_path: Path) -> None:
    """
    Add a file handler to the root logger (idempotent).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Commands ----------------

def cmd_transports(*, context: Context) -> int:
    tindex = TransportIndex.from_context(context)
    transports = tindex.list()

    print("Available transports:\n")
    print("Usage:")
    print("  hygromon watch --transport <label> --<key> <value> [--<param> <value> ...]\n")

    for t in transports:
        print(f"{t.label} (id={t.type_id}, driver={t.driver})")
        if t.description:
            print(f"  {t.description}")
        print(f"  key: {param_flag(t.key_param)}")

        others = [n for n in t.params.keys() if n != t.key_param]
        if others:
            opts = []
            for name in others:
                spec = t.params[name]
                if "default" in spec:
                    opts.append(f"{param_flag(name)}={spec['default']!r}")
                elif is_effectively_required(spec):
                    opts.append(f"{param_flag(name)}=<required>")
                else:
                    opts.append(f"{param_flag(name)}=<optional>")
            print("  options: " + ", ".join(opts))
        print()

    return 0


def cmd_decode(frames: Iterable[str], *, context: Context, sensor_id: Optional[int] = None) -> int:
    """Decode frames offline. Returns 0 when every frame decoded, else 3."""
    profile = context.sensor_profile(sensor_id)
    dropped = 0

    for frame in frames:
        frame = frame.rstrip("\r\n")
        try:
            r = decode_frame(frame, profile=profile)
        except IncompleteFrameError:
            dropped += 1
            print(f"DROP {frame!r}: incomplete frame")
            continue
        except FrameDecodeError as e:
            dropped += 1
            print(f"DROP {frame!r}: {e}")
            continue

        flags = f" flags={','.join(r.flags)}" if r.flags else ""
        print(
            f"OK   adc={r.adc_value} volts_raw={r.sensor_voltage_raw:g} "
            f"rh={r.relative_humidity:.1f}% sensor_v={r.sensor_voltage:.2f}V{flags}"
        )

    return 0 if dropped == 0 else 3


def _start_stdin_reader(stream: TextIO) -> "queue.Queue[Optional[str]]":
    """Forward stdin lines to a queue; None marks EOF."""
    lines: "queue.Queue[Optional[str]]" = queue.Queue()

    def _pump() -> None:
        try:
            for line in stream or ():
                lines.put(line.strip().lower())
        except (OSError, ValueError):
            pass
        lines.put(None)

    threading.Thread(target=_pump, daemon=True, name="hygromon-stdin").start()
    return lines


def cmd_watch(args, *, context: Context, transport_type_id: int, transport_overrides: dict) -> int:
    cfg = MonitorConfig(
        transport_type_id=int(transport_type_id),
        transport_overrides=dict(transport_overrides),
        metadata_dir=args.metadata_dir,
        sensor_type_id=args.sensor_id,
        stall_timeout_s=float(args.stall_timeout_s),
        poll_s=float(args.poll_s),
    )
    log = logging.getLogger(__name__)

    controller = MonitorController(cfg, context=context)
    controller.add_sink(ConsolePresenter(profile=controller.profile))

    commands = _start_stdin_reader(sys.stdin)
    stdin_open = True
    t0 = time.monotonic()

    st = None
    with controller:
        try:
            while args.secs is None or time.monotonic() - t0 < args.secs:
                if not stdin_open:
                    time.sleep(0.2)
                    continue
                try:
                    cmd = commands.get(timeout=0.2)
                except queue.Empty:
                    continue

                if cmd is None:
                    stdin_open = False
                elif cmd in ("q", "quit"):
                    break
                elif cmd in ("r", "reconnect"):
                    state = controller.state
                    if state is not None and not state.reconnect_required:
                        print(f"Still {state.label.lower()}; reconnect is offered once the stream stalls or drops.")
                        continue
                    controller.reconnect()
                elif cmd:
                    print("Commands: r = reconnect, q = quit")

        except KeyboardInterrupt:
            pass
        st = controller.status()

    if st is not None:
        log.info(
            "WATCH_DONE state=%s decoded=%d dropped=%d sessions=%d",
            st.state.value,
            st.frames_decoded,
            st.frames_dropped,
            controller.sessions_started,
        )
        print(f"Frames: decoded={st.frames_decoded} dropped={st.frames_dropped}")
    return 0
