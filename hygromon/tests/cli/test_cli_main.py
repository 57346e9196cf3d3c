from __future__ import annotations

import io
import sys

import pytest

from hygromon.cli.args import parse_args, param_flag
from hygromon.cli.main import main


def test_transports_lists_packaged_catalog(capsys):
    assert main(["transports"]) == 0
    out = capsys.readouterr().out

    assert "websocket (id=1, driver=websocket)" in out
    assert "key: --url" in out
    assert "--interval-s=1.0" in out


def test_decode_reports_ok_and_drop(capsys):
    rc = main(["decode", "Valor: 252 | Volts: 4.94", "garbage"])
    out = capsys.readouterr().out

    assert rc == 3
    assert "OK   adc=252" in out
    assert "rh=98.8%" in out
    assert "DROP 'garbage'" in out


def test_decode_all_valid_returns_zero(capsys):
    assert main(["decode", "Valor: 1 | Volts: 0.1"]) == 0


def test_decode_flags_out_of_range(capsys):
    main(["decode", "Valor: 5000 | Volts: 1.0"])
    assert "flags=adc_out_of_range" in capsys.readouterr().out


def test_unknown_transport_is_reported(capsys):
    rc = main(["watch", "--transport", "carrier-pigeon"])
    out = capsys.readouterr().out

    assert rc == 1
    assert "ERROR: Unknown transport 'carrier-pigeon'." in out
    assert "Hint:" in out


def test_missing_required_transport_param_exits():
    with pytest.raises(SystemExit):
        parse_args(["watch", "--transport", "uart"])


def test_parse_args_collects_only_given_overrides():
    args, ctx, type_id, overrides = parse_args(
        ["watch", "--transport", "uart", "--port", "/dev/ttyUSB0", "--baudrate", "115200", "--secs", "1"]
    )

    assert args.cmd == "watch"
    assert ctx.transports[type_id].label == "uart"
    assert overrides == {"port": "/dev/ttyUSB0", "baudrate": 115200}
    assert args.secs == 1.0
    assert args.stall_timeout_s == 10.0


def test_parse_args_bool_param():
    _, _, _, overrides = parse_args(
        ["watch", "--transport", "replay", "--path", "x.txt", "--loop", "yes"]
    )
    assert overrides["loop"] is True


def test_param_flag():
    assert param_flag("open_timeout_s") == "--open-timeout-s"


def test_watch_replay_file(tmp_path, monkeypatch, capsys):
    frames = tmp_path / "frames.txt"
    frames.write_text("Valor: 252 | Volts: 4.94\nnoise\nValor: 253 | Volts: 4.95\n", encoding="utf-8")
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))

    rc = main(
        [
            "watch",
            "--transport", "replay",
            "--path", str(frames),
            "--interval-s", "0",
            "--poll-s", "0.01",
            "--secs", "0.5",
        ]
    )
    out = capsys.readouterr().out

    assert rc == 0
    assert "Humidity Monitor" in out
    assert "Relative humidity : 98.8 %" in out
    assert "Frames: decoded=2 dropped=1" in out
    # replay end of file closes the stream
    assert "Status: Disconnected" in out


@pytest.mark.parametrize("flag", ["--stall-timeout-s", "--poll-s"])
@pytest.mark.parametrize("value", ["0", "-1", "nan", "soon"])
def test_watch_rejects_non_positive_timings(tmp_path, capsys, flag, value):
    frames = tmp_path / "frames.txt"
    frames.write_text("Valor: 1 | Volts: 0.1\n", encoding="utf-8")

    with pytest.raises(SystemExit) as ei:
        main(["watch", "--transport", "replay", "--path", str(frames), flag, value, "--secs", "0.1"])

    assert ei.value.code == 2
    assert flag in capsys.readouterr().err
