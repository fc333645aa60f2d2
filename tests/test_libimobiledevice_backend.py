import sys
import textwrap

import pytest

from capture.exceptions import ToolsetError
from capture.libimobiledevice_backend import LibimobiledeviceBackend
from capture.orchestrator import CaptureOrchestrator
from models.config import OutputConfig, ToolsetConfig

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses shell script stand-ins")


def make_tool(bin_dir, name, body):
    path = bin_dir / name
    path.write_text("#!/bin/sh\n" + textwrap.dedent(body), encoding="utf-8")
    path.chmod(0o755)
    return path


def test_missing_executable_raises(tmp_path):
    backend = LibimobiledeviceBackend(bin_dir=tmp_path)
    with pytest.raises(ToolsetError) as ei:
        backend.list_devices()
    assert "idevice_id" in str(ei.value)


@posix_only
def test_list_devices_parses_lines(tmp_path):
    make_tool(tmp_path, "idevice_id", """\
        echo "00008030-001A2B3C4D5E802E"
        echo ""
        echo "00008101-000E1C2A3B4C5D6E"
    """)
    backend = LibimobiledeviceBackend(bin_dir=tmp_path)
    assert backend.list_devices() == ["00008030-001A2B3C4D5E802E", "00008101-000E1C2A3B4C5D6E"]


@posix_only
def test_list_devices_empty(tmp_path):
    make_tool(tmp_path, "idevice_id", "exit 0\n")
    assert LibimobiledeviceBackend(bin_dir=tmp_path).list_devices() == []


@posix_only
def test_list_devices_failure_raises(tmp_path):
    make_tool(tmp_path, "idevice_id", "echo 'ERROR: Unable to retrieve device list!' >&2\nexit 1\n")
    with pytest.raises(ToolsetError):
        LibimobiledeviceBackend(bin_dir=tmp_path).list_devices()


@posix_only
def test_dump_info_returns_status_and_keeps_output(tmp_path):
    make_tool(tmp_path, "ideviceinfo", "echo 'DeviceName: Test'\nexit 3\n")
    out = tmp_path / "info.txt"
    with open(out, "wb") as f:
        status = LibimobiledeviceBackend(bin_dir=tmp_path).dump_info(f)
    assert status == 3
    assert out.read_text(encoding="utf-8") == "DeviceName: Test\n"


@posix_only
def test_diagnostics_and_crash_report_arguments(tmp_path):
    make_tool(tmp_path, "idevicediagnostics", 'echo "$@"\n')
    make_tool(tmp_path, "idevicecrashreport", 'touch "$2/args-$1"\n')
    backend = LibimobiledeviceBackend(bin_dir=tmp_path)

    out = tmp_path / "diag.txt"
    with open(out, "wb") as f:
        assert backend.run_diagnostics(f) == 0
    assert out.read_text(encoding="utf-8").strip() == "diagnostics"

    crash_dir = tmp_path / "crash_reports"
    crash_dir.mkdir()
    assert backend.extract_crash_reports(crash_dir) == 0
    assert (crash_dir / "args--e").exists()


@posix_only
def test_stream_syslog_pipes_text(tmp_path):
    make_tool(tmp_path, "idevicesyslog", "echo 'kernel: hello'\n")
    proc = LibimobiledeviceBackend(bin_dir=tmp_path).stream_syslog(None)
    try:
        assert list(proc.stdout) == ["kernel: hello\n"]
    finally:
        proc.wait(timeout=5)
        proc.stdout.close()


@posix_only
def test_live_verbose_survives_invalid_utf8(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    make_tool(bin_dir, "idevice_id", "echo 00008030-001A2B3C4D5E802E\n")
    make_tool(bin_dir, "idevicesyslog", "printf 'ok line\\n\\377\\376 bad\\nafter\\n'\n")
    config = OutputConfig(
        live_root=tmp_path / "live",
        snapshot_root=tmp_path / "extracted",
        info_root=tmp_path / "device_info",
    )
    config.live_root.mkdir()
    console = []
    orch = CaptureOrchestrator(
        LibimobiledeviceBackend(bin_dir=bin_dir),
        config,
        ToolsetConfig(stop_grace_seconds=1.0),
        console=console.append,
    )

    session = orch.live(verbose=True)

    expected = ["ok line\n", "\ufffd\ufffd bad\n", "after\n"]
    log = (session.path / "iphone_syslog.log").read_text(encoding="utf-8")
    assert log == "".join(expected)
    assert console[1:] == expected
