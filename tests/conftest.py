from datetime import datetime
from pathlib import Path

import pytest

from capture.exceptions import ToolsetError
from capture.idevice_backend import IDeviceBackend
from models.config import OutputConfig, ToolsetConfig

UDID = "00008030-001A2B3C4D5E802E"


class FakeProcess:
    """Stand-in for subprocess.Popen driven by the test."""

    def __init__(self, lines=(), interrupt_on_wait=False, interrupt_after_lines=False):
        self.returncode = None
        self.terminated = False
        self.killed = False
        self._interrupt_on_wait = interrupt_on_wait
        self._lines = list(lines)
        self._interrupt_after_lines = interrupt_after_lines
        self.stdout = self._iter_lines()

    def _iter_lines(self):
        for line in self._lines:
            yield line
        if self._interrupt_after_lines:
            raise KeyboardInterrupt
        self.returncode = 0

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        if self.returncode is None and self._interrupt_on_wait:
            self._interrupt_on_wait = False
            raise KeyboardInterrupt
        if self.returncode is None:
            self.returncode = 0
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.returncode = -15

    def kill(self):
        self.killed = True
        self.returncode = -9


class FakeBackend(IDeviceBackend):
    def __init__(self,
                 devices=(UDID,),
                 syslog_lines=("Jan  1 12:00:00 iPhone kernel[0] <Notice>: hello\n",),
                 info=b"DeviceName: Test iPhone\nProductVersion: 17.2\n",
                 diagnostics=b"<plist><dict/></plist>\n",
                 statuses=None,
                 missing=()):
        self.devices = list(devices)
        self.syslog_lines = list(syslog_lines)
        self.info = info
        self.diagnostics = diagnostics
        self.statuses = dict(statuses or {})
        self.missing = set(missing)
        self.calls = []
        self.processes = []
        self.interrupt_live = True

    def _check(self, name):
        self.calls.append(name)
        if name in self.missing:
            raise ToolsetError(f"'{name}' not found in PATH")

    def list_devices(self):
        self._check("list_devices")
        return list(self.devices)

    def stream_syslog(self, stdout):
        self._check("stream_syslog")
        if stdout is None:
            proc = FakeProcess(self.syslog_lines, interrupt_after_lines=self.interrupt_live)
        else:
            for line in self.syslog_lines:
                stdout.write(line.encode("utf-8"))
            proc = FakeProcess(interrupt_on_wait=self.interrupt_live)
        self.processes.append(proc)
        return proc

    def dump_info(self, stdout):
        self._check("dump_info")
        status = self.statuses.get("dump_info", 0)
        if status == 0:
            stdout.write(self.info)
        return status

    def run_diagnostics(self, stdout):
        self._check("run_diagnostics")
        status = self.statuses.get("run_diagnostics", 0)
        if status == 0:
            stdout.write(self.diagnostics)
        return status

    def extract_crash_reports(self, directory):
        self._check("extract_crash_reports")
        status = self.statuses.get("extract_crash_reports", 0)
        if status == 0:
            (Path(directory) / "SpringBoard-2024-01-01-120000.ips").write_text("{}", encoding="utf-8")
        return status


class FixedClock:
    def __init__(self, when=datetime(2024, 1, 1, 12, 0, 0)):
        self.when = when

    def __call__(self):
        return self.when


@pytest.fixture
def output_config(tmp_path):
    config = OutputConfig(
        live_root=tmp_path / "live",
        snapshot_root=tmp_path / "extracted",
        info_root=tmp_path / "device_info",
    )
    for root in config.roots():
        root.mkdir()
    return config


@pytest.fixture
def toolset_config():
    return ToolsetConfig(sample_seconds=0.2, stop_grace_seconds=0.5)


@pytest.fixture
def fake_backend():
    return FakeBackend()
