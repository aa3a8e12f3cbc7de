import signal
import subprocess
import sys
from pathlib import Path

import pytest

import tools.run_motion_pipeline as cli
from capture.reader import NullSource
from sidecar.reader import SidecarReader

ROOT = Path(__file__).resolve().parents[1]


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "tools.run_motion_pipeline", *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
    )


def test_help_exits_zero():
    proc = _run("--help")
    assert proc.returncode == 0
    assert "usage" in proc.stdout.lower()


def test_unopenable_source_exits_nonzero(tmp_path: Path):
    proc = _run(str(tmp_path / "missing.mp4"), "--headless")
    assert proc.returncode == 1
    assert "Cannot open video" in proc.stderr


def test_null_source_headless_run(tmp_path: Path):
    events = tmp_path / "events.jsonl"
    proc = _run(
        "--prefer",
        "null",
        "--headless",
        "--max-frames",
        "10",
        "--motion-dir",
        str(tmp_path / "motion"),
        "--shock-dir",
        str(tmp_path / "shock"),
        "--event-log",
        str(events),
    )
    assert proc.returncode == 0, proc.stderr
    assert (tmp_path / "motion").is_dir()
    assert (tmp_path / "shock").is_dir()
    # Black frames never trigger.
    assert events.exists() and list(SidecarReader(events)) == []
    assert "analysed=10" in proc.stderr


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal delivery")
def test_sigterm_stops_cli_gracefully(tmp_path: Path):
    proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "tools.run_motion_pipeline",
            "--prefer",
            "null",
            "--headless",
            "--max-frames",
            "10000000",
            "--motion-dir",
            str(tmp_path / "motion"),
            "--shock-dir",
            str(tmp_path / "shock"),
        ],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        cwd=ROOT,
    )
    try:
        # The handler is installed before this line is logged.
        for line in proc.stderr:
            if "Detecting on" in line:
                break
        else:
            pytest.fail("pipeline never started")
        proc.send_signal(signal.SIGTERM)
        proc.wait(timeout=30)
        rest = proc.stderr.read()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert proc.returncode == 0
    assert "Stopped (terminated)" in rest


class _TrackedNullSource(NullSource):
    def __init__(self) -> None:
        super().__init__(width=32, height=24, length=10)
        self.close_calls = 0

    def close(self) -> None:
        super().close()
        self.close_calls += 1


def test_source_released_when_setup_fails(monkeypatch):
    src = _TrackedNullSource()

    def _boom(self) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(cli.ReaderFactory, "from_config", staticmethod(lambda cfg: src))
    monkeypatch.setattr(cli.Recorder, "ensure_dirs", _boom)

    with pytest.raises(PermissionError):
        cli.main(["--prefer", "null", "--headless"])
    assert src.closed and src.close_calls == 1
