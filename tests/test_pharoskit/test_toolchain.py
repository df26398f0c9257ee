"""
Tests for pharoskit.toolchain.

The invoker tests spawn real `sys.executable` children (fast, portable);
everything else uses fakes.

Covered behaviors:
- exit-code mapping: 0 → Success, 1 → Failure(1), missing binary → SpawnError
- timeout kills the child promptly and reports Timeout
- a timeout also kills processes the child started (POSIX)
- progress ticks while the child runs
- explicit working directory, no change to the parent's cwd
- redaction of secrets in displayed command lines
- check(): result → error taxonomy
- require_tool / require_version / ensure_tool (one automatic install attempt)
"""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import time

import pytest

import pharoskit.toolchain as sut
from pharoskit.errors import SubprocessFailure, Timeout, ToolchainMissing, ToolchainOutdated


def _py(code: str):
    return sys.executable, ["-c", code]


# ---------------------------------------------------------------------------
# run: exit status mapping
# ---------------------------------------------------------------------------

def test_exit_zero_is_success():
    cmd, args = _py("raise SystemExit(0)")
    result = sut.run(cmd, args)
    assert isinstance(result, sut.Success)
    assert result.ok


def test_exit_one_is_failure():
    cmd, args = _py("raise SystemExit(1)")
    result = sut.run(cmd, args)
    assert result == sut.Failure(exit_code=1, elapsed=result.elapsed)
    assert not result.ok


def test_missing_binary_is_spawn_error():
    result = sut.run("definitely-not-a-real-binary-pharos", ["--version"])
    assert isinstance(result, sut.SpawnError)
    assert "definitely-not-a-real-binary-pharos" in result.reason


# ---------------------------------------------------------------------------
# run: timeout & ticks
# ---------------------------------------------------------------------------

def test_timeout_kills_child(monkeypatch):
    spawned = []
    real_popen = subprocess.Popen

    def recording_popen(*a, **k):
        proc = real_popen(*a, **k)
        spawned.append(proc)
        return proc

    monkeypatch.setattr(sut.subprocess, "Popen", recording_popen)

    cmd, args = _py("import time; time.sleep(60)")
    started = time.monotonic()
    result = sut.run(cmd, args, timeout=0.1)
    waited = time.monotonic() - started

    assert isinstance(result, sut.Timeout)
    assert result.elapsed >= 0.1
    assert waited < 0.5
    assert spawned and spawned[0].poll() is not None


def _gone(pid: int) -> bool:
    """True once ``pid`` no longer exists or is only a zombie."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    try:
        with open(f"/proc/{pid}/stat", encoding="utf-8") as f:
            return f.read().rsplit(")", 1)[1].split()[0] == "Z"
    except OSError:
        return False


@pytest.mark.skipif(os.name != "posix", reason="process groups are POSIX only")
def test_timeout_kills_grandchildren(tmp_path):
    code = (
        "import subprocess, sys, time\n"
        "p = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)'])\n"
        "open('grandchild.pid', 'w').write(str(p.pid))\n"
        "time.sleep(60)\n"
    )
    cmd, args = _py(code)
    result = sut.run(cmd, args, cwd=tmp_path, timeout=1.0)
    assert isinstance(result, sut.Timeout)

    pid = int((tmp_path / "grandchild.pid").read_text())
    try:
        deadline = time.monotonic() + 3.0
        while not _gone(pid) and time.monotonic() < deadline:
            time.sleep(0.05)
        assert _gone(pid)
    finally:
        if not _gone(pid):
            os.kill(pid, signal.SIGKILL)


def test_ticks_while_waiting():
    ticks = []
    cmd, args = _py("import time; time.sleep(0.45)")
    result = sut.run(cmd, args, tick=ticks.append, tick_interval=0.1)
    assert isinstance(result, sut.Success)
    assert len(ticks) >= 2
    assert ticks == sorted(ticks)


def test_no_tick_after_timeout():
    ticks = []
    cmd, args = _py("import time; time.sleep(60)")
    result = sut.run(cmd, args, timeout=0.25, tick=ticks.append, tick_interval=0.1)
    assert isinstance(result, sut.Timeout)
    count = len(ticks)
    time.sleep(0.3)
    assert len(ticks) == count


# ---------------------------------------------------------------------------
# run: working directory
# ---------------------------------------------------------------------------

def test_runs_in_given_cwd_without_chdir(tmp_path):
    before = os.getcwd()
    cmd, args = _py("import os; open('where.txt', 'w').write(os.getcwd())")
    result = sut.run(cmd, args, cwd=tmp_path)
    assert isinstance(result, sut.Success)
    assert os.path.samefile((tmp_path / "where.txt").read_text(), tmp_path)
    assert os.getcwd() == before


def test_missing_cwd_is_spawn_error(tmp_path):
    cmd, args = _py("pass")
    result = sut.run(cmd, args, cwd=tmp_path / "missing")
    assert isinstance(result, sut.SpawnError)


# ---------------------------------------------------------------------------
# format_command / check
# ---------------------------------------------------------------------------

def test_format_command_redacts_secret():
    line = sut.format_command("forge", ["create", "--private-key", "0xsecret", "src/A.sol:A"], redact=["0xsecret"])
    assert "0xsecret" not in line
    assert "--private-key ***" in line


def test_format_command_quotes_spaces():
    assert sut.format_command("cargo", ["add", "a b"]) == "cargo add 'a b'"


def test_check_success_is_silent():
    sut.check(sut.Success(0.1), "forge build")


def test_check_failure_raises_with_exit_code():
    with pytest.raises(SubprocessFailure) as exc:
        sut.check(sut.Failure(3), "forge build", "try again")
    assert exc.value.returncode == 3
    assert "try again" in exc.value.format_message()


def test_check_timeout_raises():
    with pytest.raises(Timeout):
        sut.check(sut.Timeout(5.0), "npx hardhat ignition deploy")


def test_check_spawn_error_raises_toolchain_missing_with_hint():
    with pytest.raises(ToolchainMissing) as exc:
        sut.check(sut.SpawnError("forge: No such file"), "forge build")
    assert exc.value.tool == "forge"
    assert "foundryup" in exc.value.format_message()


# ---------------------------------------------------------------------------
# require_tool / require_version / ensure_tool
# ---------------------------------------------------------------------------

def test_require_tool(tools_on_path):
    tools_on_path(["forge"])
    assert sut.require_tool("forge") == "/usr/bin/forge"
    with pytest.raises(ToolchainMissing):
        sut.require_tool("cargo")


def test_ensure_tool_present_does_not_install(tools_on_path, fake_runner):
    tools_on_path(["cargo", "cargo-contract"])
    assert sut.ensure_tool("cargo-contract", runner=fake_runner)
    assert fake_runner.calls == []


def test_ensure_tool_installs_once(tools_on_path, fake_runner):
    installed = tools_on_path(["cargo"])
    fake_runner.side_effects["cargo install"] = lambda *_: installed.add("cargo-contract")
    assert sut.ensure_tool("cargo-contract", runner=fake_runner) == "/usr/bin/cargo-contract"
    assert fake_runner.lines == ["cargo install cargo-contract --force"]


def test_ensure_tool_install_failure(tools_on_path, fake_runner):
    tools_on_path(["cargo"])
    fake_runner.results["cargo install"] = sut.Failure(101)
    with pytest.raises(ToolchainMissing) as exc:
        sut.ensure_tool("cargo-contract", runner=fake_runner)
    assert "Failed to install" in exc.value.format_message()
    assert len(fake_runner.calls) == 1


def test_ensure_tool_still_missing_after_install(tools_on_path, fake_runner):
    tools_on_path(["cargo"])
    with pytest.raises(ToolchainMissing):
        sut.ensure_tool("cargo-contract", runner=fake_runner)
    assert len(fake_runner.calls) == 1


def test_ensure_tool_without_installer(tools_on_path, fake_runner):
    tools_on_path([])
    with pytest.raises(ToolchainMissing):
        sut.ensure_tool("forge", runner=fake_runner)
    assert fake_runner.calls == []


def test_require_version_rejects_old_forge(tools_on_path, tool_versions):
    tool_versions["forge"] = "0.2.0"
    with pytest.raises(ToolchainOutdated) as exc:
        sut.require_version("forge")
    assert isinstance(exc.value, ToolchainMissing)
    assert "0.2.0" in exc.value.format_message()
    assert "1.0" in exc.value.format_message()


def test_require_version_accepts_current_forge(tools_on_path, tool_versions):
    tool_versions["forge"] = "1.2.3"
    assert sut.require_version("forge") == "/usr/bin/forge"


def test_require_version_accepts_unknown_version(tools_on_path):
    assert sut.require_version("forge") == "/usr/bin/forge"


def test_require_version_without_minimum(tools_on_path, tool_versions):
    tool_versions["npx"] = "0.0.1"
    assert sut.require_version("npx") == "/usr/bin/npx"


def test_require_version_missing_binary(tools_on_path):
    tools_on_path([])
    with pytest.raises(ToolchainMissing):
        sut.require_version("forge")


@pytest.mark.parametrize(
    "output, expected",
    [("forge Version: 1.0.0-stable", "1.0.0"), ("forge 0.2.0 (5be158b 2024-06-01)", "0.2.0")],
)
def test_extract_forge_versions(output, expected):
    assert sut.extract_version(output) == expected
