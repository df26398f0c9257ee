# pharoskit/toolchain.py
"""
Toolchain invoker for the Pharos CLI.

Every external command (npm, npx, forge, cargo, git) is spawned through
:func:`run`. Output is inherited so the user sees the tool's own progress;
the function only classifies how the process ended:

- :class:`Success`     exit status 0
- :class:`Failure`     non-zero exit status
- :class:`Timeout`     deadline reached; the child was killed and reaped
- :class:`SpawnError`  the executable could not be started

Waiting is a single poll loop on ``Popen.wait`` in slices of at most
``tick_interval`` seconds, so a progress tick can be emitted while the child
runs without any background timer. Whichever of "child exited" and
"deadline reached" is observed first decides the result.

:func:`check` turns a non-success result into the matching
:mod:`pharoskit.errors` exception.
"""

from __future__ import annotations

import os
import re
import shlex
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

import click
from packaging.version import InvalidVersion, Version

from pharoskit.errors import (
    SubprocessFailure,
    Timeout as TimeoutError_,
    ToolchainMissing,
    ToolchainOutdated,
)
from pharoskit.log_manager import get_logger
from pharoskit.tools.definitions import AUTO_INSTALL, INSTALL_HINTS, MIN_TOOL_VERSIONS

__all__ = [
    "Success",
    "Failure",
    "Timeout",
    "SpawnError",
    "RunResult",
    "Runner",
    "run",
    "check",
    "format_command",
    "which",
    "require_tool",
    "require_version",
    "ensure_tool",
    "extract_version",
    "get_version_info",
    "dot_tick",
]

logger = get_logger(__name__)

REDACTED = "***"

_VERSION_RE = re.compile(r"(\d+\.\d+(?:\.\d+)?)")

#: Timed runs get their own process group so a timeout also reaches
#: grandchildren (e.g. hardhat under `npx`).
_NEW_SESSION = os.name == "posix"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    exit_code: int
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Timeout:
    elapsed: float

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class SpawnError:
    reason: str

    @property
    def ok(self) -> bool:
        return False


RunResult = Union[Success, Failure, Timeout, SpawnError]

#: Signature shared by :func:`run` and the fakes used in tests.
Runner = Callable[..., RunResult]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_command(command: str, args: Sequence[str] = (), redact: Iterable[str] = ()) -> str:
    """Render a command line for display with secret values masked."""
    secrets = {s for s in redact if s}
    parts = [command] + [REDACTED if a in secrets else a for a in args]
    return " ".join(shlex.quote(p) if p != REDACTED else p for p in parts)


def dot_tick(_elapsed: float) -> None:
    """Default liveness tick: one dot per interval on stderr."""
    click.echo(".", nl=False, err=True)


def which(tool: str) -> Optional[str]:
    """Wrapper for shutil.which, isolated for monkeypatching in tests."""
    return shutil.which(tool)


def _terminate(proc: subprocess.Popen, group: bool = False) -> None:
    """Kill ``proc`` (and its whole process group when ``group``) and reap it."""
    if group:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass
    if proc.poll() is not None:
        return
    proc.kill()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s did not exit after SIGKILL", proc.pid)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def run(
    command: str,
    args: Sequence[str] = (),
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
    tick: Optional[Callable[[float], None]] = None,
    tick_interval: float = 1.0,
    redact: Iterable[str] = (),
) -> RunResult:
    """Run one external command and classify its outcome.

    Parameters
    ----------
    command
        Executable name or path.
    args
        Arguments passed verbatim (no shell).
    cwd
        Working directory for the child. The parent's cwd is never changed.
    timeout
        Seconds before the child is killed. ``None`` waits forever. On POSIX
        a timed child runs in its own session and the deadline kills the
        whole process group, so tools spawned by it die too.
    tick
        Called with the elapsed seconds once per ``tick_interval`` while the
        child is running.
    redact
        Argument values to mask when the command line is logged.

    Returns
    -------
    RunResult
        One of :class:`Success`, :class:`Failure`, :class:`Timeout`,
        :class:`SpawnError`.
    """
    display = format_command(command, args, redact)
    logger.info("Running %s (cwd=%s, timeout=%s)", display, cwd or ".", timeout)

    group = _NEW_SESSION and timeout is not None
    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            [command, *args],
            cwd=str(cwd) if cwd else None,
            start_new_session=group,
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as exc:
        logger.info("Could not start %s: %s", command, exc)
        return SpawnError(f"{command}: {exc.strerror or exc}")

    deadline = started + timeout if timeout is not None else None
    next_tick = started + tick_interval

    try:
        while True:
            now = time.monotonic()
            if deadline is not None and now >= deadline:
                _terminate(proc, group)
                elapsed = time.monotonic() - started
                logger.warning("%s timed out after %.1fs", display, elapsed)
                return Timeout(elapsed)

            wait_until = next_tick
            if deadline is not None:
                wait_until = min(wait_until, deadline)
            try:
                returncode = proc.wait(timeout=max(wait_until - now, 0.0))
            except subprocess.TimeoutExpired:
                now = time.monotonic()
                if tick is not None and now >= next_tick:
                    tick(now - started)
                if now >= next_tick:
                    next_tick += tick_interval
                continue

            elapsed = time.monotonic() - started
            logger.info("%s exited with %s after %.1fs", display, returncode, elapsed)
            if returncode == 0:
                return Success(elapsed)
            return Failure(returncode, elapsed)
    except BaseException:
        # KeyboardInterrupt and friends must not leave an orphaned child.
        _terminate(proc, group)
        raise


def check(result: RunResult, command: str, hint: str = "") -> None:
    """Raise the matching error for a non-success :class:`RunResult`."""
    if isinstance(result, Success):
        return
    if isinstance(result, Failure):
        raise SubprocessFailure(command, result.exit_code, hint)
    if isinstance(result, Timeout):
        raise TimeoutError_(command, result.elapsed)
    tool = command.split()[0] if command else command
    raise ToolchainMissing(tool, INSTALL_HINTS.get(tool, result.reason))


def require_tool(tool: str) -> str:
    """Return the resolved path of ``tool`` or raise :class:`ToolchainMissing`."""
    path = which(tool)
    if not path:
        raise ToolchainMissing(tool, INSTALL_HINTS.get(tool, ""))
    return path


def extract_version(output: str) -> Optional[str]:
    """Return the first ``X.Y[.Z]`` token in ``output``."""
    match = _VERSION_RE.search(output or "")
    return match.group(1) if match else None


def get_version_info(path: str) -> Optional[str]:
    """Run ``<path> --version`` and return the parsed version, if any."""
    try:
        proc = subprocess.run(
            [path, "--version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    return extract_version(proc.stdout)


def require_version(tool: str) -> str:
    """Like :func:`require_tool`, but also enforce ``MIN_TOOL_VERSIONS``.

    A version that cannot be determined is accepted and logged.

    Raises
    ------
    ToolchainMissing
        If the binary is not on PATH.
    ToolchainOutdated
        If it reports a version below the supported minimum.
    """
    path = require_tool(tool)
    minimum = MIN_TOOL_VERSIONS.get(tool)
    if minimum is None:
        return path
    version = get_version_info(path)
    if version is None:
        logger.info("Could not determine the %s version; assuming >= %s", tool, minimum)
        return path
    try:
        too_old = Version(version) < Version(minimum)
    except InvalidVersion:
        logger.warning("Unparseable %s version %r", tool, version)
        return path
    if too_old:
        raise ToolchainOutdated(tool, version, minimum, INSTALL_HINTS.get(tool, ""))
    return path


def ensure_tool(tool: str, runner: Runner = run) -> str:
    """Like :func:`require_tool`, but try one automatic install first.

    Only tools listed in ``AUTO_INSTALL`` are installed; everything else
    fails immediately. A failed install, or a tool still missing afterwards,
    raises :class:`ToolchainMissing`.
    """
    path = which(tool)
    if path:
        return path
    if tool not in AUTO_INSTALL:
        raise ToolchainMissing(tool, INSTALL_HINTS.get(tool, ""))

    installer, installer_args = AUTO_INSTALL[tool]
    require_tool(installer)
    click.secho(f"📦 Installing {tool}...", fg="blue")
    result = runner(installer, list(installer_args))
    if not isinstance(result, Success):
        logger.warning("Automatic install of %s failed: %s", tool, result)
        raise ToolchainMissing(tool, f"Failed to install {tool}.\n{INSTALL_HINTS.get(tool, '')}")
    return require_tool(tool)
