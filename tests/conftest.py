# tests/conftest.py
"""
Shared fixtures for the pharoskit test suite.

Everything here keeps tests hermetic:
- `project_root` chdirs into a fresh tmp dir.
- `fake_runner` records toolchain invocations instead of spawning processes.
- `tools_on_path` controls what `toolchain.which` reports, and
  `tool_versions` what those fake binaries answer to `--version`.
- `answers` replaces questionary prompts with queued answers.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

import pytest

from pharoskit import toolchain


class FakeRunner:
    """Stand-in for `toolchain.run` that records every call.

    `results` maps a command line prefix (e.g. "cargo contract build") to the
    RunResult to return; everything else succeeds.
    """

    def __init__(self) -> None:
        self.calls: List[SimpleNamespace] = []
        self.results: Dict[str, toolchain.RunResult] = {}
        self.side_effects: Dict[str, Any] = {}

    def __call__(self, command, args=(), cwd=None, **kwargs):
        args = list(args)
        self.calls.append(SimpleNamespace(command=command, args=args, cwd=cwd, kwargs=kwargs))
        line = " ".join([command, *args])
        for prefix, effect in self.side_effects.items():
            if line.startswith(prefix):
                effect(command, args, cwd)
        for prefix, result in self.results.items():
            if line.startswith(prefix):
                return result
        return toolchain.Success(0.0)

    @property
    def lines(self) -> List[str]:
        return [" ".join([c.command, *c.args]) for c in self.calls]


@pytest.fixture
def project_root(tmp_path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_runner(monkeypatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr(toolchain, "run", runner, raising=True)
    return runner


@pytest.fixture
def tool_versions() -> Dict[str, str]:
    """Tool name -> version reported by the fake binary (unknown if absent)."""
    return {}


@pytest.fixture
def tools_on_path(monkeypatch, tool_versions):
    """Call with the tool names that should be "installed"."""
    state = {"tools": set()}

    def fake_which(tool: str) -> Optional[str]:
        return f"/usr/bin/{tool}" if tool in state["tools"] else None

    def fake_version(path: str) -> Optional[str]:
        return tool_versions.get(Path(path).name)

    monkeypatch.setattr(toolchain, "which", fake_which, raising=True)
    monkeypatch.setattr(toolchain, "get_version_info", fake_version, raising=True)

    def _set(tools: Iterable[str]):
        state["tools"] = set(tools)
        return state["tools"]

    _set(["node", "npm", "npx", "git", "forge", "cargo", "cargo-contract"])
    return _set


@pytest.fixture
def answers(monkeypatch):
    """Queue answers for questionary.text/select/password/confirm.

    Usage: answers("my-app", "Rust (WASM)", "None")
    Answers are consumed in prompt order regardless of prompt kind.
    """
    import pharoskit.prompts as prompts

    queue: List[Any] = []
    asked: List[str] = []

    def factory(message, *_a, **_k):
        asked.append(message)

        def ask():
            if not queue:
                raise AssertionError(f"Unexpected prompt: {message}")
            return queue.pop(0)

        return SimpleNamespace(ask=ask)

    for kind in ("text", "select", "password", "confirm"):
        monkeypatch.setattr(prompts.questionary, kind, factory, raising=True)

    def _push(*values):
        queue.extend(values)
        return asked

    return _push


@pytest.fixture(autouse=True)
def no_rpc(monkeypatch):
    """Fail loudly if a test reaches the network without patching probe_rpc."""
    import requests

    def _blocked(*_a, **_k):
        raise AssertionError("network access attempted in tests")

    monkeypatch.setattr(requests, "post", _blocked, raising=True)
    yield


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers `configure()` attached during a test (they may hold a
    CliRunner stream that is closed afterwards)."""
    import logging

    from pharoskit.log_manager import ROOT_LOGGER

    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if hasattr(logger, "_pharos_stream_handler_attached"):
        del logger._pharos_stream_handler_attached
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
