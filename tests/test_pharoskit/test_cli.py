"""
End-to-end tests for the `configure-pharos` Click group.

The CLI runs in a temporary cwd with questionary, the toolchain runner,
PATH lookups and the RPC probe all replaced by fakes.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import pharoskit.cli as sut
import pharoskit.commands as commands
from pharoskit import __version__


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def probe(monkeypatch):
    calls = []
    monkeypatch.setattr(commands, "probe_rpc", lambda url, *a, **k: calls.append(url) or 688688)
    return calls


def _init(cli_runner, answers, *values):
    answers(*values)
    result = cli_runner.invoke(sut.cli, ["init"])
    assert result.exit_code == 0, result.output
    return result


def test_version(cli_runner):
    result = cli_runner.invoke(sut.cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands(cli_runner):
    result = cli_runner.invoke(sut.cli, ["--help"])
    assert result.exit_code == 0
    for name in ("init", "compile", "deploy", "test", "doctor"):
        assert name in result.output


@pytest.mark.parametrize("command", ["compile", "deploy", "test"])
def test_commands_require_config(cli_runner, project_root, fake_runner, tools_on_path, command):
    result = cli_runner.invoke(sut.cli, [command])
    assert result.exit_code == 1
    assert "configure-pharos init" in result.output
    assert fake_runner.calls == []


def test_init_then_compile_foundry(cli_runner, project_root, fake_runner, tools_on_path, answers, monkeypatch):
    result = _init(cli_runner, answers, "my-dapp", "Solidity (EVM)", "Foundry", "None")
    assert "cd my-dapp" in result.output

    project_dir = project_root / "my-dapp"
    saved = json.loads((project_dir / "pharos-config.json").read_text(encoding="utf-8"))
    assert saved == {
        "projectName": "my-dapp",
        "contractType": "Solidity (EVM)",
        "framework": "Foundry",
        "frontend": "None",
    }
    assert not (project_dir / "frontend").exists()

    monkeypatch.chdir(project_dir)
    result = cli_runner.invoke(sut.cli, ["compile"])
    assert result.exit_code == 0, result.output
    assert fake_runner.lines[-1] == "forge build"


def test_init_then_deploy_hardhat(cli_runner, project_root, fake_runner, tools_on_path, answers, probe, monkeypatch):
    _init(cli_runner, answers, "hh", "Solidity (EVM)", "Hardhat", "React (Vite)")
    project_dir = project_root / "hh"
    assert (project_dir / "frontend" / "src" / "App.jsx").is_file()

    monkeypatch.chdir(project_dir)
    answers("", "", True)
    result = cli_runner.invoke(sut.cli, ["deploy"])
    assert result.exit_code == 0, result.output
    assert fake_runner.lines[-1] == (
        "npx hardhat ignition deploy ignition/modules/Contract.ts --network pharos"
    )
    assert len(probe) == 1


def test_deploy_declined_exits_zero(cli_runner, project_root, fake_runner, tools_on_path, answers, probe, monkeypatch):
    _init(cli_runner, answers, "fd", "Solidity (EVM)", "Foundry", "None")
    monkeypatch.chdir(project_root / "fd")
    installs = len(fake_runner.calls)

    answers("0xkey", "", "", False)
    result = cli_runner.invoke(sut.cli, ["deploy"])
    assert result.exit_code == 0
    assert "cancelled" in result.output
    assert len(fake_runner.calls) == installs


def test_deploy_rust_before_compile(cli_runner, project_root, fake_runner, tools_on_path, answers, probe, monkeypatch):
    _init(cli_runner, answers, "ink", "Rust (WASM)", "None")
    project_dir = project_root / "ink"
    (project_dir / "smart-contract" / "Cargo.toml").write_text("[package]\n", encoding="utf-8")
    monkeypatch.chdir(project_dir)

    result = cli_runner.invoke(sut.cli, ["deploy"])
    assert result.exit_code == 1
    assert "not compiled" in result.output
    assert probe == []


def test_init_ctrl_c_exits_zero(cli_runner, project_root, fake_runner, answers):
    answers(None)
    result = cli_runner.invoke(sut.cli, ["init"])
    assert result.exit_code == 0
    assert list(project_root.iterdir()) == []


def test_unexpected_error_is_reported(cli_runner, project_root, monkeypatch):
    (project_root / "pharos-config.json").write_text(
        json.dumps({"projectName": "x", "contractType": "Rust (WASM)"}), encoding="utf-8"
    )

    def boom(*_a, **_k):
        raise RuntimeError("boom")

    monkeypatch.setattr(sut, "compile_project", boom)
    result = cli_runner.invoke(sut.cli, ["compile"])
    assert result.exit_code == 1
    assert "Unexpected error: boom" in result.output


def test_unsupported_config_exits_one(cli_runner, project_root, fake_runner):
    (project_root / "pharos-config.json").write_text(
        json.dumps({"projectName": "x", "contractType": "Move"}), encoding="utf-8"
    )
    result = cli_runner.invoke(sut.cli, ["test"])
    assert result.exit_code == 1
    assert fake_runner.calls == []


def test_bad_timeout_does_not_break_init_or_doctor(cli_runner, project_root, fake_runner, tools_on_path, answers, monkeypatch):
    import pharoskit.doctor as doctor_module

    monkeypatch.setenv("PHAROS_DEPLOY_TIMEOUT", "soon")
    monkeypatch.setattr(doctor_module, "get_version_info", lambda path: None)

    result = cli_runner.invoke(sut.cli, ["doctor"])
    assert result.exit_code == 0, result.output

    _init(cli_runner, answers, "ink", "Rust (WASM)", "None")
    assert (project_root / "ink" / "pharos-config.json").is_file()


def test_bad_timeout_fails_deploy(cli_runner, project_root, fake_runner, tools_on_path, probe, monkeypatch):
    (project_root / "pharos-config.json").write_text(
        json.dumps({"projectName": "x", "contractType": "Solidity (EVM)", "framework": "Foundry"}),
        encoding="utf-8",
    )
    monkeypatch.setenv("PHAROS_DEPLOY_TIMEOUT", "soon")
    result = cli_runner.invoke(sut.cli, ["deploy"])
    assert result.exit_code == 1
    assert "PHAROS_DEPLOY_TIMEOUT" in result.output
    assert probe == []
    assert fake_runner.calls == []


@pytest.mark.parametrize("name", ["../escape", "/tmp/pharos-escape"])
def test_init_rejects_path_names(cli_runner, project_root, fake_runner, tools_on_path, answers, name):
    answers(name, "Rust (WASM)", "None")
    result = cli_runner.invoke(sut.cli, ["init"])
    assert result.exit_code == 1
    assert "single folder name" in result.output
    assert list(project_root.iterdir()) == []
    assert not (project_root.parent / "escape").exists()
    assert fake_runner.calls == []
