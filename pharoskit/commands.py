# pharoskit/commands.py
"""
Command dispatcher for ``compile``, ``deploy`` and ``test``.

Each entry point receives an already-loaded :class:`ProjectConfig`, the
project root and a runner (defaults to :func:`pharoskit.toolchain.run`),
branches on the closed contract-type / framework enums and runs the
matching toolchain command inside the contract directory.

Nothing here prompts. ``deploy_project`` takes a zero-argument callable that
produces the :class:`DeploymentRequest`; it is called only after the
pre-flight checks pass, so a user is never asked for a private key when the
deployment could not happen anyway.

Toolchain commands
------------------
============================  ===========================================
Stack                         compile / deploy / test
============================  ===========================================
Solidity (EVM) + Hardhat      npx hardhat compile / ignition deploy / test
Solidity (EVM) + Foundry      forge build / forge create / forge test
Rust (WASM)                   cargo contract build / instantiate / cargo test
============================  ===========================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import click

from pharoskit import toolchain
from pharoskit.config import ContractType, Framework, ProjectConfig, Settings, load_settings
from pharoskit.errors import ArtifactMissing, ManifestMissing
from pharoskit.log_manager import get_logger
from pharoskit.network import (
    EVM_PROBE_METHOD,
    SUBSTRATE_PROBE_METHOD,
    probe_rpc,
    resolve_rpc_url,
)
from pharoskit.tools.definitions import INK_DEPENDENCIES, CrateDependency

__all__ = [
    "DeploymentRequest",
    "CONTRACT_DIRS",
    "HARDHAT_NETWORK",
    "find_contract_dir",
    "find_manifest",
    "find_wasm_artifact",
    "missing_ink_dependencies",
    "compile_project",
    "deploy_project",
    "run_tests",
]

logger = get_logger(__name__)

#: Candidate contract directories, in lookup order.
CONTRACT_DIRS: Tuple[str, ...] = ("smart-contract", "contract")

#: Network name configured in the Hardhat template.
HARDHAT_NETWORK = "pharos"

#: Build output locations of `cargo contract build`, newest layout first.
WASM_ARTIFACT_DIRS: Tuple[str, ...] = (
    "target/ink",
    "target/wasm32-unknown-unknown/release",
)

_MANIFESTS = {
    Framework.HARDHAT: ("hardhat.config.ts", "hardhat.config.js"),
    Framework.FOUNDRY: ("foundry.toml",),
    ContractType.RUST_WASM: ("Cargo.toml",),
}

_COMPILE_FIRST = "Rust contract not compiled. Run `configure-pharos compile` first."


@dataclass
class DeploymentRequest:
    """Inputs for one ``deploy`` invocation. Never persisted or logged.

    ``secret`` is the Foundry private key or the ink! signer URI; Hardhat
    reads its key from the contract's ``.env`` and leaves it empty.
    """

    secret: str = field(default="", repr=False)
    target: str = ""
    constructor_args: List[str] = field(default_factory=list)
    deployment_id: Optional[str] = None
    confirmed: bool = False


# ---------------------------------------------------------------------------
# Project layout helpers
# ---------------------------------------------------------------------------


def find_contract_dir(root: Path) -> Path:
    """Return the contract directory under ``root``.

    Raises
    ------
    ManifestMissing
        If none of :data:`CONTRACT_DIRS` exists.
    """
    for name in CONTRACT_DIRS:
        candidate = root / name
        if candidate.is_dir():
            return candidate
    expected = " or ".join(f"'{d}'" for d in CONTRACT_DIRS)
    raise ManifestMissing(f"Could not find contract directory. Expected either {expected}.")


def _stack_key(config: ProjectConfig):
    if config.contract_type is ContractType.RUST_WASM:
        return ContractType.RUST_WASM
    return config.framework


def find_manifest(config: ProjectConfig, contract_dir: Path) -> Path:
    """Return the build manifest of ``config``'s stack inside ``contract_dir``.

    Raises
    ------
    ManifestMissing
        If no recognized manifest exists.
    """
    names = _MANIFESTS[_stack_key(config)]
    for name in names:
        candidate = contract_dir / name
        if candidate.is_file():
            return candidate
    raise ManifestMissing(
        f"{' / '.join(names)} not found in {contract_dir}. "
        "Please ensure you have a valid contract setup."
    )


def find_wasm_artifact(contract_dir: Path) -> Optional[Path]:
    """Return the first existing ink! build output directory, if any."""
    for rel in WASM_ARTIFACT_DIRS:
        candidate = contract_dir / rel
        if candidate.is_dir():
            return candidate
    return None


def _require_wasm_artifact(contract_dir: Path) -> Path:
    artifact = find_wasm_artifact(contract_dir)
    if artifact is None:
        raise ArtifactMissing(_COMPILE_FIRST)
    return artifact


def _dependency_declared(cargo_toml: str, dep: CrateDependency) -> bool:
    name = re.escape(dep.name)
    version = re.escape(dep.version)
    inline = rf"(?m)^\s*{name}\s*=\s*[\"']?\^?{version}"
    table = rf"(?m)^\s*{name}\s*=\s*\{{[^}}]*version\s*=\s*[\"']\^?{version}"
    return bool(re.search(inline, cargo_toml) or re.search(table, cargo_toml))


def missing_ink_dependencies(cargo_toml: str) -> List[CrateDependency]:
    """Return the ink! crates not yet declared at the expected versions."""
    return [dep for dep in INK_DEPENDENCIES if not _dependency_declared(cargo_toml, dep)]


def _invoke(
    runner: toolchain.Runner,
    command: str,
    args: Sequence[str],
    cwd: Path,
    hint: str = "",
    redact: Sequence[str] = (),
    **kwargs,
) -> None:
    display = toolchain.format_command(command, args, redact)
    click.secho(f"▶️  {display}", fg="blue")

    tick = kwargs.pop("tick", None)
    ticks = 0
    if tick is not None:
        def counting_tick(elapsed: float) -> None:
            nonlocal ticks
            ticks += 1
            tick(elapsed)

        kwargs["tick"] = counting_tick
    try:
        result = runner(command, list(args), cwd=cwd, redact=list(redact), **kwargs)
    finally:
        # Close the line of progress dots before anything else is printed.
        if ticks:
            click.echo(err=True)
    toolchain.check(result, display, hint)


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------


def compile_project(
    config: ProjectConfig,
    root: Path,
    runner: toolchain.Runner = toolchain.run,
) -> None:
    """Compile the project's contracts with its stack's toolchain."""
    click.secho(f"\n⚙️  Compiling {config.label}...\n", fg="blue")
    contract_dir = find_contract_dir(root)
    manifest = find_manifest(config, contract_dir)

    if config.contract_type is ContractType.RUST_WASM:
        _compile_rust(contract_dir, manifest, runner)
        return

    if config.framework is Framework.HARDHAT:
        toolchain.require_version("npx")
        _invoke(runner, "npx", ["hardhat", "compile"], contract_dir)
    else:
        toolchain.require_version("forge")
        _invoke(runner, "forge", ["build"], contract_dir)
    click.secho(f"\n✅ {config.framework.value} compilation complete!", fg="green")


def _compile_rust(contract_dir: Path, manifest: Path, runner: toolchain.Runner) -> None:
    click.secho("\n🔨 Building Rust WASM contract...\n", fg="blue")
    toolchain.require_version("cargo")
    toolchain.ensure_tool("cargo-contract", runner=runner)

    click.secho("Checking dependencies...", fg="blue")
    for dep in missing_ink_dependencies(manifest.read_text(encoding="utf-8")):
        click.secho(f"Adding missing dependency: {dep.name}@{dep.version}", fg="yellow")
        _invoke(runner, "cargo", ["add", *dep.cargo_add_args()], contract_dir)

    click.secho("\n🏗  Building contract...", fg="blue")
    _invoke(
        runner,
        "cargo",
        ["contract", "build"],
        contract_dir,
        hint=f"Try running these commands manually:\n  cd {contract_dir}\n  cargo contract build",
    )
    click.secho("\n✅ Rust WASM compilation complete!", fg="green")
    click.secho("Your .wasm file is in the target/ink/ directory", fg="blue")


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------


def deploy_project(
    config: ProjectConfig,
    root: Path,
    request_factory: Callable[[], DeploymentRequest],
    runner: toolchain.Runner = toolchain.run,
    settings: Optional[Settings] = None,
    tick: Optional[Callable[[float], None]] = toolchain.dot_tick,
) -> None:
    """Deploy the project's contract.

    Order: contract directory → manifest → build artifact (Rust) → toolchain binary →
    RPC probe → ``request_factory()`` → toolchain command with the deploy
    timeout and a 1-second progress tick.
    """
    settings = settings or load_settings()
    click.secho(f"\n🚀 Deploying {config.label}...\n", fg="blue")
    contract_dir = find_contract_dir(root)
    is_wasm = config.contract_type is ContractType.RUST_WASM
    rpc_url = resolve_rpc_url(
        contract_dir, settings.wasm_rpc_url if is_wasm else settings.rpc_url
    )
    run_opts = {"timeout": settings.deploy_timeout, "tick": tick}
    find_manifest(config, contract_dir)

    if is_wasm:
        _require_wasm_artifact(contract_dir)
        toolchain.require_version("cargo")
        toolchain.require_version("cargo-contract")
        probe_rpc(rpc_url, SUBSTRATE_PROBE_METHOD, timeout=settings.probe_timeout)
        request = request_factory()
        args = ["contract", "instantiate", "--constructor", request.target or "new"]
        if request.constructor_args:
            args += ["--args", *request.constructor_args]
        args += ["--suri", request.secret, "--url", rpc_url, "--execute"]
        _invoke(runner, "cargo", args, contract_dir, redact=[request.secret], **run_opts)
        click.secho("\n✅ Rust WASM contract deployed successfully!\n", fg="green")
        return

    if config.framework is Framework.HARDHAT:
        toolchain.require_version("npx")
        chain_id = probe_rpc(rpc_url, EVM_PROBE_METHOD, timeout=settings.probe_timeout)
        logger.info("RPC %s reachable (chain id %s)", rpc_url, chain_id)
        request = request_factory()
        args = ["hardhat", "ignition", "deploy", request.target, "--network", HARDHAT_NETWORK]
        if request.deployment_id:
            args += ["--deployment-id", request.deployment_id]
        _invoke(runner, "npx", args, contract_dir, **run_opts)
    else:
        toolchain.require_version("forge")
        chain_id = probe_rpc(rpc_url, EVM_PROBE_METHOD, timeout=settings.probe_timeout)
        logger.info("RPC %s reachable (chain id %s)", rpc_url, chain_id)
        request = request_factory()
        args = [
            "create",
            "--rpc-url", rpc_url,
            "--private-key", request.secret,
            "--broadcast",
            request.target,
        ]
        if request.constructor_args:
            args += ["--constructor-args", *request.constructor_args]
        _invoke(runner, "forge", args, contract_dir, redact=[request.secret], **run_opts)
    click.secho(f"\n✅ Contract deployed with {config.framework.value}!\n", fg="green")


# ---------------------------------------------------------------------------
# test
# ---------------------------------------------------------------------------


def run_tests(
    config: ProjectConfig,
    root: Path,
    runner: toolchain.Runner = toolchain.run,
) -> None:
    """Run the stack's test suite."""
    click.secho("\n🛠 Running smart contract tests...\n", fg="blue")
    contract_dir = find_contract_dir(root)
    find_manifest(config, contract_dir)

    if config.contract_type is ContractType.RUST_WASM:
        click.secho("🔍 Testing Rust (WASM)...", fg="yellow")
        _require_wasm_artifact(contract_dir)
        toolchain.require_version("cargo")
        _invoke(runner, "cargo", ["test", "--all"], contract_dir)
    elif config.framework is Framework.HARDHAT:
        click.secho("🔍 Testing Solidity (Hardhat)...", fg="yellow")
        toolchain.require_version("npx")
        _invoke(runner, "npx", ["hardhat", "test"], contract_dir)
    else:
        click.secho("🔍 Testing Solidity (Foundry)...", fg="yellow")
        toolchain.require_version("forge")
        _invoke(runner, "forge", ["test"], contract_dir)
    click.secho("\n✅ All tests executed!\n", fg="green")

