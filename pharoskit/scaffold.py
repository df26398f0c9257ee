# pharoskit/scaffold.py
"""
Project scaffolding for ``configure-pharos init``.

Given a :class:`ProjectConfig`, materialize a working project skeleton:

- ``<project>/smart-contract/`` from the stack's template tree
- the stack's dependency install (``npm install``, ``forge install``,
  ``cargo init --lib``)
- a ``.env`` with placeholder RPC URL / private key / explorer API fields
  (Solidity stacks; an existing ``.env`` is left untouched)
- ``<project>/frontend/`` from the chosen frontend template
- ``<project>/pharos-config.json`` once everything above succeeded

Failure policy
--------------
A failing installer aborts ``init``; directories already created are not
rolled back. A remote template is cloned into a temporary directory that is
removed whether the copy succeeds or not.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

import click

from pharoskit import config as config_store
from pharoskit import toolchain
from pharoskit.config import (
    ContractType,
    Framework,
    Frontend,
    ProjectConfig,
    Settings,
    load_settings,
)
from pharoskit.errors import FileSystemError
from pharoskit.log_manager import get_logger
from pharoskit.tools.definitions import STACK_TOOLS

__all__ = [
    "TEMPLATES_DIR",
    "CONTRACT_DIR_NAME",
    "FRONTEND_DIR_NAME",
    "FRONTEND_TEMPLATES",
    "ENV_TEMPLATE",
    "stack_key",
    "check_prerequisites",
    "copy_template",
    "fetch_remote_template",
    "write_env_file",
    "setup_solidity",
    "setup_rust",
    "setup_frontend",
    "scaffold_project",
]

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
CONTRACT_DIR_NAME = "smart-contract"
FRONTEND_DIR_NAME = "frontend"

FRONTEND_TEMPLATES = {
    Frontend.REACT_VITE: "my-vite-app",
    Frontend.VUE: "my-vue-app",
}

ENV_TEMPLATE = (
    "RPC_URL = {rpc_url}\n"
    "WALLET_PRIVATE_KEY = YOUR_WALLET_PRIVATE_KEY\n"
    "PHAROS_EXPLORER_API = \n"
)

_IGNORED = {".git", "__pycache__"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def stack_key(config: ProjectConfig) -> str:
    """Key of ``config``'s stack in :data:`STACK_TOOLS`."""
    if config.framework is None:
        return config.contract_type.value
    return f"{config.contract_type.value}/{config.framework.value}"


def check_prerequisites(config: ProjectConfig) -> None:
    """Verify the stack's binaries are on PATH, and recent enough, before
    anything is written."""
    for tool in STACK_TOOLS[stack_key(config)]:
        toolchain.require_version(tool)


def copy_template(source: Path, destination: Path) -> List[Path]:
    """Recursively copy ``source``'s contents into ``destination``.

    Existing files in ``destination`` are overwritten; other files are kept.

    Returns
    -------
    list of Path
        Copied files, relative to ``destination``.
    """
    if not source.is_dir():
        raise FileSystemError(f"Template not found: {source}")
    try:
        shutil.copytree(
            source,
            destination,
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(*_IGNORED),
        )
    except (OSError, shutil.Error) as exc:
        raise FileSystemError(f"Failed to copy template {source} → {destination}: {exc}") from exc
    return sorted(
        p.relative_to(source)
        for p in source.rglob("*")
        if p.is_file() and not set(p.relative_to(source).parts) & _IGNORED
    )


def fetch_remote_template(
    repo_url: str,
    destination: Path,
    runner: toolchain.Runner = toolchain.run,
) -> None:
    """Shallow-clone ``repo_url`` to a temp dir and copy it into ``destination``.

    The temporary clone is removed on success and on failure.
    """
    toolchain.require_tool("git")
    with tempfile.TemporaryDirectory(prefix="pharos-template-") as tmp:
        clone_dir = Path(tmp) / "template"
        click.secho(f"🌐 Fetching template from {repo_url}...", fg="blue")
        result = runner("git", ["clone", "--depth", "1", repo_url, str(clone_dir)])
        toolchain.check(result, f"git clone {repo_url}", "Check your network connection.")
        copy_template(clone_dir, destination)
    logger.debug("Removed temporary clone of %s", repo_url)


def write_env_file(contract_dir: Path, rpc_url: str) -> bool:
    """Create ``.env`` unless one already exists. Returns True if written."""
    env_path = contract_dir / ".env"
    if env_path.exists():
        click.secho("⚠️ .env file already exists, skipping creation.", fg="yellow")
        return False
    try:
        env_path.write_text(ENV_TEMPLATE.format(rpc_url=rpc_url), encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Failed to write {env_path}: {exc}") from exc
    click.secho("✅ .env file created!", fg="green")
    return True


def _mkdir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(f"Failed to create {path}: {exc}") from exc
    return path


# ---------------------------------------------------------------------------
# Per-stack setup
# ---------------------------------------------------------------------------


def setup_solidity(
    framework: Framework,
    project_dir: Path,
    runner: toolchain.Runner = toolchain.run,
    settings: Optional[Settings] = None,
) -> Path:
    """Scaffold a Hardhat or Foundry contract directory. Returns its path."""
    settings = settings or load_settings(with_timeouts=False)
    contract_dir = _mkdir(project_dir / CONTRACT_DIR_NAME)
    template = TEMPLATES_DIR / "solidity" / framework.value.lower()

    if template.is_dir():
        copy_template(template, contract_dir)
    elif framework is Framework.FOUNDRY:
        fetch_remote_template(settings.foundry_template_repo, contract_dir, runner)
    else:
        raise FileSystemError(f"Template not found for {framework.value}")
    click.secho(f"✅ {framework.value} template copied successfully!", fg="green")

    if framework is Framework.HARDHAT:
        click.secho("\n📦 Installing Hardhat dependencies...\n", fg="blue")
        toolchain.check(
            runner("npm", ["install"], cwd=contract_dir),
            "npm install",
            "Dependency installation failed.",
        )
    else:
        if not (contract_dir / ".git").exists():
            toolchain.check(runner("git", ["init"], cwd=contract_dir), "git init")
        click.secho("\n📦 Installing Foundry dependencies...\n", fg="blue")
        toolchain.check(
            runner("forge", ["install", "foundry-rs/forge-std"], cwd=contract_dir),
            "forge install foundry-rs/forge-std",
            "Dependency installation failed.",
        )

    write_env_file(contract_dir, settings.rpc_url)
    click.secho(f"\n✅ {framework.value} setup completed successfully!", fg="green")
    return contract_dir


def setup_rust(project_dir: Path, runner: toolchain.Runner = toolchain.run) -> Path:
    """Scaffold an ink! contract crate. Returns the contract directory."""
    contract_dir = project_dir / CONTRACT_DIR_NAME
    src_dir = _mkdir(contract_dir / "src")
    click.secho("\n🔥 Setting up Rust project...\n", fg="blue")

    template = TEMPLATES_DIR / "rust" / "lib.rs"
    if not template.is_file():
        raise FileSystemError(f"Template not found: {template}")
    try:
        shutil.copyfile(template, src_dir / "lib.rs")
    except OSError as exc:
        raise FileSystemError(f"Failed to copy {template}: {exc}") from exc
    click.secho("✅ Rust contract template copied!", fg="green")

    toolchain.check(
        runner("cargo", ["init", "--lib"], cwd=contract_dir),
        "cargo init --lib",
        "Cargo initialization failed.",
    )
    click.secho("\n✅ Rust project configured successfully!", fg="green")
    return contract_dir


def setup_frontend(frontend: Frontend, project_dir: Path) -> Optional[Path]:
    """Copy the frontend template to ``<project>/frontend``.

    Returns the frontend directory, or None when ``frontend`` is NONE or the
    template is missing (a warning, not an error).
    """
    if frontend is Frontend.NONE:
        return None

    click.secho(f"\n🚀 Setting up {frontend.value} frontend...\n", fg="blue")
    source = TEMPLATES_DIR / FRONTEND_TEMPLATES[frontend]
    if not source.is_dir():
        click.secho(f"⚠️ {frontend.value} template not found, skipping frontend.", fg="yellow")
        logger.warning("Frontend template missing: %s", source)
        return None

    frontend_dir = project_dir / FRONTEND_DIR_NAME
    copy_template(source, frontend_dir)
    click.secho(f"✅ {frontend.value} template copied successfully!\n", fg="green")
    return frontend_dir


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def scaffold_project(
    config: ProjectConfig,
    parent_dir: Path,
    runner: toolchain.Runner = toolchain.run,
    settings: Optional[Settings] = None,
) -> Path:
    """Create ``<parent_dir>/<project_name>`` for ``config``.

    Returns
    -------
    Path
        The project directory, which holds ``pharos-config.json``.

    Raises
    ------
    FileSystemError
        If the project name is not a plain folder name, if the directory
        already holds a Pharos project, or on I/O errors.
    ToolchainMissing, SubprocessFailure
        From pre-flight checks and installers.
    """
    settings = settings or load_settings(with_timeouts=False)
    project_dir = parent_dir / config.project_name
    if project_dir.parent != parent_dir or config.project_name in (".", ".."):
        raise FileSystemError(
            f"Project name {config.project_name!r} must be a single folder name under {parent_dir}."
        )
    if config_store.config_path(project_dir).exists():
        raise FileSystemError(
            f"{project_dir} already contains {config_store.CONFIG_FILE}; refusing to overwrite it."
        )

    check_prerequisites(config)

    click.secho(
        f"\n📁 Setting up {config.contract_type.value} project with name "
        f"\"{config.project_name}\"...\n",
        fg="blue",
    )
    _mkdir(project_dir)

    setup_frontend(config.frontend, project_dir)

    if config.contract_type is ContractType.RUST_WASM:
        setup_rust(project_dir, runner)
    else:
        setup_solidity(config.framework, project_dir, runner, settings)

    path = config_store.save(config, project_dir)
    click.secho(f"\n✅ Configuration saved to {path.name}", fg="green")
    return project_dir
