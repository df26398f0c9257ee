# pharoskit/config.py
"""
Project configuration store for the Pharos CLI.

This module owns the single persisted document of a Pharos project,
``pharos-config.json``, written by ``configure-pharos init`` at the project
root and read (never mutated) by ``compile``, ``deploy`` and ``test``.

It also exposes :func:`load_settings`, the small set of runtime knobs read
from ``PHAROS_*`` environment variables.

Document format
---------------
The JSON keys and values are the human-readable labels shown by the
prompts, e.g.::

    {
      "projectName": "my-dapp",
      "contractType": "Solidity (EVM)",
      "framework": "Hardhat",
      "frontend": "React (Vite)"
    }

``framework`` is present if and only if ``contractType`` is
``"Solidity (EVM)"``.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pharoskit.errors import ConfigMissing, FileSystemError, UnsupportedSelection, ValidationFailed

__all__ = [
    "CONFIG_FILE",
    "ContractType",
    "Framework",
    "Frontend",
    "ProjectConfig",
    "Settings",
    "load",
    "save",
    "config_path",
    "load_settings",
]

#: File name of the persisted project configuration.
CONFIG_FILE = "pharos-config.json"

#: Default Pharos devnet endpoint, also written to freshly scaffolded ``.env`` files.
DEFAULT_RPC_URL = "https://devnet.dplabs-internal.com/"

DEFAULT_FOUNDRY_TEMPLATE_REPO = "https://github.com/foundry-rs/forge-template"

#: Default ink! node endpoint (a local substrate-contracts-node), also the
#: `cargo contract` default.
DEFAULT_WASM_RPC_URL = "ws://127.0.0.1:9944"


# ---------------------------------------------------------------------------
# Closed choice sets
# ---------------------------------------------------------------------------


class ContractType(str, Enum):
    """Target smart-contract platform family."""

    SOLIDITY_EVM = "Solidity (EVM)"
    RUST_WASM = "Rust (WASM)"


class Framework(str, Enum):
    """Solidity build/deploy toolchain."""

    HARDHAT = "Hardhat"
    FOUNDRY = "Foundry"


class Frontend(str, Enum):
    """Optional frontend template."""

    REACT_VITE = "React (Vite)"
    VUE = "Vue.js"
    NONE = "None"


def _parse_choice(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise UnsupportedSelection(
            f"Unsupported {field} {value!r} in {CONFIG_FILE}. Expected one of: {allowed}."
        ) from None


@dataclass(frozen=True)
class ProjectConfig:
    """Choices recorded by ``init``.

    Raises
    ------
    UnsupportedSelection
        If ``framework`` is missing for a Solidity project or present for a
        Rust project.
    """

    project_name: str
    contract_type: ContractType
    framework: Optional[Framework] = None
    frontend: Frontend = Frontend.NONE

    def __post_init__(self) -> None:
        if self.contract_type is ContractType.SOLIDITY_EVM and self.framework is None:
            raise UnsupportedSelection("Solidity (EVM) projects require a framework.")
        if self.contract_type is ContractType.RUST_WASM and self.framework is not None:
            raise UnsupportedSelection(
                f"Framework {self.framework.value!r} is only valid for Solidity (EVM) projects."
            )

    @property
    def label(self) -> str:
        """Short description such as ``"Solidity (EVM) contract using Foundry"``."""
        text = f"{self.contract_type.value} contract"
        if self.framework is not None:
            text += f" using {self.framework.value}"
        return text

    def to_dict(self) -> Dict[str, str]:
        data = {
            "projectName": self.project_name,
            "contractType": self.contract_type.value,
        }
        if self.framework is not None:
            data["framework"] = self.framework.value
        data["frontend"] = self.frontend.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfig":
        if not isinstance(data, dict):
            raise UnsupportedSelection(f"{CONFIG_FILE} must contain a JSON object.")
        if "contractType" not in data:
            raise UnsupportedSelection(f"{CONFIG_FILE} has no contractType.")

        contract_type = _parse_choice(ContractType, data["contractType"], "contractType")
        framework = data.get("framework")
        frontend = data.get("frontend") or Frontend.NONE.value
        return cls(
            project_name=str(data.get("projectName", "")),
            contract_type=contract_type,
            framework=_parse_choice(Framework, framework, "framework") if framework else None,
            frontend=_parse_choice(Frontend, frontend, "frontend"),
        )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def config_path(directory: Optional[Path] = None) -> Path:
    """Return the config file path inside ``directory`` (default: cwd)."""
    return Path(directory or Path.cwd()) / CONFIG_FILE


def load(directory: Optional[Path] = None) -> ProjectConfig:
    """Load the project configuration.

    Raises
    ------
    ConfigMissing
        If the document does not exist.
    FileSystemError
        If it cannot be read or is not valid JSON.
    UnsupportedSelection
        If it holds unknown choices.
    """
    path = config_path(directory)
    if not path.is_file():
        raise ConfigMissing(str(path))
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise FileSystemError(f"Could not read {path}: {exc}") from exc
    return ProjectConfig.from_dict(data)


def save(config: ProjectConfig, directory: Optional[Path] = None) -> Path:
    """Persist ``config`` and return the written path.

    Raises
    ------
    FileSystemError
        On any I/O error.
    """
    path = config_path(directory)
    try:
        with path.open("w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        raise FileSystemError(f"Failed to write {path}: {exc}") from exc
    return path


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Runtime knobs read from ``PHAROS_*`` environment variables."""

    rpc_url: str = DEFAULT_RPC_URL
    wasm_rpc_url: str = DEFAULT_WASM_RPC_URL
    deploy_timeout: float = 30 * 60.0
    probe_timeout: float = 10.0
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    foundry_template_repo: str = DEFAULT_FOUNDRY_TEMPLATE_REPO


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValidationFailed(f"{name} must be a number of seconds, got {raw!r}.") from None
    if value <= 0:
        raise ValidationFailed(f"{name} must be positive, got {raw!r}.")
    return value


def load_settings(with_timeouts: bool = True) -> Settings:
    """Build :class:`Settings` from the environment.

    Parameters
    ----------
    with_timeouts
        Parse ``PHAROS_DEPLOY_TIMEOUT`` and ``PHAROS_PROBE_TIMEOUT``. Callers
        that never deploy pass False and get the defaults, so a bad timeout
        only breaks ``deploy``.

    Raises
    ------
    ValidationFailed
        If a parsed timeout is not a positive number.
    """
    defaults = Settings()
    return Settings(
        rpc_url=os.getenv("PHAROS_RPC_URL") or DEFAULT_RPC_URL,
        wasm_rpc_url=os.getenv("PHAROS_WASM_RPC_URL") or DEFAULT_WASM_RPC_URL,
        deploy_timeout=(
            _float_env("PHAROS_DEPLOY_TIMEOUT", defaults.deploy_timeout)
            if with_timeouts else defaults.deploy_timeout
        ),
        probe_timeout=(
            _float_env("PHAROS_PROBE_TIMEOUT", defaults.probe_timeout)
            if with_timeouts else defaults.probe_timeout
        ),
        log_level=(os.getenv("PHAROS_LOG_LEVEL") or "WARNING").upper(),
        log_file=os.getenv("PHAROS_LOG_FILE") or None,
        foundry_template_repo=(
            os.getenv("PHAROS_FOUNDRY_TEMPLATE_REPO") or DEFAULT_FOUNDRY_TEMPLATE_REPO
        ),
    )
