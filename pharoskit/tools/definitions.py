# pharoskit/tools/definitions.py
"""
Shared toolchain definitions for the Pharos CLI.

This module centralizes:
- the binaries `init` checks for before scaffolding each stack (`STACK_TOOLS`)
- install guidance shown when a binary is missing (`INSTALL_HINTS`)
- human-readable descriptions for the doctor report (`TOOL_DESCRIPTIONS`)
- minimum supported versions (`MIN_TOOL_VERSIONS`)
- the Rust/WASM crate dependencies `compile` adds when absent (`INK_DEPENDENCIES`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

__all__ = [
    "STACK_TOOLS",
    "INSTALL_HINTS",
    "TOOL_DESCRIPTIONS",
    "MIN_TOOL_VERSIONS",
    "ALL_TOOLS",
    "CrateDependency",
    "INK_DEPENDENCIES",
    "AUTO_INSTALL",
]

# Keys are "<contract type>/<framework>" labels matching pharoskit.config values
# (the contract type alone for Rust). cargo-contract is installed on demand by
# `compile`, so init only needs cargo.
STACK_TOOLS: Dict[str, List[str]] = {
    "Solidity (EVM)/Hardhat": ["node", "npm", "npx"],
    "Solidity (EVM)/Foundry": ["git", "forge"],
    "Rust (WASM)": ["cargo"],
}

ALL_TOOLS: List[str] = ["node", "npm", "npx", "git", "forge", "cargo", "cargo-contract"]

INSTALL_HINTS: Dict[str, str] = {
    "node": "Node.js and npm are required for Hardhat. Install from https://nodejs.org/",
    "npm": "Node.js and npm are required for Hardhat. Install from https://nodejs.org/",
    "npx": "npx ships with npm 7+. Install Node.js from https://nodejs.org/",
    "git": "Install git from https://git-scm.com/downloads",
    "forge": (
        "Foundry not installed. Install with:\n"
        "  For Linux/Mac:\n"
        "    curl -L https://foundry.paradigm.xyz | bash\n"
        "    source ~/.bashrc  # or restart your terminal\n"
        "    foundryup\n"
        "  For Windows (PowerShell):\n"
        "    iex (irm https://foundry.paradigm.xyz)\n"
        "    foundryup\n"
        "  Then restart your terminal and verify with 'forge --version'"
    ),
    "cargo": "Rust toolchain required. Install from https://rustup.rs/",
    "cargo-contract": (
        "Install cargo-contract with 'cargo install cargo-contract --force'. "
        "You may need to install Rust first: https://www.rust-lang.org/tools/install"
    ),
}

TOOL_DESCRIPTIONS: Dict[str, str] = {
    "node": "Node.js runtime for Hardhat projects.",
    "npm": "Node package manager (Hardhat dependency install).",
    "npx": "Package runner used to invoke the Hardhat CLI.",
    "git": "Version control; Foundry manages libraries as git submodules.",
    "forge": "Foundry build/test/deploy tool for Solidity.",
    "cargo": "Rust package manager.",
    "cargo-contract": "ink! smart contract build and deploy plugin for cargo.",
}

MIN_TOOL_VERSIONS: Dict[str, str] = {
    "node": "18.0",
    "npm": "8.0",
    "git": "2.28",
    "forge": "1.0",
    "cargo": "1.70",
    "cargo-contract": "4.0",
}

#: Tools that may be installed automatically (once) when missing:
#: tool -> (installer binary, installer arguments).
AUTO_INSTALL: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "cargo-contract": ("cargo", ("install", "cargo-contract", "--force")),
}


@dataclass(frozen=True)
class CrateDependency:
    """A crate ``compile`` ensures is present in a Rust contract's Cargo.toml."""

    name: str
    version: str
    package: Optional[str] = None
    features: Optional[str] = None

    def cargo_add_args(self) -> List[str]:
        """Arguments for ``cargo add`` (without the leading ``add``)."""
        args = [f"{self.package or self.name}@{self.version}", "--no-default-features"]
        if self.features:
            args += ["--features", self.features]
        if self.package and self.package != self.name:
            args += ["--rename", self.name]
        return args


INK_DEPENDENCIES: List[CrateDependency] = [
    CrateDependency("ink", "4.2.0"),
    CrateDependency("scale", "3", package="parity-scale-codec", features="derive"),
    CrateDependency("scale-info", "2.6", features="derive"),
]
