"""
pharoskit: smart-contract project scaffolding CLI for Pharos

Scaffolds Solidity (Hardhat / Foundry) and Rust (ink!) projects and drives
their native toolchains for compile, deploy and test.
"""

__version__ = "1.0.0"
__author__ = "Pharos Labs"
__license__ = "Apache-2.0"
