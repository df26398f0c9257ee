# pharoskit/errors.py
"""
Error taxonomy for the Pharos CLI.

Every terminal error is a :class:`click.ClickException`, so Click prints a
single ``Error: <message>`` line and exits with status 1. Callers never need
to call ``sys.exit`` themselves.

The one exception to the exit-1 rule is :class:`UserCancelled`, which is
raised when the user explicitly declines a confirmation (or aborts a
prompt). It exits with status 0.
"""

from __future__ import annotations

from typing import Optional

import click

__all__ = [
    "PharosError",
    "ConfigMissing",
    "ValidationFailed",
    "UnsupportedSelection",
    "ToolchainMissing",
    "ToolchainOutdated",
    "SubprocessFailure",
    "Timeout",
    "NetworkUnreachable",
    "FileSystemError",
    "ArtifactMissing",
    "ManifestMissing",
    "UserCancelled",
]


class PharosError(click.ClickException):
    """Base class for all user-facing Pharos CLI errors."""

    exit_code = 1

    def show(self, file=None) -> None:  # type: ignore[override]
        click.secho(f"❌ {self.format_message()}", fg="red", err=True, file=file)


class ConfigMissing(PharosError):
    """Raised when ``pharos-config.json`` is absent from the project root."""

    def __init__(self, path: Optional[str] = None) -> None:
        where = f" (looked for {path})" if path else ""
        super().__init__(
            f"No Pharos project found{where}. Run `configure-pharos init` first."
        )


class ValidationFailed(PharosError):
    """Raised when a required interactive answer is empty."""


class UnsupportedSelection(PharosError):
    """Raised for an unknown contract type / framework / frontend combination."""


class ToolchainMissing(PharosError):
    """Raised when a required external binary is not on PATH."""

    def __init__(self, tool: str, hint: str = "") -> None:
        self.tool = tool
        message = f"{tool} is required but was not found in PATH."
        if hint:
            message = f"{message}\n{hint}"
        super().__init__(message)


class SubprocessFailure(PharosError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: str, exit_code: int, hint: str = "") -> None:
        self.command = command
        self.returncode = exit_code
        message = f"`{command}` failed with exit code {exit_code}."
        if hint:
            message = f"{message}\n{hint}"
        super().__init__(message)


class Timeout(PharosError):
    """Raised when an external command exceeds its time limit."""

    def __init__(self, command: str, seconds: float) -> None:
        self.command = command
        self.seconds = seconds
        super().__init__(f"`{command}` timed out after {seconds:.0f}s and was terminated.")


class NetworkUnreachable(PharosError):
    """Raised when the RPC endpoint cannot be reached or answers with an error."""


class FileSystemError(PharosError):
    """Raised for unreadable/unwritable project files and directories."""


class ArtifactMissing(PharosError):
    """Raised when a build artifact is required but the project was never compiled."""


class ManifestMissing(PharosError):
    """Raised when no recognized build manifest exists in the contract directory."""


class UserCancelled(PharosError):
    """Raised when the user declines a confirmation; exits with status 0."""

    exit_code = 0

    def __init__(self, message: str = "Aborted by user.") -> None:
        super().__init__(message)

    def show(self, file=None) -> None:  # type: ignore[override]
        click.secho(f"👋 {self.format_message()}", fg="yellow", err=True, file=file)


class ToolchainOutdated(ToolchainMissing):
    """Raised when a required binary is older than its supported minimum."""

    def __init__(self, tool: str, version: str, minimum: str, hint: str = "") -> None:
        self.tool = tool
        self.version = version
        self.minimum = minimum
        message = f"{tool} {version} is too old; version {minimum} or newer is required."
        if hint:
            message = f"{message}\n{hint}"
        PharosError.__init__(self, message)
