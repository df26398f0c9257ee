# pharoskit/doctor.py
"""
Toolchain health report (``configure-pharos doctor``).

Lists every external binary the CLI may invoke, where it was found, the
version it reports and whether that meets ``MIN_TOOL_VERSIONS``. Purely
informational: it never installs anything and always exits 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

import click
from packaging.version import InvalidVersion, Version
from rich.console import Console
from rich.table import Table

from pharoskit import toolchain
from pharoskit.toolchain import extract_version, get_version_info
from pharoskit.tools.definitions import ALL_TOOLS, MIN_TOOL_VERSIONS, TOOL_DESCRIPTIONS

__all__ = ["ToolStatus", "get_version_info", "extract_version", "collect", "render", "doctor"]


@dataclass(frozen=True)
class ToolStatus:
    name: str
    path: Optional[str]
    version: Optional[str]
    minimum: Optional[str]

    @property
    def found(self) -> bool:
        return self.path is not None

    @property
    def meets_minimum(self) -> Optional[bool]:
        """True/False when comparable, None when the version is unknown."""
        if not self.found:
            return False
        if self.minimum is None:
            return True
        if self.version is None:
            return None
        try:
            return Version(self.version) >= Version(self.minimum)
        except InvalidVersion:
            return None


def collect(tools: Iterable[str] = ALL_TOOLS) -> List[ToolStatus]:
    statuses = []
    for name in tools:
        path = toolchain.which(name)
        statuses.append(
            ToolStatus(
                name=name,
                path=path,
                version=get_version_info(path) if path else None,
                minimum=MIN_TOOL_VERSIONS.get(name),
            )
        )
    return statuses


def render(statuses: Iterable[ToolStatus], console: Optional[Console] = None) -> Table:
    table = Table(title="Pharos toolchain health")
    table.add_column("Tool", style="bold")
    table.add_column("Status")
    table.add_column("Version")
    table.add_column("Path", overflow="fold")
    table.add_column("Purpose", style="dim")

    for st in statuses:
        if not st.found:
            status = "[red]missing[/red]"
        elif st.meets_minimum is None:
            status = "[yellow]unknown version[/yellow]"
        elif st.meets_minimum:
            status = "[green]ok[/green]"
        else:
            status = f"[yellow]needs ≥ {st.minimum}[/yellow]"
        table.add_row(
            st.name,
            status,
            st.version or "-",
            st.path or "-",
            TOOL_DESCRIPTIONS.get(st.name, ""),
        )

    (console or Console()).print(table)
    return table


@click.command()
def doctor() -> None:
    """🩺 Check which toolchains are installed and their versions."""
    statuses = collect()
    render(statuses)
    missing = [st.name for st in statuses if not st.found]
    if missing:
        click.secho(
            f"💡 Missing: {', '.join(missing)}. Only the tools of your stack are required.",
            fg="blue",
        )
