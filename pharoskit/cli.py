# pharoskit/cli.py
"""
Pharos CLI (``configure-pharos``).

Top-level Click group tying together:
- ``init``     interactive project scaffolding
- ``compile``  build contracts with the project's toolchain
- ``deploy``   deploy a contract (interactive for secrets and targets)
- ``test``     run the project's test suite
- ``doctor``   toolchain health report

Every command except ``init`` and ``doctor`` starts by loading
``pharos-config.json`` from the current directory and fails with exit
status 1 if it is missing. Errors from :mod:`pharoskit.errors` are Click
exceptions and print a single line; anything unexpected is reported the
same way (traceback only with ``--verbose``).
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from pharoskit import __version__
from pharoskit import config as config_store
from pharoskit import toolchain
from pharoskit.commands import compile_project, deploy_project, run_tests
from pharoskit.config import load_settings
from pharoskit.doctor import doctor
from pharoskit.log_manager import configure, get_logger
from pharoskit.prompts import ask_deployment_request, ask_project_config
from pharoskit.scaffold import scaffold_project

__all__ = ["cli", "main"]

logger = get_logger(__name__)


class PharosGroup(click.Group):
    """Click group that turns unexpected exceptions into a clean exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except (click.exceptions.Exit, click.Abort, click.ClickException):
            raise
        except Exception as exc:
            logger.debug("Unhandled exception", exc_info=True)
            raise click.ClickException(f"Unexpected error: {exc}") from exc


@click.group(cls=PharosGroup)
@click.version_option(__version__, prog_name="configure-pharos")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """
    🛠 Pharos smart-contract project CLI

    Scaffold Solidity (Hardhat / Foundry) or Rust (ink!) projects, then
    compile, deploy and test them with their native toolchains.

    Tip: run compile/deploy/test from the project root (where
    pharos-config.json lives).
    """
    settings = load_settings(with_timeouts=False)
    configure(logging.DEBUG if verbose else settings.log_level, settings.log_file)


@cli.command("init")
def init_cmd() -> None:
    """Initialize a new smart contract project."""
    click.secho("\n🛠 Initializing a new smart contract project...\n", fg="blue")
    project = ask_project_config()
    project_dir = scaffold_project(project, Path.cwd(), runner=toolchain.run)

    click.secho("\n✅ Project initialized! Run the following commands 👇🏽\n", fg="green")
    click.secho(f"cd {project_dir.name}", fg="blue")
    click.secho("configure-pharos compile\n", fg="blue")
    click.echo("to compile your contract.")


@cli.command("compile")
def compile_cmd() -> None:
    """Compile the smart contract."""
    project = config_store.load()
    compile_project(project, Path.cwd(), runner=toolchain.run)


@cli.command("deploy")
def deploy_cmd() -> None:
    """Deploy the smart contract."""
    project = config_store.load()
    deploy_project(
        project,
        Path.cwd(),
        lambda: ask_deployment_request(project),
        runner=toolchain.run,
    )


@cli.command("test")
def test_cmd() -> None:
    """Run the smart contract tests."""
    project = config_store.load()
    run_tests(project, Path.cwd(), runner=toolchain.run)


cli.add_command(doctor)


def main() -> None:
    """Console-script entry point."""
    cli(prog_name="configure-pharos")


if __name__ == "__main__":
    main()
