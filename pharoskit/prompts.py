# pharoskit/prompts.py
"""
Interactive question flows for the Pharos CLI.

Two flows live here:

- :func:`ask_project_config` for ``init``: project name → contract type →
  framework (Solidity only) → frontend.
- :func:`ask_deployment_request` for ``deploy``: per-stack secrets, target
  paths and a final confirmation.

Prompting is kept apart from the logic that consumes it: answers are
collected into a plain dict and converted by the pure :func:`build_config`,
so nothing is persisted until every required answer exists and the
conversion can be tested without a terminal.
"""

from __future__ import annotations

import shlex
from pathlib import PureWindowsPath
from typing import Any, Dict, List, Mapping, Optional

import questionary

from pharoskit.commands import DeploymentRequest
from pharoskit.config import ContractType, Framework, Frontend, ProjectConfig
from pharoskit.errors import UnsupportedSelection, UserCancelled, ValidationFailed

__all__ = [
    "build_config",
    "project_name_error",
    "ask_project_config",
    "ask_deployment_request",
    "DEFAULT_IGNITION_MODULE",
    "DEFAULT_FOUNDRY_TARGET",
    "DEFAULT_INK_CONSTRUCTOR",
]

DEFAULT_IGNITION_MODULE = "ignition/modules/Contract.ts"
DEFAULT_FOUNDRY_TARGET = "src/Contract.sol:Counter"
DEFAULT_INK_CONSTRUCTOR = "new"

_NAME_REQUIRED = "Directory name cannot be empty!"
_NAME_NOT_PLAIN = (
    "Directory name must be a single folder name (no path separators, '.' or '..')."
)


# ---------------------------------------------------------------------------
# Pure conversion
# ---------------------------------------------------------------------------


def project_name_error(name: Optional[str]) -> Optional[str]:
    """Return why ``name`` cannot be used as the project folder, or None.

    The folder is always created directly under the current directory, so
    absolute paths, separators and the dot entries are refused.
    """
    name = (name or "").strip()
    if not name:
        return _NAME_REQUIRED
    if name in (".", "..") or "/" in name or "\\" in name or PureWindowsPath(name).drive:
        return _NAME_NOT_PLAIN
    return None


def build_config(answers: Mapping[str, Any]) -> ProjectConfig:
    """Turn collected answers into a :class:`ProjectConfig`.

    Parameters
    ----------
    answers
        Mapping with ``projectName``, ``contractType``, optional
        ``framework`` and optional ``frontend``; values are the prompt labels.

    Raises
    ------
    ValidationFailed
        If the project name is empty or is not a plain folder name.
    UnsupportedSelection
        For unknown labels or a framework/contract-type mismatch.
    """
    name = str(answers.get("projectName") or "").strip()
    problem = project_name_error(name)
    if problem:
        raise ValidationFailed(problem)

    try:
        contract_type = ContractType(answers.get("contractType"))
    except ValueError:
        raise UnsupportedSelection(
            f"Unsupported contract type: {answers.get('contractType')!r}"
        ) from None

    framework: Optional[Framework] = None
    if contract_type is ContractType.SOLIDITY_EVM:
        try:
            framework = Framework(answers.get("framework"))
        except ValueError:
            raise UnsupportedSelection(
                f"Unsupported framework: {answers.get('framework')!r}"
            ) from None

    try:
        frontend = Frontend(answers.get("frontend") or Frontend.NONE.value)
    except ValueError:
        raise UnsupportedSelection(f"Unsupported frontend: {answers.get('frontend')!r}") from None

    return ProjectConfig(
        project_name=name,
        contract_type=contract_type,
        framework=framework,
        frontend=frontend,
    )


# ---------------------------------------------------------------------------
# questionary helpers
# ---------------------------------------------------------------------------


def _validate_project_name(text: str):
    return project_name_error(text) or True


def _answered(value: Optional[Any]) -> Any:
    """questionary returns None when the user hits Ctrl-C."""
    if value is None:
        raise UserCancelled()
    return value


def _ask_required_secret(message: str, error: str) -> str:
    value = _answered(questionary.password(message).ask()).strip()
    if not value:
        raise ValidationFailed(error)
    return value


def _ask_optional_text(message: str, default: str = "") -> str:
    return str(_answered(questionary.text(message, default=default).ask())).strip()


def _split_args(raw: str) -> List[str]:
    try:
        return shlex.split(raw)
    except ValueError as exc:
        raise ValidationFailed(f"Could not parse constructor arguments: {exc}") from exc


def _confirm(message: str) -> None:
    if not _answered(questionary.confirm(message, default=True).ask()):
        raise UserCancelled("Deployment cancelled.")


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def ask_project_config() -> ProjectConfig:
    """Ask the ``init`` questions and return the resulting config."""
    answers: Dict[str, Any] = {}

    answers["projectName"] = _answered(
        questionary.text(
            "Enter a name for your directory:",
            validate=_validate_project_name,
        ).ask()
    )

    answers["contractType"] = _answered(
        questionary.select(
            "Choose a contract type:",
            choices=[c.value for c in ContractType],
        ).ask()
    )

    if answers["contractType"] == ContractType.SOLIDITY_EVM.value:
        answers["framework"] = _answered(
            questionary.select(
                "Select a development framework:",
                choices=[f.value for f in Framework],
            ).ask()
        )

    answers["frontend"] = _answered(
        questionary.select(
            "Choose a frontend framework:",
            choices=[f.value for f in Frontend],
        ).ask()
    )

    return build_config(answers)


def ask_deployment_request(config: ProjectConfig) -> DeploymentRequest:
    """Collect the per-invocation deployment inputs for ``config``'s stack.

    Raises
    ------
    ValidationFailed
        If a required secret is left empty.
    UserCancelled
        If the user aborts a prompt or declines the confirmation.
    """
    if config.contract_type is ContractType.RUST_WASM:
        secret = _ask_required_secret(
            "🔑 Enter the signer secret URI (e.g. //Alice or a seed phrase):",
            "A signer secret URI is required!",
        )
        constructor = _ask_optional_text(
            "🏗  Constructor to call:", default=DEFAULT_INK_CONSTRUCTOR
        ) or DEFAULT_INK_CONSTRUCTOR
        args = _ask_optional_text(
            "📜 Enter constructor arguments (space-separated, or press Enter to skip):"
        )
        _confirm("🚀 Instantiate the contract now?")
        return DeploymentRequest(
            secret=secret,
            target=constructor,
            constructor_args=_split_args(args),
            confirmed=True,
        )

    if config.framework is Framework.HARDHAT:
        module = _ask_optional_text(
            "📦 Ignition module to deploy:", default=DEFAULT_IGNITION_MODULE
        ) or DEFAULT_IGNITION_MODULE
        deployment_id = _ask_optional_text(
            "🏷  Deployment id (press Enter for the default):"
        )
        _confirm("🚀 Deploy to the pharos network now?")
        return DeploymentRequest(
            target=module,
            deployment_id=deployment_id or None,
            confirmed=True,
        )

    secret = _ask_required_secret(
        "🔑 Enter your private key:", "A private key is required!"
    )
    target = _ask_optional_text(
        "📄 Contract to deploy (<path>:<ContractName>):", default=DEFAULT_FOUNDRY_TARGET
    ) or DEFAULT_FOUNDRY_TARGET
    args = _ask_optional_text(
        "📜 Enter constructor arguments (space-separated, or press Enter to skip):"
    )
    _confirm("🚀 Deploy the contract now?")
    return DeploymentRequest(
        secret=secret,
        target=target,
        constructor_args=_split_args(args),
        confirmed=True,
    )
