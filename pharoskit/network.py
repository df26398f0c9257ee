# pharoskit/network.py
"""
RPC reachability probe used before remote deployments.

A single JSON-RPC request is sent to the configured endpoint. Each failure
class gets its own message so the user can tell a typo in ``RPC_URL`` from
a node that is up but misbehaving.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import requests
from dotenv import dotenv_values

from pharoskit.errors import NetworkUnreachable
from pharoskit.log_manager import get_logger

__all__ = ["probe_rpc", "resolve_rpc_url", "EVM_PROBE_METHOD", "SUBSTRATE_PROBE_METHOD"]

logger = get_logger(__name__)

EVM_PROBE_METHOD = "eth_chainId"
SUBSTRATE_PROBE_METHOD = "system_chain"


def resolve_rpc_url(contract_dir: Path, default: str) -> str:
    """Return ``RPC_URL`` from ``<contract_dir>/.env`` or ``default``.

    The file is parsed, never loaded into ``os.environ``.
    """
    env_file = contract_dir / ".env"
    if env_file.is_file():
        value = (dotenv_values(env_file).get("RPC_URL") or "").strip()
        if value:
            return value
    return default


def _http_endpoint(url: str) -> str:
    """Substrate nodes serve HTTP JSON-RPC on their websocket port."""
    if url.startswith("wss://"):
        return "https://" + url[len("wss://"):]
    if url.startswith("ws://"):
        return "http://" + url[len("ws://"):]
    return url


def probe_rpc(url: str, method: str = EVM_PROBE_METHOD, timeout: float = 10.0) -> Any:
    """Send one JSON-RPC call and return its ``result``.

    For ``eth_chainId`` the hex result is converted to an int. ``ws://`` and
    ``wss://`` endpoints are probed over HTTP(S) on the same host and port.

    Raises
    ------
    NetworkUnreachable
        On transport errors, HTTP errors, non-JSON replies or a JSON-RPC
        ``error`` member.
    """
    payload = {"jsonrpc": "2.0", "method": method, "params": [], "id": 1}
    logger.debug("Probing %s with %s", url, method)
    try:
        response = requests.post(_http_endpoint(url), json=payload, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise NetworkUnreachable(
            f"RPC endpoint {url} did not answer within {timeout:.0f}s."
        ) from exc
    except requests.exceptions.RequestException as exc:
        raise NetworkUnreachable(
            f"Cannot reach RPC endpoint {url}: {exc}. Check RPC_URL in the contract .env "
            "(or PHAROS_RPC_URL, PHAROS_WASM_RPC_URL for ink! projects) and your "
            "network connection."
        ) from exc

    if response.status_code >= 400:
        raise NetworkUnreachable(
            f"RPC endpoint {url} returned HTTP {response.status_code}."
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise NetworkUnreachable(f"RPC endpoint {url} did not return JSON.") from exc

    if not isinstance(body, dict):
        raise NetworkUnreachable(f"RPC endpoint {url} returned a malformed JSON-RPC reply.")

    error: Optional[Any] = body.get("error")
    if error:
        message = error.get("message", error) if isinstance(error, dict) else error
        raise NetworkUnreachable(f"RPC endpoint {url} reported an error: {message}")

    result = body.get("result")
    if method == EVM_PROBE_METHOD and isinstance(result, str):
        try:
            return int(result, 16)
        except ValueError:
            raise NetworkUnreachable(
                f"RPC endpoint {url} returned an invalid chain id {result!r}."
            ) from None
    return result
