"""Deployment plan loading for onchain-deployments library."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import (
    CHAIN_ID_OVERRIDES,
    DEFAULT_SALT,
    DETERMINISTIC_DEPLOYMENT_PROXY,
    NAMED_ACCOUNTS,
    NETWORK_CONFIG,
)
from .exceptions import ConfigurationError
from .types import (
    Argument,
    ArgumentKind,
    BytecodePatch,
    DeterministicSpec,
    NetworkConfig,
    Unit,
    WiringCall,
)

# Environment values an `env` argument may name
ENV_VALUES = {"chainId"}

_ARGUMENT_KEYS = {kind.value: kind for kind in ArgumentKind}


@dataclass
class DeploymentPlan:
    """Everything a run needs that is not discovered on-chain."""

    network: NetworkConfig
    units: List[Unit]
    accounts: Dict[str, Union[str, int]] = field(default_factory=dict)
    chain_id_overrides: Dict[str, int] = field(default_factory=dict)


def hex_to_bytes(value: str) -> bytes:
    """Convert a 0x-prefixed (or bare) hex string to bytes."""
    if not isinstance(value, str):
        raise ConfigurationError(f"Expected hex string, got {value!r}")
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise ConfigurationError(f"Invalid hex string {value!r}") from e


def parse_argument(raw: Any) -> Argument:
    """
    Parse one argument slot from the plan.

    Plain JSON values are literals. Objects must have exactly one key naming
    the argument kind, e.g. {"ref": "OrderBook"} or {"env": "chainId"}.

    Raises:
        ConfigurationError: If the object form is malformed
    """
    if not isinstance(raw, dict):
        return Argument(ArgumentKind.LITERAL, raw)

    if len(raw) != 1:
        raise ConfigurationError(f"Argument must have exactly one key: {raw!r}")

    key, value = next(iter(raw.items()))
    if key not in _ARGUMENT_KEYS:
        raise ConfigurationError(f"Unknown argument kind '{key}' in {raw!r}")

    kind = _ARGUMENT_KEYS[key]
    if kind is ArgumentKind.ENV and value not in ENV_VALUES:
        raise ConfigurationError(f"Unknown environment value '{value}'")
    if kind in (ArgumentKind.REF, ArgumentKind.ACCOUNT, ArgumentKind.NETWORK):
        if not isinstance(value, str) or not value:
            raise ConfigurationError(f"Argument '{key}' needs a name: {raw!r}")

    return Argument(kind, value)


def _parse_arguments(raw: Any, where: str) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError(f"'args' of {where} must be a list")
    return tuple(parse_argument(item) for item in raw)


def _parse_deterministic(raw: Any, unit_name: str) -> Optional[DeterministicSpec]:
    if raw is None or raw is False:
        return None
    if raw is True:
        return DeterministicSpec(factory=DETERMINISTIC_DEPLOYMENT_PROXY, salt=DEFAULT_SALT)
    if not isinstance(raw, dict):
        raise ConfigurationError(f"'deterministic' of unit '{unit_name}' must be bool or object")

    salt = hex_to_bytes(raw["salt"]) if "salt" in raw else DEFAULT_SALT
    if len(salt) != 32:
        raise ConfigurationError(f"Salt of unit '{unit_name}' must be 32 bytes")
    return DeterministicSpec(
        factory=raw.get("factory", DETERMINISTIC_DEPLOYMENT_PROXY),
        salt=salt,
    )


def parse_unit(data: Dict[str, Any]) -> Unit:
    """
    Parse a unit definition from the plan.

    Args:
        data: Unit object with plan (camelCase) field names

    Returns:
        Unit

    Raises:
        ConfigurationError: If required fields are missing or malformed
    """
    if not isinstance(data, dict) or not data.get("name"):
        raise ConfigurationError(f"Unit definition needs a name: {data!r}")

    name = data["name"]

    patches = []
    for patch in data.get("patches", []):
        try:
            patches.append(
                BytecodePatch(
                    placeholder=hex_to_bytes(patch["placeholder"]),
                    source=patch["unit"],
                    method=patch["method"],
                )
            )
        except KeyError as e:
            raise ConfigurationError(f"Patch of unit '{name}' is missing {e}") from e

    wiring = []
    for call in data.get("afterDeploy", []):
        try:
            wiring.append(
                WiringCall(
                    target=call["target"],
                    method=call["method"],
                    args=_parse_arguments(call.get("args"), f"{name} wiring"),
                    sender=call.get("from", "deployer"),
                )
            )
        except KeyError as e:
            raise ConfigurationError(f"Wiring call of unit '{name}' is missing {e}") from e

    networks = data.get("networks")
    return Unit(
        name=name,
        contract=data.get("contract", name),
        dependencies=tuple(data.get("dependencies", [])),
        args=_parse_arguments(data.get("args"), f"unit '{name}'"),
        sender=data.get("from", "deployer"),
        gas_limit=data.get("gasLimit"),
        deterministic=_parse_deterministic(data.get("deterministic"), name),
        patches=tuple(patches),
        wiring=tuple(wiring),
        tags=tuple(data.get("tags", [])),
        networks=tuple(networks) if networks is not None else None,
    )


def resolve_network(
    name: str,
    plan_networks: Optional[Dict[str, Any]] = None,
    rpc_url: Optional[str] = None,
) -> NetworkConfig:
    """
    Build the network identity from built-in defaults and plan overrides.

    RPC URL precedence: explicit argument, plan "url", environment variable
    named by "rpcEnv", built-in default.

    Raises:
        ConfigurationError: If the network is unknown
    """
    defaults = NETWORK_CONFIG.get(name, {})
    overrides = (plan_networks or {}).get(name)
    if not defaults and overrides is None:
        raise ConfigurationError(f"Unknown network '{name}'")
    overrides = overrides or {}

    live = overrides.get("live", defaults.get("live"))
    if live is None:
        raise ConfigurationError(f"Network '{name}' must declare whether it is live")

    if rpc_url is None:
        rpc_url = overrides.get("url")
    if rpc_url is None:
        rpc_env = overrides.get("rpcEnv", defaults.get("rpc_env"))
        if rpc_env is not None:
            rpc_url = os.environ.get(rpc_env)
    if rpc_url is None:
        rpc_url = defaults.get("rpc_url")

    values = {
        key: parse_argument(value)
        for key, value in overrides.get("values", {}).items()
    }

    return NetworkConfig(
        name=name,
        live=bool(live),
        chain_id=overrides.get("chainId", defaults.get("chain_id")),
        rpc_url=rpc_url,
        values=values,
    )


def parse_plan(
    data: Dict[str, Any], network: str, rpc_url: Optional[str] = None
) -> DeploymentPlan:
    """Build a DeploymentPlan from an already decoded plan document."""
    if not isinstance(data.get("units"), list):
        raise ConfigurationError("Deployment plan needs a 'units' list")

    accounts: Dict[str, Union[str, int]] = dict(NAMED_ACCOUNTS)
    accounts.update(data.get("namedAccounts", {}))

    chain_id_overrides = dict(data.get("chainIdOverrides", CHAIN_ID_OVERRIDES))

    return DeploymentPlan(
        network=resolve_network(network, data.get("networks"), rpc_url),
        units=[parse_unit(unit) for unit in data["units"]],
        accounts=accounts,
        chain_id_overrides=chain_id_overrides,
    )


def load_plan(
    path: Union[Path, str], network: str, rpc_url: Optional[str] = None
) -> DeploymentPlan:
    """
    Load a deployment plan JSON file.

    Args:
        path: Path to the plan (e.g. deploy.json)
        network: Target network name
        rpc_url: Overrides the RPC URL from plan and environment

    Returns:
        DeploymentPlan

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    plan_path = Path(path)
    try:
        with open(plan_path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Deployment plan not found at {plan_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Deployment plan {plan_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Deployment plan {plan_path} must be a JSON object")

    return parse_plan(data, network, rpc_url)
