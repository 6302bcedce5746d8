"""Main API for onchain-deployments library."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .abi import coerce_value, constructor_inputs, find_function
from .artifacts import ArtifactProvider
from .config import DeploymentPlan, load_plan
from .context import RunContext
from .exceptions import ConfigurationError
from .executor import UnitExecutor
from .ledger import DeploymentLedger
from .scheduler import index_units, schedule, select_units, validate_references
from .transport import Transport, Web3Transport
from .types import Argument, ArgumentKind, ExecutionResult, Unit

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcome of one orchestrator run."""

    network: str
    results: List[ExecutionResult] = field(default_factory=list)

    @property
    def deployed(self) -> List[str]:
        return [r.name for r in self.results if r.deployed]

    @property
    def reused(self) -> List[str]:
        return [r.name for r in self.results if r.reused]

    @property
    def addresses(self) -> dict:
        return {r.name: r.address for r in self.results}


class Orchestrator:
    """Runs a set of units against one network in dependency order."""

    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        self.executor = UnitExecutor(ctx)

    def plan(self, tags: Optional[Iterable[str]] = None) -> List[Unit]:
        """
        Work out the execution order without touching the network.

        Every configuration error (missing or cyclic dependencies, undefined
        references, missing artifacts or wiring methods, wrong argument
        counts, literals that don't fit their ABI type) is raised here.

        Args:
            tags: Restrict the run to tagged units and their dependencies

        Returns:
            Units in execution order
        """
        ctx = self.ctx
        network = ctx.network.name
        all_units = list(ctx.units.values())

        selected = select_units(all_units, tags)
        enabled = [unit for unit in selected if unit.enabled_on(network)]
        disabled = [unit.name for unit in all_units if not unit.enabled_on(network)]

        order = schedule(enabled, external=disabled)
        validate_references(order, ctx.units.keys())
        for key, value in ctx.network.values.items():
            if value.kind is ArgumentKind.REF and value.value not in ctx.units:
                raise ConfigurationError(
                    f"Network value '{key}' references undefined unit '{value.value}'"
                )

        for unit in order:
            artifact = ctx.artifacts.get_artifact(unit.contract)
            self._check_arguments(
                f"Unit '{unit.name}' constructor", constructor_inputs(artifact.abi), unit.args
            )
            for call in unit.wiring:
                target = ctx.units[call.target]
                item = find_function(
                    ctx.artifacts.get_artifact(target.contract).abi, call.method, len(call.args)
                )
                self._check_arguments(
                    f"Unit '{unit.name}' wiring call {call.target}.{call.method}",
                    item.get("inputs", []),
                    call.args,
                )

        return order

    def _check_arguments(self, where: str, inputs: list, args: Sequence[Argument]) -> None:
        """
        Check argument count, network values and literal types without network calls.

        Raises:
            ConfigurationError: On the first argument that cannot be encoded
        """
        if len(inputs) != len(args):
            raise ConfigurationError(
                f"{where} expects {len(inputs)} argument(s), got {len(args)}"
            )

        values = self.ctx.network.values
        for index, (param, arg) in enumerate(zip(inputs, args)):
            if arg.kind is ArgumentKind.NETWORK:
                if arg.value not in values:
                    raise ConfigurationError(
                        f"{where} argument {index}: network '{self.ctx.network.name}' "
                        f"has no value '{arg.value}'"
                    )
                arg = values[arg.value]
            if arg.kind is ArgumentKind.LITERAL:
                coerce_value(param, arg.value, f"{where} argument {index}")

    def run(self, tags: Optional[Iterable[str]] = None) -> RunReport:
        """
        Deploy and wire every selected unit.

        Execution stops at the first failing unit. Units completed before
        the failure stay in the ledger, so running again resumes from it.

        Returns:
            RunReport with one result per executed unit
        """
        order = self.plan(tags)
        network = self.ctx.network.name
        logger.info(
            "running %d unit(s) on %s: %s",
            len(order), network, ", ".join(unit.name for unit in order),
        )

        if order:
            self.ctx.ledger.write_chain_id(network, self.ctx.transport.chain_id())

        report = RunReport(network=network)
        for unit in order:
            report.results.append(self.executor.execute(unit))

        logger.info(
            "done: %d deployed, %d reused", len(report.deployed), len(report.reused)
        )
        return report


def build_context(
    plan: DeploymentPlan,
    transport: Optional[Transport] = None,
    artifacts_dir: Optional[Union[Path, str]] = None,
    deployments_dir: Optional[Union[Path, str]] = None,
    force_wiring: bool = False,
) -> RunContext:
    """
    Create the run context for a plan.

    A Web3Transport on the network's RPC URL is used when no transport
    is given.

    Raises:
        ConfigurationError: If no transport is given and the network has no RPC URL
    """
    if transport is None:
        if not plan.network.rpc_url:
            raise ConfigurationError(
                f"RPC URL required for network '{plan.network.name}': "
                "set it in the plan, its rpcEnv variable, or pass --rpc-url"
            )
        transport = Web3Transport(plan.network.rpc_url)

    return RunContext(
        network=plan.network,
        transport=transport,
        ledger=DeploymentLedger(deployments_dir),
        artifacts=ArtifactProvider(artifacts_dir),
        units=index_units(plan.units),
        accounts=plan.accounts,
        chain_id_overrides=plan.chain_id_overrides,
        force_wiring=force_wiring,
    )


def deploy(
    plan_path: Union[Path, str],
    network: str,
    tags: Optional[Iterable[str]] = None,
    transport: Optional[Transport] = None,
    rpc_url: Optional[str] = None,
    artifacts_dir: Optional[Union[Path, str]] = None,
    deployments_dir: Optional[Union[Path, str]] = None,
    force_wiring: bool = False,
) -> RunReport:
    """
    Load a deployment plan and run it against a network.

    Args:
        plan_path: Path to the plan JSON file
        network: Target network name
        tags: Restrict the run to tagged units and their dependencies
        transport: Network transport (defaults to web3 on the network's URL)
        rpc_url: Overrides the plan/environment RPC URL
        artifacts_dir: Compiler artifacts (defaults to ./artifacts)
        deployments_dir: Ledger root (defaults to ./deployments)
        force_wiring: Re-run wiring calls of units that are not redeployed

    Returns:
        RunReport
    """
    plan = load_plan(plan_path, network, rpc_url)
    ctx = build_context(plan, transport, artifacts_dir, deployments_dir, force_wiring)
    return Orchestrator(ctx).run(tags)
