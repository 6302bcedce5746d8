"""Single-unit execution for onchain-deployments library."""

import logging
from typing import Any, List, Optional, Tuple

from eth_utils import to_checksum_address

from .abi import encode_constructor_args, encode_function_call, to_jsonable
from .addresses import bytecode_hash
from .context import RunContext
from .exceptions import (
    DeploymentFailedError,
    TransportError,
    UnresolvedDependencyError,
    WiringCallFailedError,
)
from .types import DeploymentRecord, ExecutionResult, Receipt, Unit

logger = logging.getLogger(__name__)


class UnitExecutor:
    """Deploys one unit if needed and runs its wiring calls."""

    def __init__(self, ctx: RunContext):
        self.ctx = ctx

    @property
    def network(self) -> str:
        return self.ctx.network.name

    def execute(self, unit: Unit) -> ExecutionResult:
        """
        Execute a unit whose dependencies have all completed.

        Args:
            unit: Unit to execute

        Returns:
            ExecutionResult describing what happened

        Raises:
            ConfigurationError: If a resolved argument doesn't fit its ABI type
            UnresolvedDependencyError: If an argument references an unknown address
            DeploymentFailedError: If probing or the deployment transaction fails
            WiringCallFailedError: If a wiring call fails
        """
        ctx = self.ctx
        artifact = ctx.artifacts.get_artifact(unit.contract)

        try:
            args = ctx.constructor_args(unit)
            bytecode = ctx.adapted_bytecode(unit)
        except TransportError as e:
            raise DeploymentFailedError(unit.name, e) from e
        init_code = bytecode + encode_constructor_args(
            artifact.abi, args, f"Unit '{unit.name}' constructor"
        )
        code_hash = bytecode_hash(init_code)

        existing = ctx.ledger.get(self.network, unit.name)
        if existing is not None and existing.bytecode_hash == code_hash:
            address = to_checksum_address(existing.address)
            ctx.resolver.settle(unit.name, address)
            logger.info("reusing %s at %s", unit.name, address)

            wiring_calls = 0
            if unit.wiring and ctx.force_wiring:
                wiring_calls = self._wire(unit, existing, 0)
            elif unit.wiring and not existing.wired:
                wiring_calls = self._wire(unit, existing, existing.wired_calls)
            return ExecutionResult(
                name=unit.name,
                address=address,
                deployed=False,
                reused=True,
                wiring_calls=wiring_calls,
                record=existing,
            )

        if existing is not None:
            logger.info(
                "%s changed (bytecode hash %s -> %s), redeploying",
                unit.name, existing.bytecode_hash, code_hash,
            )

        if unit.deterministic is not None:
            address, receipt = self._deploy_deterministic(unit, init_code)
        else:
            address, receipt = self._deploy(unit, init_code)

        record = DeploymentRecord(
            address=address,
            abi=artifact.abi,
            bytecode_hash=code_hash,
            transaction_hash=receipt.transaction_hash if receipt else None,
            block_number=receipt.block_number if receipt else None,
            args=to_jsonable(args),
            bytecode="0x" + bytecode.hex(),
            deterministic=unit.deterministic is not None,
            wired=not unit.wiring,
            wired_calls=0,
            num_deployments=existing.num_deployments + 1 if existing else 1,
        )
        ctx.ledger.put(self.network, unit.name, record)
        ctx.resolver.settle(unit.name, address)

        wiring_calls = self._wire(unit, record, 0) if unit.wiring else 0
        return ExecutionResult(
            name=unit.name,
            address=address,
            deployed=receipt is not None,
            reused=receipt is None,
            wiring_calls=wiring_calls,
            record=record,
        )

    def _deploy(self, unit: Unit, init_code: bytes) -> Tuple[str, Receipt]:
        ctx = self.ctx
        try:
            sender = ctx.account(unit.sender)
            logger.info("deploying %s from %s", unit.name, sender)
            receipt = ctx.transport.submit_deployment(init_code, sender, unit.gas_limit)
        except TransportError as e:
            raise DeploymentFailedError(unit.name, e) from e

        address = to_checksum_address(receipt.contract_address)
        logger.info(
            "deployed %s at %s (tx: %s, block %d)",
            unit.name, address, receipt.transaction_hash, receipt.block_number,
        )
        return address, receipt

    def _deploy_deterministic(
        self, unit: Unit, init_code: bytes
    ) -> Tuple[str, Optional[Receipt]]:
        """
        Deploy through the CREATE2 proxy at the predicted address.

        Code already present at the predicted address is reused without a
        transaction.
        """
        ctx = self.ctx
        spec = unit.deterministic
        previous = ctx.resolver.precomputed(unit.name)
        address = ctx.resolver.precompute(unit, init_code)
        if previous is not None and previous != address:
            raise UnresolvedDependencyError(
                unit.name,
                f"precomputed address {previous} no longer matches {address}",
            )

        receipt: Optional[Receipt] = None
        try:
            if ctx.transport.get_code(address):
                logger.info("%s already present at deterministic address %s", unit.name, address)
                return address, None

            sender = ctx.account(unit.sender)
            logger.info("deploying %s deterministically to %s from %s", unit.name, address, sender)
            receipt = ctx.transport.call_method(
                spec.factory, spec.salt + init_code, sender, unit.gas_limit
            )
            if not ctx.transport.get_code(address):
                raise TransportError(f"no code at predicted address {address} after deployment")
        except TransportError as e:
            raise DeploymentFailedError(unit.name, e) from e

        logger.info(
            "deployed %s at %s (tx: %s, block %d)",
            unit.name, address, receipt.transaction_hash, receipt.block_number,
        )
        return address, receipt

    def _wire(self, unit: Unit, record: DeploymentRecord, start: int) -> int:
        """
        Run the unit's wiring calls from index start onwards.

        Progress is written to the record after every confirmed call, so a
        failed call is resumed on the next run without repeating the calls
        before it.

        Returns:
            Number of calls made
        """
        ctx = self.ctx
        total = len(unit.wiring)
        for index in range(start, total):
            call = unit.wiring[index]
            target_address = ctx.resolver.resolve(call.target)
            target_abi = self._abi_of(call.target)
            values: List[Any] = [ctx.resolve_argument(arg) for arg in call.args]
            data = encode_function_call(
                target_abi, call.method, values,
                f"Unit '{unit.name}' wiring call {call.target}.{call.method}",
            )
            try:
                sender = ctx.account(call.sender)
                logger.info(
                    "executing %s.%s(%s) from %s",
                    call.target, call.method, ", ".join(str(v) for v in values), sender,
                )
                ctx.transport.call_method(target_address, data, sender)
            except TransportError as e:
                raise WiringCallFailedError(unit.name, call.target, call.method, e) from e

            record.wired_calls = index + 1
            record.wired = record.wired_calls == total
            ctx.ledger.put(self.network, unit.name, record)
        return max(total - start, 0)

    def _abi_of(self, name: str) -> list:
        record = self.ctx.ledger.get(self.network, name)
        if record is not None:
            return record.abi
        return self.ctx.artifacts.get_artifact(self.ctx.units[name].contract).abi
