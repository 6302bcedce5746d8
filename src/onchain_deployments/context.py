"""Per-run state threaded through the orchestrator components."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from eth_utils import is_address, to_checksum_address

from .abi import encode_constructor_args, encode_view_call
from .addresses import AddressResolver
from .artifacts import ArtifactProvider
from .bytecode import adapt, decode_fingerprint
from .exceptions import ConfigurationError
from .ledger import DeploymentLedger
from .transport import Transport
from .types import Argument, ArgumentKind, BytecodePatch, NetworkConfig, Unit

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """
    Everything one orchestrator run needs, passed explicitly.

    Cached values (chain id, accounts, probe results) live only as long as
    the context, so they never leak from one network to another.
    """

    network: NetworkConfig
    transport: Transport
    ledger: DeploymentLedger
    artifacts: ArtifactProvider
    units: Dict[str, Unit]
    accounts: Dict[str, Union[str, int]] = field(default_factory=dict)
    chain_id_overrides: Dict[str, int] = field(default_factory=dict)
    force_wiring: bool = False

    resolver: AddressResolver = field(init=False)
    _chain_id: Optional[int] = field(default=None, init=False)
    _node_accounts: Optional[List[str]] = field(default=None, init=False)
    _probes: Dict[Tuple[str, str], bytes] = field(default_factory=dict, init=False)

    def __post_init__(self):
        self.resolver = AddressResolver(
            self.network.name,
            self.ledger,
            {
                name: unit
                for name, unit in self.units.items()
                if unit.enabled_on(self.network.name)
            },
            self.build_init_code,
        )

    def chain_id(self) -> int:
        """Chain id for constructor arguments, honouring configured overrides."""
        if self.network.name in self.chain_id_overrides:
            return self.chain_id_overrides[self.network.name]
        if self._chain_id is None:
            self._chain_id = self.transport.chain_id()
        return self._chain_id

    def account(self, role: str) -> str:
        """
        Address of a named account.

        Raises:
            ConfigurationError: If the role is unknown or its index is out of range
        """
        if role not in self.accounts:
            raise ConfigurationError(f"Unknown named account '{role}'")

        value = self.accounts[role]
        if isinstance(value, int):
            if self._node_accounts is None:
                self._node_accounts = self.transport.accounts()
            if value >= len(self._node_accounts):
                raise ConfigurationError(
                    f"Named account '{role}' is index {value}, "
                    f"node has {len(self._node_accounts)} account(s)"
                )
            return self._node_accounts[value]

        if not is_address(value):
            raise ConfigurationError(f"Named account '{role}' is not an address: {value!r}")
        return to_checksum_address(value)

    def resolve_argument(self, argument: Argument) -> Any:
        kind = argument.kind
        if kind is ArgumentKind.LITERAL:
            return argument.value
        if kind is ArgumentKind.REF:
            return self.resolver.resolve(argument.value)
        if kind is ArgumentKind.ACCOUNT:
            return self.account(argument.value)
        if kind is ArgumentKind.ENV:
            # Only chainId is accepted by the plan parser
            return self.chain_id()
        if kind is ArgumentKind.NETWORK:
            if argument.value not in self.network.values:
                raise ConfigurationError(
                    f"Network '{self.network.name}' has no value '{argument.value}'"
                )
            return self.resolve_argument(self.network.values[argument.value])
        raise ConfigurationError(f"Unsupported argument kind {kind}")

    def probe(self, patch: BytecodePatch) -> bytes:
        """Read the actual fingerprint for a patch from the simulated network."""
        key = (patch.source, patch.method)
        if key not in self._probes:
            address = self.resolver.resolve(patch.source)
            result = self.transport.read_method(address, encode_view_call(patch.method))
            self._probes[key] = decode_fingerprint(result, len(patch.placeholder))
            logger.debug("probed %s.%s at %s", patch.source, patch.method, address)
        return self._probes[key]

    def adapted_bytecode(self, unit: Unit) -> bytes:
        artifact = self.artifacts.get_artifact(unit.contract)
        return adapt(artifact.bytecode, unit.patches, self.network, self.probe)

    def constructor_args(self, unit: Unit) -> List[Any]:
        return [self.resolve_argument(arg) for arg in unit.args]

    def build_init_code(self, unit: Unit, args: Optional[List[Any]] = None) -> bytes:
        """Adapted bytecode followed by the ABI-encoded constructor arguments."""
        if args is None:
            args = self.constructor_args(unit)
        artifact = self.artifacts.get_artifact(unit.contract)
        return self.adapted_bytecode(unit) + encode_constructor_args(
            artifact.abi, args, f"Unit '{unit.name}' constructor"
        )
