"""Data types and dataclasses for onchain-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ArgumentKind(Enum):
    """
    Kinds of constructor/call argument slots.

    Value strings are the keys used in the deployment plan.
    """

    LITERAL = "literal"
    REF = "ref"
    ACCOUNT = "account"
    ENV = "env"
    NETWORK = "network"


@dataclass(frozen=True)
class Argument:
    """One argument slot, resolved against the run context at execution time."""

    kind: ArgumentKind
    value: Any


@dataclass(frozen=True)
class WiringCall:
    """A call made on a deployed unit after another unit is deployed."""

    target: str  # Unit whose contract receives the call
    method: str  # Function name, e.g. "setSettlementAddress"
    args: Tuple[Argument, ...] = ()
    sender: str = "deployer"  # Named account


@dataclass(frozen=True)
class BytecodePatch:
    """A compile-time fingerprint to replace on simulated networks."""

    placeholder: bytes
    source: str  # Unit exposing the actual fingerprint
    method: str  # Zero-argument view returning bytes32


@dataclass(frozen=True)
class DeterministicSpec:
    """CREATE2 parameters for a deterministic deployment."""

    factory: str
    salt: bytes


@dataclass(frozen=True)
class Unit:
    """A named deployment task."""

    name: str
    contract: str
    dependencies: Tuple[str, ...] = ()
    args: Tuple[Argument, ...] = ()
    sender: str = "deployer"
    gas_limit: Optional[int] = None
    deterministic: Optional[DeterministicSpec] = None
    patches: Tuple[BytecodePatch, ...] = ()
    wiring: Tuple[WiringCall, ...] = ()
    tags: Tuple[str, ...] = ()
    networks: Optional[Tuple[str, ...]] = None  # None means every network

    def enabled_on(self, network: str) -> bool:
        return self.networks is None or network in self.networks


@dataclass(frozen=True)
class Artifact:
    """Compiled contract: ABI plus initialization bytecode."""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: bytes


@dataclass(frozen=True)
class NetworkConfig:
    """Target network identity."""

    name: str
    live: bool
    chain_id: Optional[int] = None
    rpc_url: Optional[str] = None
    values: Dict[str, Argument] = field(default_factory=dict)


@dataclass(frozen=True)
class Receipt:
    """Confirmed transaction."""

    transaction_hash: str
    block_number: int
    contract_address: Optional[str] = None
    gas_used: Optional[int] = None


@dataclass
class DeploymentRecord:
    """Persisted deployment of one unit on one network."""

    # Required fields
    address: str  # Checksummed address
    abi: List[Dict[str, Any]]
    bytecode_hash: str  # keccak256 of the full init code

    # Optional fields
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    args: List[Any] = field(default_factory=list)
    bytecode: Optional[str] = None
    deterministic: bool = False
    wired: bool = True
    wired_calls: int = 0  # Leading wiring calls already confirmed
    num_deployments: int = 1


@dataclass
class ExecutionResult:
    """Outcome of executing one unit."""

    name: str
    address: str
    deployed: bool  # A transaction created the contract in this run
    reused: bool  # The ledger (or existing code) short-circuited deployment
    wiring_calls: int = 0
    record: Optional[DeploymentRecord] = None
