"""Address resolution for onchain-deployments library."""

import logging
from typing import Callable, Dict, Optional, Set

from eth_utils import keccak, to_bytes, to_checksum_address

from .exceptions import ConfigurationError, UnresolvedDependencyError
from .ledger import DeploymentLedger
from .types import Unit

logger = logging.getLogger(__name__)


def bytecode_hash(init_code: bytes) -> str:
    """keccak256 of the init code as 0x-prefixed hex."""
    return "0x" + keccak(init_code).hex()


def compute_create2_address(deployer: str, salt: bytes, init_code: bytes) -> str:
    """
    Predict a CREATE2 address.

    Formula: keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code))[12:]

    Args:
        deployer: Address of the contract executing CREATE2
        salt: 32-byte salt
        init_code: Full init code (bytecode + encoded constructor args)

    Returns:
        Checksummed address
    """
    if len(salt) != 32:
        raise ConfigurationError(f"CREATE2 salt must be 32 bytes, got {len(salt)}")

    preimage = b"\xff" + to_bytes(hexstr=deployer) + salt + keccak(init_code)
    return to_checksum_address(keccak(preimage)[12:])


class AddressResolver:
    """
    Resolves unit addresses for one network.

    Order: addresses settled earlier in this run, CREATE2 pre-computation
    for deterministic units, then the ledger.
    """

    def __init__(
        self,
        network: str,
        ledger: DeploymentLedger,
        units: Dict[str, Unit],
        init_code_builder: Optional[Callable[[Unit], bytes]] = None,
    ):
        self.network = network
        self.ledger = ledger
        self.units = units
        self.init_code_builder = init_code_builder
        self._resolved: Dict[str, str] = {}
        self._precomputed: Dict[str, str] = {}
        self._in_progress: Set[str] = set()

    def settle(self, name: str, address: str) -> None:
        """Record the confirmed address of a unit executed in this run."""
        self._resolved[name] = to_checksum_address(address)

    def precomputed(self, name: str) -> Optional[str]:
        return self._precomputed.get(name)

    def precompute(self, unit: Unit, init_code: bytes) -> str:
        """Deterministic mode: predict the address from the unit's CREATE2 spec."""
        if unit.deterministic is None:
            raise ConfigurationError(f"Unit '{unit.name}' is not deterministic")
        address = compute_create2_address(
            unit.deterministic.factory, unit.deterministic.salt, init_code
        )
        self._precomputed[unit.name] = address
        return address

    def resolve(self, name: str) -> str:
        """
        Get the address of a unit.

        Raises:
            UnresolvedDependencyError: If the unit has no settled, recorded
                or computable address
        """
        if name in self._resolved:
            return self._resolved[name]

        unit = self.units.get(name)
        if unit is not None and unit.deterministic is not None and self.init_code_builder is not None:
            return self._resolve_deterministic(unit)

        # Ledger mode: reuse a prior deployment without touching the network
        record = self.ledger.get(self.network, name)
        if record is not None:
            return to_checksum_address(record.address)

        raise UnresolvedDependencyError(name, "not deployed on network " + self.network)

    def _resolve_deterministic(self, unit: Unit) -> str:
        """
        Address of a deterministic unit that has not executed yet.

        The ledger address is used only while the record's bytecode hash
        still matches the current init code. Otherwise the CREATE2 address
        of the current init code is precomputed and remembered, so the unit
        must land exactly there when it executes.
        """
        name = unit.name
        if name in self._precomputed:
            return self._precomputed[name]
        if name in self._in_progress:
            raise UnresolvedDependencyError(name, "address depends on itself")

        self._in_progress.add(name)
        try:
            init_code = self.init_code_builder(unit)
        finally:
            self._in_progress.discard(name)

        record = self.ledger.get(self.network, name)
        if record is not None and record.bytecode_hash == bytecode_hash(init_code):
            return to_checksum_address(record.address)

        address = self.precompute(unit, init_code)
        if record is not None:
            logger.info(
                "%s init code changed, precomputed new deterministic address %s (was %s)",
                name, address, record.address,
            )
        else:
            logger.info("precomputed deterministic address of %s: %s", name, address)
        return address
