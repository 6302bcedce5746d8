"""Shared pytest fixtures for onchain-deployments tests."""

from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest
from eth_utils import keccak, to_checksum_address

from onchain_deployments.config import load_plan
from onchain_deployments.constants import DETERMINISTIC_DEPLOYMENT_PROXY
from onchain_deployments.exceptions import TransportError
from onchain_deployments.orchestrator import build_context
from onchain_deployments.types import Receipt

PLACEHOLDER = bytes.fromhex("e18a34eb0e04b04f7a0ac29a6e80748dca96319b42c54d679cb821dca90c6303")
PAIR_CODE_HASH = bytes.fromhex("1f2e3d4c5b6a79880000000000000000000000000000000000000000000000aa")
PAIR_CODE_HASH_CALL = keccak(text="pairCodeHash()")[:4]


class FakeTransport:
    """In-memory chain implementing the Transport protocol."""

    def __init__(self, chain_id: int = 31337):
        self._chain_id = chain_id
        self._accounts = [to_checksum_address(f"0x{i:040x}") for i in range(0xA1, 0xA6)]
        self._nonces: Dict[str, int] = {}
        self._block = 100
        self.code: Dict[str, bytes] = {}
        self.deployments: List[Tuple[str, bytes]] = []  # (address, init_code)
        self.calls: List[Tuple[str, bytes, str]] = []  # (address, data, sender)
        self.reads: Dict[bytes, bytes] = {PAIR_CODE_HASH_CALL: PAIR_CODE_HASH}
        self.failing_bytecode: Set[bytes] = set()
        self.failing_selectors: Set[bytes] = set()
        self.requests: List[str] = []

    def _receipt(self, address: Optional[str] = None) -> Receipt:
        self._block += 1
        return Receipt(
            transaction_hash="0x" + keccak(self._block.to_bytes(32, "big")).hex(),
            block_number=self._block,
            contract_address=address,
            gas_used=21000,
        )

    def _check_init_code(self, init_code: bytes) -> None:
        if any(init_code.startswith(code) for code in self.failing_bytecode):
            raise TransportError("execution reverted")

    def chain_id(self) -> int:
        self.requests.append("chain_id")
        return self._chain_id

    def accounts(self) -> List[str]:
        self.requests.append("accounts")
        return list(self._accounts)

    def get_code(self, address: str) -> bytes:
        self.requests.append("get_code")
        return self.code.get(to_checksum_address(address), b"")

    def read_method(self, address: str, data: bytes) -> bytes:
        self.requests.append("read_method")
        if data not in self.reads:
            raise TransportError("execution reverted")
        return self.reads[data]

    def submit_deployment(self, init_code, sender, gas_limit=None) -> Receipt:
        self.requests.append("submit_deployment")
        self._check_init_code(init_code)
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        address = to_checksum_address(
            keccak(bytes.fromhex(sender[2:]) + nonce.to_bytes(32, "big"))[12:]
        )
        self.code[address] = b"\x60\x80"
        self.deployments.append((address, init_code))
        return self._receipt(address)

    def call_method(self, address, data, sender, gas_limit=None) -> Receipt:
        self.requests.append("call_method")
        if address.lower() == DETERMINISTIC_DEPLOYMENT_PROXY:
            salt, init_code = data[:32], data[32:]
            self._check_init_code(init_code)
            created = to_checksum_address(
                keccak(
                    b"\xff"
                    + bytes.fromhex(DETERMINISTIC_DEPLOYMENT_PROXY[2:])
                    + salt
                    + keccak(init_code)
                )[12:]
            )
            self.code[created] = b"\x60\x80"
            self.deployments.append((created, init_code))
            return self._receipt()

        if data[:4] in self.failing_selectors:
            raise TransportError("execution reverted")
        self.calls.append((to_checksum_address(address), data, sender))
        return self._receipt()

    @property
    def node_accounts(self) -> List[str]:
        return list(self._accounts)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def artifacts_dir(fixtures_dir: Path) -> Path:
    """Return the path to the sample hardhat artifacts."""
    return fixtures_dir / "artifacts"


@pytest.fixture
def plan_path(fixtures_dir: Path) -> Path:
    """Return the path to the sample deployment plan."""
    return fixtures_dir / "deploy_plan.json"


@pytest.fixture
def deployments_dir(tmp_path: Path) -> Path:
    """Create a temporary ledger directory for tests."""
    path = tmp_path / "deployments"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def fake_transport() -> FakeTransport:
    """An empty in-memory chain."""
    return FakeTransport()


@pytest.fixture
def make_context(plan_path: Path, artifacts_dir: Path, deployments_dir: Path):
    """Factory building a RunContext for the sample plan on a given network."""

    def _make(network: str = "hardhat", transport=None, force_wiring: bool = False, plan=None):
        if plan is None:
            plan = load_plan(plan_path, network)
        return build_context(
            plan,
            transport=transport if transport is not None else FakeTransport(),
            artifacts_dir=artifacts_dir,
            deployments_dir=deployments_dir,
            force_wiring=force_wiring,
        )

    return _make
