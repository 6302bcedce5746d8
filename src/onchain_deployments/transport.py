"""Network transport for onchain-deployments library."""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Protocol

import requests
from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import Web3Exception

from .exceptions import TransportError
from .types import Receipt

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Narrow view of the network used by the orchestrator."""

    def chain_id(self) -> int: ...

    def accounts(self) -> List[str]: ...

    def get_code(self, address: str) -> bytes: ...

    def read_method(self, address: str, data: bytes) -> bytes: ...

    def submit_deployment(
        self, init_code: bytes, sender: str, gas_limit: Optional[int] = None
    ) -> Receipt: ...

    def call_method(
        self, address: str, data: bytes, sender: str, gas_limit: Optional[int] = None
    ) -> Receipt: ...


class Web3Transport:
    """
    Transport backed by web3.py.

    Transactions are sent with eth_sendTransaction, so the node must hold
    (or be unlocked for) the sending accounts, as hardhat and anvil nodes do.
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: float = 30,
        confirmation_timeout: float = 300,
        poll_interval: float = 1.0,
        w3: Optional[Web3] = None,
    ):
        if w3 is None:
            if not rpc_url:
                raise TransportError("Web3Transport needs an RPC URL or a Web3 instance")
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.w3 = w3
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval

    @contextmanager
    def _rpc(self, action: str) -> Iterator[None]:
        """Translate web3 and HTTP failures into TransportError."""
        try:
            yield
        except (Web3Exception, requests.RequestException) as e:
            raise TransportError(f"{action} failed: {e}") from e

    def chain_id(self) -> int:
        with self._rpc("eth_chainId"):
            return int(self.w3.eth.chain_id)

    def accounts(self) -> List[str]:
        with self._rpc("eth_accounts"):
            return [to_checksum_address(a) for a in self.w3.eth.accounts]

    def get_code(self, address: str) -> bytes:
        with self._rpc(f"eth_getCode {address}"):
            return bytes(self.w3.eth.get_code(to_checksum_address(address)))

    def read_method(self, address: str, data: bytes) -> bytes:
        with self._rpc(f"eth_call {address}"):
            return bytes(
                self.w3.eth.call({"to": to_checksum_address(address), "data": Web3.to_hex(data)})
            )

    def _send(
        self, sender: str, data: bytes, to: Optional[str], gas_limit: Optional[int]
    ) -> Receipt:
        tx = {"from": to_checksum_address(sender), "data": Web3.to_hex(data)}
        if to is not None:
            tx["to"] = to_checksum_address(to)
        if gas_limit is not None:
            tx["gas"] = gas_limit

        with self._rpc("eth_sendTransaction"):
            tx_hash = self.w3.eth.send_transaction(tx)
        tx_hex = Web3.to_hex(tx_hash)
        logger.debug("sent %s, waiting for confirmation", tx_hex)

        with self._rpc(f"waiting for {tx_hex}"):
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.confirmation_timeout, poll_latency=self.poll_interval
            )

        if receipt["status"] != 1:
            raise TransportError(f"Transaction {tx_hex} reverted")

        contract_address = receipt.get("contractAddress")
        return Receipt(
            transaction_hash=tx_hex,
            block_number=int(receipt["blockNumber"]),
            contract_address=to_checksum_address(contract_address) if contract_address else None,
            gas_used=receipt.get("gasUsed"),
        )

    def submit_deployment(
        self, init_code: bytes, sender: str, gas_limit: Optional[int] = None
    ) -> Receipt:
        receipt = self._send(sender, init_code, None, gas_limit)
        if receipt.contract_address is None:
            raise TransportError(
                f"Deployment transaction {receipt.transaction_hash} created no contract"
            )
        return receipt

    def call_method(
        self, address: str, data: bytes, sender: str, gas_limit: Optional[int] = None
    ) -> Receipt:
        return self._send(sender, data, address, gas_limit)
