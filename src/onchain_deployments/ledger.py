"""Persisted deployment records for onchain-deployments library."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import DefectiveRecordError
from .paths import get_default_deployments_dir, get_record_path, resolve_dir
from .types import DeploymentRecord


def parse_record(data: Dict[str, Any], source: Union[Path, str]) -> DeploymentRecord:
    """
    Build a DeploymentRecord from a hardhat-deploy style JSON document.

    Raises:
        DefectiveRecordError: If required fields are missing
    """
    try:
        address = data["address"]
        abi = data["abi"]
        bytecode_hash = data["bytecodeHash"]
    except KeyError as e:
        raise DefectiveRecordError(f"Missing field {e} in deployment record: {source}") from e

    # Block number from receipt first, fall back to top-level
    block_number = None
    if "receipt" in data and "blockNumber" in data["receipt"]:
        block_number = data["receipt"]["blockNumber"]
    elif "blockNumber" in data:
        block_number = data["blockNumber"]

    return DeploymentRecord(
        address=address,
        abi=abi,
        bytecode_hash=bytecode_hash,
        transaction_hash=data.get("transactionHash"),
        block_number=block_number,
        args=data.get("args", []),
        bytecode=data.get("bytecode"),
        deterministic=data.get("deterministic", False),
        wired=data.get("wired", True),
        wired_calls=data.get("wiredCalls", 0),
        num_deployments=data.get("numDeployments", 1),
    )


def record_to_json(record: DeploymentRecord) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "address": record.address,
        "abi": record.abi,
        "bytecodeHash": record.bytecode_hash,
        "args": record.args,
        "deterministic": record.deterministic,
        "wired": record.wired,
        "wiredCalls": record.wired_calls,
        "numDeployments": record.num_deployments,
    }
    if record.transaction_hash is not None:
        result["transactionHash"] = record.transaction_hash
    if record.block_number is not None:
        result["receipt"] = {
            "transactionHash": record.transaction_hash,
            "blockNumber": record.block_number,
        }
    if record.bytecode is not None:
        result["bytecode"] = record.bytecode
    return result


def _write_durably(path: Path, content: str) -> None:
    """Write via temp file + fsync + rename so readers never see partial data."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class DeploymentLedger:
    """Deployment records keyed by (network, unit name), one JSON file each."""

    def __init__(self, deployments_dir: Optional[Union[Path, str]] = None):
        self.root = resolve_dir(deployments_dir, get_default_deployments_dir())

    def get(self, network: str, unit_name: str) -> Optional[DeploymentRecord]:
        """
        Get the record for a unit.

        Returns:
            DeploymentRecord, or None if the unit was never deployed on the network

        Raises:
            DefectiveRecordError: If the record file exists but is unreadable
        """
        path = get_record_path(self.root, network, unit_name)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise DefectiveRecordError(f"Corrupted deployment record {path}: {e}") from e

        return parse_record(data, path)

    def put(self, network: str, unit_name: str, record: DeploymentRecord) -> None:
        """Persist a record, replacing any previous one for the unit."""
        path = get_record_path(self.root, network, unit_name)
        _write_durably(path, json.dumps(record_to_json(record), indent=2))

    def names(self, network: str) -> List[str]:
        """Names of units with a record on the network."""
        network_dir = self.root / network
        if not network_dir.exists():
            return []
        return sorted(p.stem for p in network_dir.glob("*.json"))

    def write_chain_id(self, network: str, chain_id: int) -> None:
        """Record which chain the network's records belong to."""
        path = self.root / network / ".chainId"
        if path.exists() and path.read_text().strip() == str(chain_id):
            return
        _write_durably(path, str(chain_id))
