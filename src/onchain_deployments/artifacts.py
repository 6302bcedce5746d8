"""Compiler artifact lookup for onchain-deployments library."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import ArtifactNotFoundError, ConfigurationError
from .paths import get_default_artifacts_dir, resolve_dir
from .types import Artifact


def parse_artifact(file_path: Path) -> Artifact:
    """
    Parse a hardhat artifact JSON file.

    Args:
        file_path: Path to <Name>.json produced by the compiler

    Returns:
        Artifact with bytecode decoded to bytes

    Raises:
        ArtifactNotFoundError: If the artifact has no bytecode (interface or abstract)
        ConfigurationError: If the bytecode still contains library link placeholders
    """
    with open(file_path) as f:
        data = json.load(f)

    name = data.get("contractName", file_path.stem)
    bytecode_hex = data.get("bytecode") or "0x"
    if bytecode_hex.startswith("0x"):
        bytecode_hex = bytecode_hex[2:]

    if not bytecode_hex:
        raise ArtifactNotFoundError(f"Artifact '{name}' has no bytecode (abstract or interface)")

    # Unlinked libraries appear as __$<hash>$__ markers
    if "__" in bytecode_hex:
        raise ConfigurationError(f"Artifact '{name}' has unlinked library references")

    try:
        bytecode = bytes.fromhex(bytecode_hex)
    except ValueError as e:
        raise ConfigurationError(f"Artifact '{name}' has invalid bytecode: {e}") from e

    return Artifact(name=name, abi=data.get("abi", []), bytecode=bytecode)


class ArtifactProvider:
    """Looks up compiled contracts in a hardhat artifacts directory."""

    def __init__(self, artifacts_dir: Optional[Union[Path, str]] = None):
        self.root = resolve_dir(artifacts_dir, get_default_artifacts_dir())
        self._index: Optional[Dict[str, List[Path]]] = None
        self._cache: Dict[str, Artifact] = {}

    def _build_index(self) -> Dict[str, List[Path]]:
        index: Dict[str, List[Path]] = {}
        if not self.root.exists():
            return index

        for path in sorted(self.root.rglob("*.json")):
            # Skip debug sidecars and raw compiler input/output
            if path.name.endswith(".dbg.json") or "build-info" in path.parts:
                continue
            index.setdefault(path.stem, []).append(path)
        return index

    def get_artifact(self, name: str) -> Artifact:
        """
        Get the artifact for a contract name.

        Raises:
            ArtifactNotFoundError: If the contract was never compiled
            ConfigurationError: If several artifacts share the name
        """
        if name in self._cache:
            return self._cache[name]

        if self._index is None:
            self._index = self._build_index()

        paths = self._index.get(name)
        if not paths:
            raise ArtifactNotFoundError(f"Artifact '{name}' not found under {self.root}")
        if len(paths) > 1:
            locations = ", ".join(str(p.relative_to(self.root)) for p in paths)
            raise ConfigurationError(f"Artifact name '{name}' is ambiguous: {locations}")

        artifact = parse_artifact(paths[0])
        self._cache[name] = artifact
        return artifact
