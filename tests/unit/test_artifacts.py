"""Unit tests for compiler artifact lookup."""

import json
from pathlib import Path

import pytest

from onchain_deployments.artifacts import ArtifactProvider, parse_artifact
from onchain_deployments.exceptions import ArtifactNotFoundError, ConfigurationError


def write_artifact(root: Path, relative: str, bytecode: str, abi=None) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"contractName": path.stem, "abi": abi or [], "bytecode": bytecode})
    )
    return path


class TestArtifactProvider:
    """Test the ArtifactProvider class."""

    def test_finds_nested_artifact(self, artifacts_dir: Path):
        """Test lookup of an artifact in a nested source directory."""
        artifact = ArtifactProvider(artifacts_dir).get_artifact("UniswapV2Factory")

        assert artifact.name == "UniswapV2Factory"
        assert artifact.bytecode.startswith(b"\x60\x80")
        assert any(item.get("name") == "pairCodeHash" for item in artifact.abi)

    def test_skips_debug_and_build_info(self, artifacts_dir: Path):
        """Test that .dbg.json and build-info files are not artifacts."""
        provider = ArtifactProvider(artifacts_dir)

        assert provider.get_artifact("OrderBook").name == "OrderBook"
        with pytest.raises(ArtifactNotFoundError):
            provider.get_artifact("0f1e2d")

    def test_missing_artifact(self, artifacts_dir: Path):
        """Test that a contract never compiled is reported."""
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            ArtifactProvider(artifacts_dir).get_artifact("Ghost")

        assert "Ghost" in str(exc_info.value)

    def test_missing_directory(self, tmp_path: Path):
        """Test that a missing artifacts directory behaves like an empty one."""
        with pytest.raises(ArtifactNotFoundError):
            ArtifactProvider(tmp_path / "nope").get_artifact("OrderBook")

    def test_ambiguous_name(self, tmp_path: Path):
        """Test that two artifacts with one name are rejected."""
        write_artifact(tmp_path, "contracts/a/Token.sol/Token.json", "0x6080")
        write_artifact(tmp_path, "contracts/b/Token.sol/Token.json", "0x6081")

        with pytest.raises(ConfigurationError):
            ArtifactProvider(tmp_path).get_artifact("Token")

    def test_deterministic_for_a_build(self, artifacts_dir: Path):
        """Test that repeated lookups return the same artifact."""
        provider = ArtifactProvider(artifacts_dir)

        assert provider.get_artifact("Settlement") == ArtifactProvider(artifacts_dir).get_artifact("Settlement")

    def test_not_found_is_configuration_error(self, artifacts_dir: Path):
        """Test that ArtifactNotFoundError is a configuration error."""
        with pytest.raises(ConfigurationError):
            ArtifactProvider(artifacts_dir).get_artifact("Ghost")


class TestParseArtifact:
    """Test the parse_artifact function."""

    def test_interface_has_no_bytecode(self, tmp_path: Path):
        """Test that interfaces cannot be deployed."""
        path = write_artifact(tmp_path, "IOrderBook.json", "0x")

        with pytest.raises(ArtifactNotFoundError):
            parse_artifact(path)

    def test_unlinked_library(self, tmp_path: Path):
        """Test that unlinked library placeholders are rejected."""
        path = write_artifact(
            tmp_path, "Linked.json", "0x6080__$1234567890abcdef1234567890abcdef12$__6080"
        )

        with pytest.raises(ConfigurationError):
            parse_artifact(path)

    def test_bytecode_decoded_to_bytes(self, tmp_path: Path):
        """Test that bytecode is a typed byte buffer."""
        path = write_artifact(tmp_path, "Token.json", "0x60806040")

        assert parse_artifact(path).bytecode == b"\x60\x80\x60\x40"
