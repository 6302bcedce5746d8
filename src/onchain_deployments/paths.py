"""Path management utilities for onchain-deployments library."""

from pathlib import Path
from typing import Optional, Union


def get_default_deployments_dir() -> Path:
    """
    Get default ledger directory.

    Returns:
        Path to ./deployments
    """
    return Path.cwd() / "deployments"


def get_default_artifacts_dir() -> Path:
    """
    Get default compiler artifacts directory.

    Returns:
        Path to ./artifacts
    """
    return Path.cwd() / "artifacts"


def resolve_dir(path: Optional[Union[Path, str]], default: Path) -> Path:
    """Return `path` as an absolute Path, or `default` when None."""
    if path is None:
        return default
    return Path(path).absolute()


def get_record_path(deployments_root: Path, network: str, unit_name: str) -> Path:
    """
    Get the ledger file for a unit.

    Args:
        deployments_root: Ledger root directory
        network: Network name
        unit_name: Unit name

    Returns:
        Path to <root>/<network>/<unit_name>.json
    """
    return deployments_root / network / f"{unit_name}.json"
