"""
onchain-deployments: dependency-ordered, idempotent smart contract deployments
"""

from importlib.metadata import PackageNotFoundError, version

from .addresses import AddressResolver, bytecode_hash, compute_create2_address
from .artifacts import ArtifactProvider
from .bytecode import adapt, replace_all
from .config import DeploymentPlan, load_plan
from .context import RunContext
from .exceptions import (
    ArtifactNotFoundError,
    BytecodeAdaptationError,
    ConfigurationError,
    DefectiveRecordError,
    DependencyCycleError,
    DeploymentError,
    DeploymentFailedError,
    ExecutionError,
    MissingDependencyError,
    TransportError,
    UnresolvedDependencyError,
    WiringCallFailedError,
)
from .ledger import DeploymentLedger
from .orchestrator import Orchestrator, RunReport, build_context, deploy
from .scheduler import schedule, select_units
from .transport import Transport, Web3Transport
from .types import Artifact, DeploymentRecord, NetworkConfig, Unit

try:
    __version__ = version("onchain-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "deploy",
    "build_context",
    "Orchestrator",
    "RunReport",
    "RunContext",
    "DeploymentPlan",
    "load_plan",
    "ArtifactProvider",
    "AddressResolver",
    "DeploymentLedger",
    "Web3Transport",
    "Transport",
    "adapt",
    "replace_all",
    "bytecode_hash",
    "compute_create2_address",
    "schedule",
    "select_units",
    "Artifact",
    "DeploymentRecord",
    "NetworkConfig",
    "Unit",
    "DeploymentError",
    "ConfigurationError",
    "ArtifactNotFoundError",
    "MissingDependencyError",
    "DependencyCycleError",
    "UnresolvedDependencyError",
    "BytecodeAdaptationError",
    "DefectiveRecordError",
    "TransportError",
    "ExecutionError",
    "DeploymentFailedError",
    "WiringCallFailedError",
]
