"""Custom exception classes for onchain-deployments library."""

from typing import Iterable, Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when the deployment plan or artifacts are invalid."""

    pass


class ArtifactNotFoundError(ConfigurationError, LookupError):
    """Raised when a unit's contract was never compiled."""

    pass


class MissingDependencyError(ConfigurationError):
    """Raised when a unit references a unit that is not defined."""

    def __init__(self, unit: str, missing: Iterable[str]):
        self.unit = unit
        self.missing = sorted(missing)
        super().__init__(
            f"Unit '{unit}' depends on undefined unit(s): {', '.join(self.missing)}"
        )


class DependencyCycleError(ConfigurationError):
    """Raised when unit dependencies form a cycle."""

    def __init__(self, units: Iterable[str]):
        self.units = list(units)
        super().__init__(
            f"Dependency cycle among units: {', '.join(self.units)}"
        )


class UnresolvedDependencyError(DeploymentError, LookupError):
    """Raised when a referenced unit has no known or computable address."""

    def __init__(self, unit: str, reason: Optional[str] = None):
        self.unit = unit
        message = f"Address of unit '{unit}' cannot be resolved"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BytecodeAdaptationError(DeploymentError, ValueError):
    """Raised when a bytecode patch cannot be applied."""

    pass


class DefectiveRecordError(DeploymentError, ValueError):
    """Raised when a ledger record is unreadable or missing required fields."""

    pass


class TransportError(DeploymentError, RuntimeError):
    """Raised when the node rejects a request or a transaction reverts."""

    pass


class ExecutionError(DeploymentError, RuntimeError):
    """Base for errors raised after transactions may have been submitted."""

    pass


class DeploymentFailedError(ExecutionError):
    """Raised when a unit's deployment transaction fails."""

    def __init__(self, unit: str, cause: BaseException):
        self.unit = unit
        self.cause = cause
        super().__init__(f"Deployment of '{unit}' failed: {cause}")


class WiringCallFailedError(ExecutionError):
    """Raised when a post-deployment wiring call fails."""

    def __init__(self, unit: str, target: str, method: str, cause: BaseException):
        self.unit = unit
        self.target = target
        self.method = method
        self.cause = cause
        super().__init__(
            f"Wiring call {target}.{method} for '{unit}' failed: {cause}"
        )
