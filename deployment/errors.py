class DeploymentError(Exception):
    """Base class for every error that aborts a governance deployment run."""


class ConfigurationError(DeploymentError, ValueError):
    """Raised when an environment variable or the deployer config is missing or invalid."""


class ValidationError(DeploymentError, ValueError):
    """Raised when recipient input data is malformed."""


class InvalidEntitlement(ValidationError):
    """Raised when one or more accounts have a points value outside the entitlement table."""

    def __init__(self, violations):
        self.violations = dict(violations)
        details = ", ".join(f"{account}: {points!r}" for account, points in self.violations.items())
        super().__init__(f"Incorrect number of points for account(s) {details}")


class ChainCallError(DeploymentError):
    """Raised when a deployment or contract transaction fails on-chain or over RPC."""


class CrossChainTimeoutError(DeploymentError):
    """Raised when a retryable cross-chain message does not end up redeemed."""

    def __init__(self, message: str, status=None):
        self.status = status
        super().__init__(message)


class NetworkMismatchError(DeploymentError):
    """Raised when a provider reports a chain ID that is not allowed for the deployment mode."""


class DecodeError(DeploymentError):
    """Raised when an expected event is absent from a confirmed transaction receipt."""


class GasPriceTimeoutError(DeploymentError):
    """Raised when the gas price does not settle back to its base value in time."""
