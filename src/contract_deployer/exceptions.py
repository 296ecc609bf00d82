"""Custom exception classes for contract-deployer."""

from typing import List, Optional

from .types import FailureKind


class DeployerError(Exception):
    """Base exception for all contract-deployer errors."""

    pass


class ValidationError(DeployerError, ValueError):
    """Raised when user input is malformed. The user is re-prompted."""

    pass


class ConstructorArgumentError(ValidationError):
    """Raised when constructor arguments do not match the declared constructor."""

    pass


class ConfigurationError(DeployerError):
    """Raised when process configuration is missing or inconsistent."""

    pass


class NetworkNotFoundError(ConfigurationError, ValueError):
    """Raised when a network key is not in the network registry."""

    pass


class RegistryNotFoundError(ConfigurationError):
    """Raised when no contract code exists at the configured registry address."""

    pass


class RpcError(DeployerError, RuntimeError):
    """Raised when a JSON-RPC call fails at the transport or node level."""

    pass


class TransportError(DeployerError, RuntimeError):
    """Raised when the chat transport rejects a request."""

    pass


class DeploymentFailure(DeployerError):
    """Terminal failure of a single deployment attempt."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class CompileFailure(DeploymentFailure):
    """Raised when source text cannot be turned into a deployable artifact."""

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__(FailureKind.COMPILE_ERROR, "\n".join(self.messages))


class SubmissionFailure(DeploymentFailure):
    """Raised when building, sending or confirming the creation transaction fails."""

    pass


class RegistryFailure(DeployerError):
    """Raised when the registry cannot be reached. Never fails a deployment."""

    pass


class RegistryError(DeployerError):
    """Base exception for registry data-store rejections."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message)
        self.address = address


class InvalidRecordError(RegistryError, ValueError):
    """Raised when a registration or rename carries an empty or zero field."""

    pass


class AlreadyRegisteredError(RegistryError, ValueError):
    """Raised when a contract address already has an owner."""

    pass


class NotRegisteredError(RegistryError, LookupError):
    """Raised when a contract address has no owner."""

    pass


class NotOwnerError(RegistryError, PermissionError):
    """Raised when the caller does not own the record it tries to change."""

    pass


class RecordNotFoundError(RegistryError, LookupError):
    """Raised when the ownership index and the owner's record list disagree."""

    pass
