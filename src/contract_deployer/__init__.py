"""
contract-deployer: chat bot that compiles, deploys and registers smart contracts
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import ArtifactResolver, SolcCompiler
from .config import Settings
from .exceptions import (
    CompileFailure,
    ConfigurationError,
    DeployerError,
    DeploymentFailure,
    NetworkNotFoundError,
    RegistryError,
    RegistryFailure,
    SubmissionFailure,
    ValidationError,
)
from .executor import DeploymentExecutor
from .ledger import ContractRegistry
from .networks import NetworkRegistry
from .registry import LocalRegistryClient, RegistryClient
from .types import DeployedContractRecord, DeploymentResult, FailureKind, Session, Step
from .workflow import DeploymentWorkflow

try:
    __version__ = version("contract-deployer")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentWorkflow",
    "DeploymentExecutor",
    "ArtifactResolver",
    "SolcCompiler",
    "NetworkRegistry",
    "RegistryClient",
    "LocalRegistryClient",
    "ContractRegistry",
    "Settings",
    "Session",
    "Step",
    "FailureKind",
    "DeploymentResult",
    "DeployedContractRecord",
    "DeployerError",
    "ValidationError",
    "ConfigurationError",
    "NetworkNotFoundError",
    "DeploymentFailure",
    "CompileFailure",
    "SubmissionFailure",
    "RegistryFailure",
    "RegistryError",
]
