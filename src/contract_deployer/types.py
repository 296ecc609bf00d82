"""Data types and dataclasses for contract-deployer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Step(Enum):
    """Position of a chat in the deployment or lookup workflow."""

    CONTRACT_INPUT = "contract_input"
    AWAITING_ARTIFACT = "awaiting_artifact"
    AWAITING_CONSTRUCTOR_ARGS = "awaiting_constructor_args"
    AWAITING_NAME = "awaiting_name"
    AWAITING_NETWORK = "awaiting_network"
    AWAITING_KEY_CHOICE = "awaiting_key_choice"
    AWAITING_KEY = "awaiting_key"
    DEPLOYING = "deploying"
    AWAITING_ADDRESS_LOOKUP = "awaiting_address_lookup"


class InputKind(Enum):
    """
    How the user supplies the contract.

    Value strings match the selection tokens offered in chat.
    """

    BYTECODE_AND_INTERFACE = "bytecode_abi"
    SOURCE_TEXT = "solidity"


class FailureKind(Enum):
    """Classification of a failed deployment attempt."""

    COMPILE_ERROR = "compile_error"
    INVALID_CONSTRUCTOR_ARGS = "invalid_constructor_args"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NONCE_CONFLICT = "nonce_conflict"
    GAS_ERROR = "gas_error"
    CONFIGURATION_ERROR = "configuration_error"
    UNKNOWN_ERROR = "unknown_error"


class MultiContractPolicy(Enum):
    """What to do when compiled source yields more than one contract."""

    FIRST = "first"
    REJECT = "reject"


@dataclass
class NetworkConfig:
    """Static description of a deployment target."""

    key: str  # e.g., "mantle-testnet"
    name: str  # Display name
    rpc_url: str
    chain_id: int
    is_testnet: bool
    recommended: bool = False
    block_explorer_url: Optional[str] = None


@dataclass
class Artifact:
    """Bytecode plus the interface (ABI) used to encode constructor arguments."""

    bytecode: str  # 0x-prefixed hex
    abi: List[Dict[str, Any]]


@dataclass
class SourceArtifact:
    """Raw source text, compiled only when a deployment attempt starts."""

    source_text: str


RawArtifact = Union[Artifact, SourceArtifact]


@dataclass
class Session:
    """Per-chat workflow state. Owned by the SessionStore."""

    step: Step = Step.CONTRACT_INPUT
    input_kind: Optional[InputKind] = None
    raw_artifact: Optional[RawArtifact] = None
    constructor_args: List[Any] = field(default_factory=list)
    contract_name: Optional[str] = None
    network: Optional[str] = None
    # Set once the deployment summary has been confirmed
    confirmed: bool = False
    # Present only between key adoption and the end of the attempt
    signing_key: Optional[str] = field(default=None, repr=False)
    lookup_address: Optional[str] = None


@dataclass
class DeployedContractRecord:
    """One registry entry, as stored per owner."""

    name: str
    contract_address: str  # Checksummed address
    network: str  # Network label, opaque to the registry
    timestamp: int  # Unix timestamp assigned at registration
    tx_hash: str  # 0x-prefixed 32-byte hex
    deployer: str  # Checksummed address of the registering caller


@dataclass
class RegistryEvent:
    """Event emitted by the registry on register or rename."""

    name: str  # "ContractRegistered" or "ContractRenamed"
    args: Dict[str, Any]


@dataclass
class DeploymentResult:
    """Outcome of a successful deployment attempt."""

    contract_address: str
    tx_hash: str
    block_number: int
    network: str
    registry_tx_hash: Optional[str] = None
    registry_attempted: bool = False

    @property
    def registration_failed(self) -> bool:
        return self.registry_attempted and self.registry_tx_hash is None
