"""Shared pytest fixtures for contract-deployer tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from eth_account import Account

from contract_deployer.artifacts import ArtifactResolver, CompilerOutput
from contract_deployer.executor import DeploymentExecutor
from contract_deployer.ledger import ContractRegistry
from contract_deployer.networks import NetworkRegistry
from contract_deployer.registry import LocalRegistryClient
from contract_deployer.workflow import DeploymentWorkflow

DEMO_KEY = "0x" + "11" * 32
USER_KEY = "0x" + "22" * 32
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
FIXED_TIMESTAMP = 1700000000


class FakeTransport:
    """Chat transport that records every message instead of sending it."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    async def send(self, chat_id, text, options=None):
        self.sent.append({"chat_id": chat_id, "text": text, "options": options or {}})

    def texts(self, chat_id=None) -> List[str]:
        return [m["text"] for m in self.sent if chat_id is None or m["chat_id"] == chat_id]

    def last(self, chat_id=None) -> str:
        return self.texts(chat_id)[-1]

    def tokens(self, index: int = -1) -> List[str]:
        keyboard = self.sent[index]["options"].get("keyboard", [])
        return [token for row in keyboard for _, token in row]


class FakeCompiler:
    """Compiler returning a canned CompilerOutput."""

    def __init__(self, output: Optional[CompilerOutput] = None):
        self.output = output or CompilerOutput()
        self.sources: List[str] = []

    def compile(self, source_text: str) -> CompilerOutput:
        self.sources.append(source_text)
        return self.output


class FakeSigner:
    """
    Signer stand-in with deterministic transaction hashes.

    Every transaction is recorded; creation transactions confirm at
    CONTRACT_ADDRESS in block 16.
    """

    def __init__(self, private_key: str, chain_id: int, fail_with: Optional[Exception] = None):
        self.address = Account.from_key(private_key).address
        self.chain_id = chain_id
        self.fail_with = fail_with
        self.transactions: List[Dict[str, Any]] = []
        self.receipt: Dict[str, Any] = {
            "status": "0x1",
            "contractAddress": CONTRACT_ADDRESS.lower(),
            "blockNumber": "0x10",
        }

    async def create_transaction(self, data: str, to: Optional[str] = None, value: int = 0) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.transactions.append({"data": data, "to": to, "value": value})
        return "0x" + f"{len(self.transactions):064x}"

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        return dict(self.receipt, transactionHash=tx_hash)


class FakeSignerFactory:
    """Signer factory that remembers the signers it built."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.fail_with = fail_with
        # Merged into every signer's receipt
        self.receipt_overrides: Dict[str, Any] = {}
        self.signers: List[FakeSigner] = []

    def __call__(self, private_key, network):
        signer = FakeSigner(private_key, network.chain_id, self.fail_with)
        signer.receipt.update(self.receipt_overrides)
        self.signers.append(signer)
        return signer


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def counter_artifact(fixtures_dir: Path) -> Dict[str, Any]:
    """Load the Counter bytecode + ABI fixture."""
    with open(fixtures_dir / "counter_artifact.json") as f:
        return json.load(f)


@pytest.fixture
def networks() -> NetworkRegistry:
    """Network registry with the built-in table and no RPC overrides."""
    return NetworkRegistry(env={})


@pytest.fixture
def ledger() -> ContractRegistry:
    """Registry data store with a fixed clock."""
    return ContractRegistry(clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def signer_factory() -> FakeSignerFactory:
    return FakeSignerFactory()


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def make_workflow(networks, transport, signer_factory, compiler):
    """Build a DeploymentWorkflow around the fakes."""

    def build(registry="local", demo_key: Optional[str] = DEMO_KEY, ledger=None):
        if registry == "local":
            registry = LocalRegistryClient(ledger or ContractRegistry(clock=lambda: FIXED_TIMESTAMP))
        executor = DeploymentExecutor(
            networks,
            ArtifactResolver(compiler),
            registry=registry,
            signer_factory=signer_factory,
        )
        return DeploymentWorkflow(
            transport, networks, executor, registry=registry, demo_key=demo_key
        )

    return build
