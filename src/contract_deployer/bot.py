"""Wiring of the chat bot and the registry bootstrap for contract-deployer."""

import asyncio
import logging
from importlib.resources import files
from typing import Optional

from .artifacts import ArtifactResolver, SolcCompiler
from .config import Settings
from .exceptions import ConfigurationError
from .executor import DeploymentExecutor, make_signer_factory
from .networks import NetworkRegistry
from .registry import RegistryClient
from .rpc import JsonRpcClient
from .telegram import TelegramTransport
from .types import DeploymentResult, InputKind, Session, SourceArtifact, Step
from .workflow import ChatTransport, DeploymentWorkflow

logger = logging.getLogger(__name__)

COMMANDS = ("start", "help", "networks", "deploy", "mycontracts", "cancel")
REGISTRY_SOURCE = "ContractRegistry.sol"


def registry_source() -> str:
    """Solidity source of the bundled ContractRegistry."""
    return files(__package__).joinpath("contracts", REGISTRY_SOURCE).read_text(encoding="utf-8")


def build_executor(
    settings: Settings,
    networks: NetworkRegistry,
    registry: Optional[RegistryClient] = None,
) -> DeploymentExecutor:
    resolver = ArtifactResolver(
        SolcCompiler(settings.solc_version), policy=settings.multi_contract_policy
    )
    return DeploymentExecutor(
        networks,
        resolver,
        registry=registry,
        signer_factory=make_signer_factory(settings.receipt_timeout),
    )


def build_workflow(settings: Settings, transport: ChatTransport) -> DeploymentWorkflow:
    """Assemble the workflow and its collaborators from settings."""
    networks = NetworkRegistry()

    registry: Optional[RegistryClient] = None
    if settings.registry_enabled:
        registry_network = networks.get(settings.registry_network)
        registry = RegistryClient(
            settings.registry_address,
            registry_network,
            JsonRpcClient(registry_network.rpc_url, receipt_timeout=settings.receipt_timeout),
        )
        logger.info(
            "Contract registry %s on %s", settings.registry_address, registry_network.name
        )
    else:
        logger.warning("CONTRACT_REGISTRY_ADDRESS not set, registration and lookup disabled")

    if not settings.has_demo_key:
        logger.info("No usable demo key configured, users must supply their own")

    return DeploymentWorkflow(
        transport,
        networks,
        build_executor(settings, networks, registry),
        registry=registry,
        demo_key=settings.demo_private_key,
    )


def attach(workflow: DeploymentWorkflow, transport: TelegramTransport) -> None:
    """Route transport events into the workflow."""
    for name in COMMANDS:

        async def command(chat_id, name=name):
            await workflow.handle_command(chat_id, name)

        transport.on_command(name, command)

    transport.on_selection("*", workflow.handle_selection)
    transport.on_free_text(workflow.handle_text)


async def run(settings: Settings, stop: Optional[asyncio.Event] = None) -> None:
    """Run the bot until stop is set or the task is cancelled."""
    transport = TelegramTransport(settings.telegram_bot_token)
    workflow = build_workflow(settings, transport)
    attach(workflow, transport)

    logger.info("Contract deployer bot started")
    try:
        await transport.run_polling(stop)
    finally:
        await workflow.drain()
        logger.info("Contract deployer bot stopped")


async def deploy_registry(settings: Settings, network_key: str) -> DeploymentResult:
    """
    Compile and deploy the bundled ContractRegistry with the demo key.

    Raises:
        ConfigurationError: If no usable PRIVATE_KEY is configured or the
                            network is unknown
        DeploymentFailure: If compilation or deployment fails
    """
    if not settings.has_demo_key:
        raise ConfigurationError("PRIVATE_KEY must be set to deploy the registry")

    networks = NetworkRegistry()
    networks.get(network_key)

    session = Session(
        step=Step.DEPLOYING,
        input_kind=InputKind.SOURCE_TEXT,
        raw_artifact=SourceArtifact(source_text=registry_source()),
        constructor_args=[],
        contract_name="ContractRegistry",
        network=network_key,
        confirmed=True,
        signing_key=settings.demo_private_key,
    )

    async def progress(stage, details):
        logger.info("Registry deployment: %s", stage)

    return await build_executor(settings, networks).execute(session, progress)
