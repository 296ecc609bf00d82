"""Deployment pipeline for contract-deployer."""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from eth_utils import to_checksum_address

from .artifacts import ArtifactResolver
from .constants import DEFAULT_RECEIPT_TIMEOUT
from .exceptions import (
    ConfigurationError,
    ConstructorArgumentError,
    DeploymentFailure,
    SubmissionFailure,
)
from .networks import NetworkRegistry
from .parsers import encode_constructor_args
from .registry import RegistryAdapter
from .rpc import JsonRpcClient, Signer
from .types import DeploymentResult, FailureKind, InputKind, NetworkConfig, Session

logger = logging.getLogger(__name__)

SignerFactory = Callable[[str, NetworkConfig], Signer]

# Called with a stage name ("deploying", "compiling", "submitted",
# "registering") and stage details
ProgressCallback = Callable[[str, Dict[str, Any]], Awaitable[None]]


def make_signer_factory(receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT) -> SignerFactory:
    """Signer factory that talks to each network's configured RPC endpoint."""

    def factory(private_key: str, network: NetworkConfig) -> Signer:
        rpc = JsonRpcClient(network.rpc_url, receipt_timeout=receipt_timeout)
        return Signer(private_key, rpc, network.chain_id)

    return factory


def classify_failure(error: Exception) -> DeploymentFailure:
    """
    Map an exception raised during an attempt onto a DeploymentFailure.

    First match wins: already classified, bad constructor arguments,
    configuration, insufficient funds, nonce, gas, anything else.
    """
    if isinstance(error, DeploymentFailure):
        return error
    if isinstance(error, ConstructorArgumentError):
        return SubmissionFailure(FailureKind.INVALID_CONSTRUCTOR_ARGS, str(error))
    if isinstance(error, ConfigurationError):
        return DeploymentFailure(FailureKind.CONFIGURATION_ERROR, str(error))

    message = str(error) or type(error).__name__
    lowered = message.lower()
    if "insufficient funds" in lowered:
        return SubmissionFailure(FailureKind.INSUFFICIENT_FUNDS, message)
    if "nonce" in lowered:
        return SubmissionFailure(FailureKind.NONCE_CONFLICT, message)
    if "gas" in lowered:
        return SubmissionFailure(FailureKind.GAS_ERROR, message)
    return SubmissionFailure(FailureKind.UNKNOWN_ERROR, message)


async def _no_progress(stage: str, details: Dict[str, Any]) -> None:
    return None


class DeploymentExecutor:
    """Builds, submits and confirms the contract-creation transaction for a session."""

    def __init__(
        self,
        networks: NetworkRegistry,
        resolver: ArtifactResolver,
        registry: Optional[RegistryAdapter] = None,
        signer_factory: Optional[SignerFactory] = None,
    ):
        self._networks = networks
        self._resolver = resolver
        self._registry = registry
        self._signer_factory = signer_factory or make_signer_factory()

    async def execute(
        self, session: Session, progress: Optional[ProgressCallback] = None
    ) -> DeploymentResult:
        """
        Run one deployment attempt.

        The session's signing key is cleared when the attempt ends,
        whatever the outcome.

        Returns:
            DeploymentResult for the confirmed contract

        Raises:
            DeploymentFailure: Classified failure (CompileFailure,
                               SubmissionFailure or configuration)
        """
        notify = progress or _no_progress
        signer: Optional[Signer] = None

        try:
            network = self._networks.get(session.network)
            if not session.signing_key:
                raise DeploymentFailure(FailureKind.CONFIGURATION_ERROR, "No signing key adopted")

            signer = self._signer_factory(session.signing_key, network)
            logger.info(
                "Deploying %r to %s from %s", session.contract_name, network.key, signer.address
            )
            await notify("deploying", {"network": network})

            if session.input_kind is InputKind.SOURCE_TEXT:
                await notify("compiling", {})
            artifact = await self._resolver.resolve(session.input_kind, session.raw_artifact)

            encoded_args = encode_constructor_args(artifact.abi, session.constructor_args)
            tx_hash = await signer.create_transaction(artifact.bytecode + encoded_args.hex())
            logger.info("Creation transaction sent: %s", tx_hash)
            await notify("submitted", {"tx_hash": tx_hash})

            receipt = await signer.wait_for_receipt(tx_hash)
            if int(receipt.get("status", "0x1"), 16) != 1:
                raise SubmissionFailure(
                    FailureKind.UNKNOWN_ERROR,
                    f"Transaction {tx_hash} reverted during contract creation",
                )
            if not receipt.get("contractAddress"):
                raise SubmissionFailure(
                    FailureKind.UNKNOWN_ERROR, f"Receipt for {tx_hash} has no contract address"
                )

            result = DeploymentResult(
                contract_address=to_checksum_address(receipt["contractAddress"]),
                tx_hash=tx_hash,
                block_number=int(receipt["blockNumber"], 16),
                network=network.key,
            )
            logger.info(
                "Contract deployed at %s in block %s", result.contract_address, result.block_number
            )

            if self._registry is not None and self._registry.enabled:
                await notify("registering", {})
                result.registry_attempted = True
                result.registry_tx_hash = await self._registry.register(
                    signer, result.contract_address, session.contract_name, network.key, tx_hash
                )

            return result

        except Exception as e:
            failure = classify_failure(e)
            logger.warning(
                "Deployment failed (%s): %s",
                failure.kind.value,
                failure.message,
                exc_info=failure.kind is FailureKind.UNKNOWN_ERROR,
            )
            if failure is e:
                raise
            raise failure from e

        finally:
            session.signing_key = None
            signer = None
