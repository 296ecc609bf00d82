"""Registry client adapters for contract-deployer."""

import logging
from typing import Any, List, Optional, Protocol, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, keccak, to_bytes, to_checksum_address, to_hex

from .constants import REGISTRY_RECORD_TYPE, REGISTRY_SIGNATURES, ZERO_ADDRESS
from .exceptions import ConfigurationError, RegistryFailure, RegistryNotFoundError, RpcError
from .ledger import ContractRegistry
from .rpc import EMPTY_CODE, JsonRpcClient, Signer
from .types import DeployedContractRecord, NetworkConfig

logger = logging.getLogger(__name__)


class RegistryAdapter(Protocol):
    """What the executor and workflow need from a registry."""

    @property
    def enabled(self) -> bool: ...

    async def register(
        self, signer: Signer, contract_address: str, name: str, network: str, tx_hash: str
    ) -> Optional[str]: ...

    async def lookup(self, owner: str) -> List[DeployedContractRecord]: ...


def encode_call(function: str, types: Sequence[str], values: Sequence[Any]) -> str:
    """Calldata for a registry function: selector followed by encoded arguments."""
    selector = function_signature_to_4byte_selector(REGISTRY_SIGNATURES[function])
    return to_hex(selector + encode(list(types), list(values)))


def decode_records(raw: str) -> List[DeployedContractRecord]:
    """
    Decode the return value of getUserContracts.

    Raises:
        RegistryFailure: If the data is not an encoded ContractInfo[]
    """
    try:
        (rows,) = decode([f"{REGISTRY_RECORD_TYPE}[]"], to_bytes(hexstr=raw or "0x"))
    except (DecodingError, ValueError) as e:
        raise RegistryFailure(f"Unexpected response format from registry: {e}") from e

    return [
        DeployedContractRecord(
            name=name,
            contract_address=to_checksum_address(address),
            network=network,
            timestamp=timestamp,
            tx_hash=to_hex(tx_hash),
            deployer=to_checksum_address(deployer),
        )
        for name, address, network, timestamp, tx_hash, deployer in rows
    ]


class RegistryClient:
    """ContractRegistry deployed on chain, reached over JSON-RPC."""

    def __init__(
        self,
        address: str,
        network: NetworkConfig,
        rpc: Optional[JsonRpcClient] = None,
    ):
        """
        Args:
            address: Registry contract address (zero disables the client)
            network: Network the registry is deployed on
            rpc: Client for that network (defaults to one built from network.rpc_url)
        """
        self.address = to_checksum_address(address)
        self.network = network
        self.rpc = rpc if rpc is not None else JsonRpcClient(network.rpc_url)

    @property
    def enabled(self) -> bool:
        return self.address != ZERO_ADDRESS

    async def register(
        self, signer: Signer, contract_address: str, name: str, network: str, tx_hash: str
    ) -> Optional[str]:
        """
        Register a deployment under the signer's address.

        Best-effort: every failure is logged and reported as None.

        Returns:
            Registry transaction hash, or None if registration did not happen
        """
        if not self.enabled:
            logger.info("Registry address not configured, skipping registration")
            return None

        try:
            if signer.chain_id != self.network.chain_id:
                logger.warning(
                    "Registry lives on %s (chain %s), deployment used chain %s; skipping",
                    self.network.key,
                    self.network.chain_id,
                    signer.chain_id,
                )
                return None

            data = encode_call(
                "register",
                ["string", "address", "string", "bytes32"],
                [name, to_checksum_address(contract_address), network, to_bytes(hexstr=tx_hash)],
            )
            registry_tx = await signer.create_transaction(data, to=self.address)
            receipt = await signer.wait_for_receipt(registry_tx)

            if int(receipt.get("status", "0x1"), 16) != 1:
                logger.error("Registry transaction %s reverted", registry_tx)
                return None

            logger.info("Contract %s registered, tx %s", contract_address, registry_tx)
            return registry_tx

        except Exception:
            logger.exception("Failed to register contract %s with registry", contract_address)
            return None

    async def lookup(self, owner: str) -> List[DeployedContractRecord]:
        """
        Records registered by owner, in registration order.

        Raises:
            ConfigurationError: If the registry is not configured
            RegistryNotFoundError: If no code exists at the registry address
            RegistryFailure: If the network cannot be reached or replies garbage
        """
        if not self.enabled:
            raise ConfigurationError("Contract registry not configured")

        logger.info("Querying registry %s on %s for %s", self.address, self.network.key, owner)

        try:
            block_number = await self.rpc.get_block_number()
            logger.debug("Connected to %s at block %s", self.network.key, block_number)
            code = await self.rpc.get_code(self.address)
        except RpcError as e:
            raise RegistryFailure(f"Cannot connect to {self.network.name}: {e}") from e

        if code in EMPTY_CODE:
            raise RegistryNotFoundError(
                f"No contract found at {self.address} on {self.network.name}"
            )

        try:
            raw = await self.rpc.eth_call(
                self.address, encode_call("user_contracts", ["address"], [to_checksum_address(owner)])
            )
        except RpcError as e:
            raise RegistryFailure(f"Registry query failed: {e}") from e

        records = decode_records(raw)
        logger.info("Found %d contracts for %s", len(records), owner)
        return records


class LocalRegistryClient:
    """Registry adapter over the in-process ContractRegistry model."""

    def __init__(self, ledger: Optional[ContractRegistry] = None):
        self.ledger = ledger if ledger is not None else ContractRegistry()

    @property
    def enabled(self) -> bool:
        return True

    async def register(
        self, signer: Signer, contract_address: str, name: str, network: str, tx_hash: str
    ) -> Optional[str]:
        try:
            self.ledger.register(signer.address, name, contract_address, network, tx_hash)
        except Exception:
            logger.exception("Failed to register contract %s with registry", contract_address)
            return None
        # Stand-in for a transaction hash, unique per registration
        return to_hex(keccak(text=f"{signer.address}:{contract_address}:{len(self.ledger.events)}"))

    async def lookup(self, owner: str) -> List[DeployedContractRecord]:
        return self.ledger.user_contracts(owner)
