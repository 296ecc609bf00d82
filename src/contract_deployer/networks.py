"""Static network registry for contract-deployer."""

import os
from typing import Any, Dict, List, Mapping, Optional

from .constants import NETWORK_CONFIG
from .exceptions import NetworkNotFoundError
from .types import NetworkConfig


class NetworkRegistry:
    """Read-only lookup of deployment targets by network key."""

    def __init__(
        self,
        config: Optional[Dict[str, Dict[str, Any]]] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the registry.

        Args:
            config: Network table (defaults to NETWORK_CONFIG)
            env: Environment used to resolve RPC overrides (defaults to os.environ)
        """
        if config is None:
            config = NETWORK_CONFIG
        if env is None:
            env = os.environ

        self._networks: Dict[str, NetworkConfig] = {}
        for key, entry in config.items():
            rpc_url = entry["rpc_url"]
            override_env = entry.get("default_rpc_env")
            if override_env and env.get(override_env):
                rpc_url = env[override_env]

            self._networks[key] = NetworkConfig(
                key=key,
                name=entry["name"],
                rpc_url=rpc_url,
                chain_id=entry["chain_id"],
                is_testnet=entry["is_testnet"],
                recommended=entry.get("recommended", False),
                block_explorer_url=entry.get("block_explorer_url"),
            )

    def has_network(self, key: str) -> bool:
        """
        Check if a network key is configured.

        Args:
            key: Network key to check

        Returns:
            True if the network exists, False otherwise
        """
        return key in self._networks

    def get(self, key: str) -> NetworkConfig:
        """
        Get configuration for a network.

        Args:
            key: Network key (e.g., "mantle-testnet")

        Returns:
            NetworkConfig for the key

        Raises:
            NetworkNotFoundError: If the key is not configured
        """
        if not self.has_network(key):
            raise NetworkNotFoundError(f"Network '{key}' is not configured")
        return self._networks[key]

    def networks(self) -> List[NetworkConfig]:
        """All configured networks, in table order."""
        return list(self._networks.values())

    def display_name(self, key: str) -> str:
        """Human name for a network key, or the key itself when unknown."""
        if self.has_network(key):
            return self._networks[key].name
        return key

    def explorer_links(
        self, key: str, contract_address: str, tx_hash: Optional[str] = None
    ) -> Optional[Dict[str, str]]:
        """
        Build block explorer URLs for a contract and its creation transaction.

        Args:
            key: Network key
            contract_address: Deployed contract address
            tx_hash: Creation transaction hash (optional)

        Returns:
            Dictionary with "address" and optionally "tx" URLs,
            or None if the network has no explorer
        """
        if not self.has_network(key):
            return None

        explorer = self._networks[key].block_explorer_url
        if not explorer:
            return None

        links = {"address": f"{explorer}/address/{contract_address}"}
        if tx_hash:
            links["tx"] = f"{explorer}/tx/{tx_hash}"
        return links
