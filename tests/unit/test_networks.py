"""Unit tests for the network registry."""

import pytest

from contract_deployer.constants import NETWORK_CONFIG
from contract_deployer.exceptions import NetworkNotFoundError
from contract_deployer.networks import NetworkRegistry


class TestNetworkRegistry:
    """Test network lookups."""

    def test_builtin_networks(self, networks):
        keys = [n.key for n in networks.networks()]
        assert keys == list(NETWORK_CONFIG)

    def test_mantle_testnet(self, networks):
        net = networks.get("mantle-testnet")

        assert net.chain_id == 5003
        assert net.is_testnet
        assert net.recommended
        assert net.rpc_url == "https://rpc.sepolia.mantle.xyz"

    def test_mainnet_flag(self, networks):
        net = networks.get("mantle")
        assert not net.is_testnet
        assert net.chain_id == 5000

    def test_unknown_network(self, networks):
        assert not networks.has_network("goerli")
        with pytest.raises(NetworkNotFoundError, match="goerli"):
            networks.get("goerli")

    def test_rpc_override_from_env(self):
        """Test that the per-network environment variable replaces the RPC URL."""
        registry = NetworkRegistry(env={"SEP_RPC_URL": "https://my-node.example"})

        assert registry.get("sepolia").rpc_url == "https://my-node.example"
        assert registry.get("mantle").rpc_url == "https://rpc.mantle.xyz"

    def test_display_name(self, networks):
        assert networks.display_name("sepolia") == "Ethereum Sepolia"
        assert networks.display_name("custom-label") == "custom-label"


class TestExplorerLinks:
    """Test block explorer URL construction."""

    def test_address_and_tx_links(self, networks):
        links = networks.explorer_links("mantle-testnet", "0xabc", "0xdef")

        assert links == {
            "address": "https://sepolia.mantlescan.xyz/address/0xabc",
            "tx": "https://sepolia.mantlescan.xyz/tx/0xdef",
        }

    def test_address_only(self, networks):
        assert networks.explorer_links("sepolia", "0xabc") == {
            "address": "https://sepolia.etherscan.io/address/0xabc"
        }

    def test_no_explorer(self):
        config = {
            "local": {"name": "Local", "rpc_url": "http://127.0.0.1:8545", "chain_id": 31337, "is_testnet": True}
        }
        registry = NetworkRegistry(config=config, env={})

        assert registry.explorer_links("local", "0xabc", "0xdef") is None
        assert registry.explorer_links("unknown", "0xabc") is None
