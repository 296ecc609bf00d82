"""Integration tests for the on-chain registry client over mocked JSON-RPC."""

import asyncio
import json

import pytest
import responses
from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_bytes, to_hex

from contract_deployer.constants import REGISTRY_RECORD_TYPE, ZERO_ADDRESS
from contract_deployer.exceptions import ConfigurationError, RegistryFailure, RegistryNotFoundError
from contract_deployer.registry import LocalRegistryClient, RegistryClient, decode_records
from contract_deployer.rpc import JsonRpcClient

RPC_URL = "https://rpc.sepolia.mantle.xyz"
REGISTRY = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"
OWNER = "0x1111111111111111111111111111111111111111"
CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TX_HASH = "0x" + "ab" * 32


def _encoded_records(*records):
    return to_hex(encode([f"{REGISTRY_RECORD_TYPE}[]"], [list(records)]))


def _record(name="Demo", address=CONTRACT):
    return (name, address, "mantle-testnet", 1700000000, to_bytes(hexstr=TX_HASH), OWNER)


def _mock_node(results):
    seen = []

    def callback(request):
        payload = json.loads(request.body)
        seen.append(payload)
        result = results[payload["method"]]
        if isinstance(result, Exception):
            return (200, {}, json.dumps({"jsonrpc": "2.0", "id": payload["id"], "error": {"message": str(result)}}))
        return (200, {}, json.dumps({"jsonrpc": "2.0", "id": payload["id"], "result": result}))

    responses.add_callback(responses.POST, RPC_URL, callback=callback)
    return seen


@pytest.fixture
def client(networks) -> RegistryClient:
    return RegistryClient(REGISTRY, networks.get("mantle-testnet"), JsonRpcClient(RPC_URL))


class TestLookup:
    """Test reading a user's records from the registry contract."""

    @responses.activate
    def test_decodes_records(self, client):
        seen = _mock_node(
            {
                "eth_blockNumber": "0x100",
                "eth_getCode": "0x6080604052",
                "eth_call": _encoded_records(_record("First"), _record("Second", "0x" + "33" * 20)),
            }
        )

        records = asyncio.run(client.lookup(OWNER))

        assert [r.name for r in records] == ["First", "Second"]
        assert records[0].contract_address == CONTRACT
        assert records[0].tx_hash == TX_HASH
        assert records[0].deployer == OWNER
        assert records[0].timestamp == 1700000000

        call = seen[2]["params"][0]
        assert call["to"] == REGISTRY
        selector = function_signature_to_4byte_selector("getUserContracts(address)")
        assert call["data"].startswith(to_hex(selector))

    @responses.activate
    def test_empty_list_is_not_an_error(self, client):
        _mock_node({"eth_blockNumber": "0x1", "eth_getCode": "0x60", "eth_call": _encoded_records()})

        assert asyncio.run(client.lookup(OWNER)) == []

    @responses.activate
    def test_no_code_at_registry(self, client):
        """Test that a configured address without code is a configuration problem."""
        _mock_node({"eth_blockNumber": "0x1", "eth_getCode": "0x"})

        with pytest.raises(RegistryNotFoundError, match=REGISTRY):
            asyncio.run(client.lookup(OWNER))

    @responses.activate
    def test_unreachable_network(self, client):
        _mock_node({"eth_blockNumber": RuntimeError("service unavailable")})

        with pytest.raises(RegistryFailure, match="Cannot connect"):
            asyncio.run(client.lookup(OWNER))

    @responses.activate
    def test_garbage_response(self, client):
        _mock_node({"eth_blockNumber": "0x1", "eth_getCode": "0x60", "eth_call": "0x1234"})

        with pytest.raises(RegistryFailure, match="Unexpected response format"):
            asyncio.run(client.lookup(OWNER))

    def test_disabled_client(self, networks):
        client = RegistryClient(ZERO_ADDRESS, networks.get("mantle-testnet"), JsonRpcClient(RPC_URL))

        assert not client.enabled
        with pytest.raises(ConfigurationError):
            asyncio.run(client.lookup(OWNER))


class TestRegister:
    """Test best-effort registration transactions."""

    def _signer(self, signer_factory, networks, key="mantle-testnet"):
        return signer_factory("0x" + "11" * 32, networks.get(key))

    def test_sends_register_call(self, client, signer_factory, networks):
        signer = self._signer(signer_factory, networks)

        registry_tx = asyncio.run(client.register(signer, CONTRACT, "Demo", "mantle-testnet", TX_HASH))

        assert registry_tx == "0x" + f"{1:064x}"
        [tx] = signer.transactions
        assert tx["to"] == REGISTRY

        selector = function_signature_to_4byte_selector("registerContract(string,address,string,bytes32)")
        data = to_bytes(hexstr=tx["data"])
        assert data[:4] == selector
        name, address, network, tx_hash = decode(["string", "address", "string", "bytes32"], data[4:])
        assert (name, network) == ("Demo", "mantle-testnet")
        assert address.lower() == CONTRACT.lower()
        assert to_hex(tx_hash) == TX_HASH

    def test_other_chain_is_skipped(self, client, signer_factory, networks):
        """Test that deployments on another chain are not registered."""
        signer = self._signer(signer_factory, networks, "sepolia")

        assert asyncio.run(client.register(signer, CONTRACT, "Demo", "sepolia", TX_HASH)) is None
        assert signer.transactions == []

    def test_failures_are_swallowed(self, client, signer_factory, networks):
        signer_factory.fail_with = RuntimeError("execution reverted: AlreadyRegistered")
        signer = self._signer(signer_factory, networks)

        assert asyncio.run(client.register(signer, CONTRACT, "Demo", "mantle-testnet", TX_HASH)) is None

    def test_reverted_registration(self, client, signer_factory, networks):
        signer_factory.receipt_overrides["status"] = "0x0"
        signer = self._signer(signer_factory, networks)

        assert asyncio.run(client.register(signer, CONTRACT, "Demo", "mantle-testnet", TX_HASH)) is None


class TestLocalRegistryClient:
    """Test the adapter over the in-memory registry model."""

    def test_register_then_lookup(self, ledger, signer_factory, networks):
        adapter = LocalRegistryClient(ledger)
        signer = signer_factory("0x" + "11" * 32, networks.get("sepolia"))

        registry_tx = asyncio.run(adapter.register(signer, CONTRACT, "Demo", "sepolia", TX_HASH))
        records = asyncio.run(adapter.lookup(signer.address))

        assert registry_tx.startswith("0x") and len(registry_tx) == 66
        assert [r.contract_address for r in records] == [CONTRACT]

    def test_duplicate_registration_returns_none(self, ledger, signer_factory, networks):
        adapter = LocalRegistryClient(ledger)
        signer = signer_factory("0x" + "11" * 32, networks.get("sepolia"))

        asyncio.run(adapter.register(signer, CONTRACT, "Demo", "sepolia", TX_HASH))
        assert asyncio.run(adapter.register(signer, CONTRACT, "Again", "sepolia", TX_HASH)) is None


def test_decode_records_round_trip():
    [record] = decode_records(_encoded_records(_record()))
    assert record.name == "Demo"
    assert record.network == "mantle-testnet"
