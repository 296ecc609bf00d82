"""JSON-RPC client and transaction signer for contract-deployer."""

import asyncio
import itertools
from typing import Any, Dict, List, Optional

import requests
from eth_account import Account
from eth_utils import to_checksum_address, to_hex

from .constants import DEFAULT_RECEIPT_TIMEOUT
from .exceptions import RpcError

# Values eth_getCode returns for an address without code
EMPTY_CODE = ("0x", "0x0", "")


class JsonRpcClient:
    """
    Minimal Ethereum JSON-RPC client.

    Each call is a blocking HTTP request; the async methods run it in a
    worker thread so the event loop keeps serving other chats.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
        poll_interval: float = 2.0,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Perform a single JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_blockNumber")
            params: Positional parameters

        Returns:
            The "result" member of the response

        Raises:
            RpcError: If the HTTP request fails, returns a non-200 status,
                      or the node returns an error object
        """
        try:
            response = requests.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params or [],
                    "id": next(self._ids),
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RpcError(f"Network error during RPC call: {e}") from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise RpcError(f"RPC request failed with status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise RpcError(f"RPC returned invalid JSON for {method}") from e

        # Check for RPC errors
        if "error" in result:
            error = result["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(f"RPC error: {message}")

        return result.get("result")

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Async form of call()."""
        return await asyncio.to_thread(self.call, method, params)

    async def get_code(self, address: str) -> str:
        return await self.request("eth_getCode", [address, "latest"])

    async def get_block_number(self) -> int:
        return int(await self.request("eth_blockNumber"), 16)

    async def get_transaction_count(self, address: str) -> int:
        return int(await self.request("eth_getTransactionCount", [address, "pending"]), 16)

    async def gas_price(self) -> int:
        return int(await self.request("eth_gasPrice"), 16)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(await self.request("eth_estimateGas", [tx]), 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self.request("eth_sendRawTransaction", [raw_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def eth_call(self, to: str, data: str) -> str:
        return await self.request("eth_call", [{"to": to, "data": data}, "latest"])

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """
        Poll until the transaction is mined.

        Raises:
            RpcError: If no receipt appears within receipt_timeout seconds
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                return receipt
            if loop.time() >= deadline:
                raise RpcError(
                    f"Timed out after {self.receipt_timeout}s waiting for receipt of {tx_hash}"
                )
            await asyncio.sleep(self.poll_interval)


class Signer:
    """A signing key bound to one network's RPC endpoint."""

    def __init__(self, private_key: str, rpc: JsonRpcClient, chain_id: int):
        self._account = Account.from_key(private_key)
        self.rpc = rpc
        self.chain_id = chain_id

    def __repr__(self) -> str:
        return f"Signer(address={self.address}, chain_id={self.chain_id})"

    @property
    def address(self) -> str:
        return self._account.address

    async def create_transaction(
        self, data: str, to: Optional[str] = None, value: int = 0
    ) -> str:
        """
        Sign and broadcast a transaction. Omitting `to` creates a contract.

        Gas limit and price are taken from the node as-is.

        Returns:
            Transaction hash
        """
        call: Dict[str, Any] = {"from": self.address, "data": data, "value": hex(value)}
        if to is not None:
            call["to"] = to_checksum_address(to)

        nonce = await self.rpc.get_transaction_count(self.address)
        gas_price = await self.rpc.gas_price()
        gas = await self.rpc.estimate_gas(call)

        tx: Dict[str, Any] = {
            "nonce": nonce,
            "gasPrice": gas_price,
            "gas": gas,
            "chainId": self.chain_id,
            "data": data,
            "value": value,
        }
        if to is not None:
            tx["to"] = call["to"]

        signed = self._account.sign_transaction(tx)
        return await self.rpc.send_raw_transaction(to_hex(signed.raw_transaction))

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        return await self.rpc.wait_for_receipt(tx_hash)
