"""
In-memory model of the ContractRegistry contract.

Mirrors contracts/ContractRegistry.sol: one append-only record list per
owner plus an address -> owner index. Both are only ever mutated together
in register(), so an owned address always has exactly one record in its
owner's list.
"""

import re
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from eth_utils import is_address, to_checksum_address

from .constants import TX_HASH_PATTERN, ZERO_ADDRESS, ZERO_HASH
from .exceptions import (
    AlreadyRegisteredError,
    InvalidRecordError,
    NotOwnerError,
    NotRegisteredError,
    RecordNotFoundError,
)
from .types import DeployedContractRecord, RegistryEvent


def _normalize_address(address: str) -> str:
    if not isinstance(address, str) or not is_address(address):
        raise InvalidRecordError(f"Invalid address: {address!r}", address)
    return to_checksum_address(address)


class ContractRegistry:
    """Authoritative record of which address deployed which contract."""

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """
        Args:
            clock: Returns the current Unix timestamp (defaults to wall time)
        """
        self._clock = clock or (lambda: int(time.time()))
        self._records: Dict[str, List[DeployedContractRecord]] = {}
        self._owners: Dict[str, str] = {}
        self.events: List[RegistryEvent] = []

    def register(
        self, caller: str, name: str, contract_address: str, network: str, tx_hash: str
    ) -> DeployedContractRecord:
        """
        Record a deployment under the caller's address.

        Raises:
            InvalidRecordError: If name or network is empty, or the address
                                or transaction hash is the zero value
            AlreadyRegisteredError: If the address already has an owner
        """
        caller = _normalize_address(caller)
        address = _normalize_address(contract_address)

        if not name:
            raise InvalidRecordError("Name cannot be empty", address)
        if address == ZERO_ADDRESS:
            raise InvalidRecordError("Contract address cannot be zero", address)
        if not network:
            raise InvalidRecordError("Network cannot be empty", address)
        if not isinstance(tx_hash, str) or re.match(TX_HASH_PATTERN, tx_hash) is None:
            raise InvalidRecordError(f"Invalid transaction hash: {tx_hash!r}", address)
        if tx_hash.lower() == ZERO_HASH:
            raise InvalidRecordError("Transaction hash cannot be zero", address)
        if address in self._owners:
            raise AlreadyRegisteredError(f"Contract {address} is already registered", address)

        record = DeployedContractRecord(
            name=name,
            contract_address=address,
            network=network,
            timestamp=self._clock(),
            tx_hash=tx_hash.lower(),
            deployer=caller,
        )
        self._records.setdefault(caller, []).append(record)
        self._owners[address] = caller

        self.events.append(
            RegistryEvent(
                name="ContractRegistered",
                args={
                    "deployer": caller,
                    "contractAddress": address,
                    "name": name,
                    "network": network,
                    "txHash": record.tx_hash,
                    "timestamp": record.timestamp,
                },
            )
        )
        return replace(record)

    def rename(self, caller: str, contract_address: str, new_name: str) -> None:
        """
        Change the name of a record owned by the caller.

        Raises:
            NotRegisteredError: If the address has no owner
            NotOwnerError: If the caller is not the owner
            InvalidRecordError: If new_name is empty
            RecordNotFoundError: If the owner's list lacks the record
        """
        caller = _normalize_address(caller)
        address = _normalize_address(contract_address)

        owner = self._owners.get(address)
        if owner is None:
            raise NotRegisteredError(f"Contract {address} is not registered", address)
        if owner != caller:
            raise NotOwnerError(f"{caller} does not own contract {address}", address)
        if not new_name:
            raise InvalidRecordError("Name cannot be empty", address)

        record = self._find(owner, address)
        old_name = record.name
        record.name = new_name

        self.events.append(
            RegistryEvent(
                name="ContractRenamed",
                args={
                    "deployer": caller,
                    "contractAddress": address,
                    "oldName": old_name,
                    "newName": new_name,
                },
            )
        )

    def _find(self, owner: str, address: str) -> DeployedContractRecord:
        # Linear scan; per-owner lists are expected to stay small
        for record in self._records.get(owner, []):
            if record.contract_address == address:
                return record
        raise RecordNotFoundError(f"Record for {address} missing from owner list", address)

    def user_contracts(self, owner: str) -> List[DeployedContractRecord]:
        """All records registered by owner, in registration order."""
        owner = _normalize_address(owner)
        return [replace(r) for r in self._records.get(owner, [])]

    def contract(self, contract_address: str) -> DeployedContractRecord:
        """
        Single record by contract address.

        Raises:
            NotRegisteredError: If the address has no owner
            RecordNotFoundError: If the owner's list lacks the record
        """
        address = _normalize_address(contract_address)
        owner = self._owners.get(address)
        if owner is None:
            raise NotRegisteredError(f"Contract {address} is not registered", address)
        return replace(self._find(owner, address))

    def owner_of(self, contract_address: str) -> str:
        """Owner of an address, or the zero address when unregistered."""
        return self._owners.get(_normalize_address(contract_address), ZERO_ADDRESS)

    def contract_count(self, owner: str) -> int:
        return len(self._records.get(_normalize_address(owner), []))

    def is_registered(self, contract_address: str) -> bool:
        return _normalize_address(contract_address) in self._owners
