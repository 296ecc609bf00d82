"""User input parsers for contract-deployer."""

import json
import re
from typing import Any, Dict, List, Optional

from eth_abi import encode, is_encodable
from eth_utils import is_address, to_bytes, to_checksum_address

from .constants import (
    ADDRESS_PATTERN,
    BYTECODE_PATTERN,
    MAX_CONTRACT_NAME_LENGTH,
    PRIVATE_KEY_PATTERN,
)
from .exceptions import ConstructorArgumentError, ValidationError
from .types import Artifact

_ARRAY_SUFFIX = re.compile(r"^(.*)\[(\d*)\]$")
_INT_TYPE = re.compile(r"^u?int\d*$")
_FIXED_BYTES_TYPE = re.compile(r"^bytes\d+$")


def parse_artifact_payload(text: str) -> Artifact:
    """
    Parse a bytecode + interface JSON payload.

    The interface is read from "interface", falling back to "abi"
    (the key solc and hardhat artifacts use).

    Args:
        text: Raw message text

    Returns:
        Artifact with the bytecode and ABI unchanged

    Raises:
        ValidationError: If the text is not JSON, a field is missing,
                         the bytecode is not 0x-prefixed hex bytes, or the
                         interface has malformed entries or constructor inputs
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object with bytecode and interface fields")

    bytecode = data.get("bytecode")
    abi = data.get("interface", data.get("abi"))

    if not bytecode or abi is None:
        raise ValidationError("Missing bytecode or interface fields")
    if not isinstance(bytecode, str) or not bytecode.startswith("0x"):
        raise ValidationError("Bytecode must start with 0x")
    if re.match(BYTECODE_PATTERN, bytecode) is None:
        raise ValidationError("Bytecode must be 0x followed by at least one byte of hex")
    if not isinstance(abi, list):
        raise ValidationError("Interface must be a JSON array")
    if not all(isinstance(item, dict) for item in abi):
        raise ValidationError("Interface entries must be JSON objects")

    for item in abi:
        if item.get("type") == "constructor":
            _check_params(item.get("inputs") or [])
            break

    return Artifact(bytecode=bytecode, abi=abi)


def _check_params(params: Any) -> None:
    if not isinstance(params, list):
        raise ValidationError("Constructor inputs must be a JSON array")
    for param in params:
        if not isinstance(param, dict) or not isinstance(param.get("type"), str) or not param["type"]:
            raise ValidationError("Every constructor input needs a type")
        if param["type"].startswith("tuple"):
            _check_params(param.get("components", []))


def parse_constructor_args(text: str) -> List[Any]:
    """
    Parse constructor arguments given as a JSON array.

    Raises:
        ValidationError: If the text is not a JSON array
    """
    try:
        args = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e.msg}") from e

    if not isinstance(args, list):
        raise ValidationError("Parameters must be a JSON array")
    return args


def parse_contract_name(text: str) -> str:
    """
    Trim and check a contract name.

    Raises:
        ValidationError: If the name is empty or longer than 100 characters
    """
    name = text.strip()
    if not name:
        raise ValidationError("Contract name cannot be empty")
    if len(name) > MAX_CONTRACT_NAME_LENGTH:
        raise ValidationError(
            f"Contract name must be {MAX_CONTRACT_NAME_LENGTH} characters or less"
        )
    return name


def is_valid_private_key(text: Optional[str]) -> bool:
    """True if text is 0x followed by 64 hex digits."""
    return bool(text) and re.match(PRIVATE_KEY_PATTERN, text) is not None


def parse_lookup_address(text: str) -> str:
    """
    Check an owner address supplied for a registry lookup.

    Returns:
        Checksummed address

    Raises:
        ValidationError: If the text is not a 42-character 0x hex address
    """
    address = text.strip()
    if re.match(ADDRESS_PATTERN, address) is None:
        raise ValidationError(
            "Address must be a 42-character hexadecimal string starting with 0x"
        )
    return to_checksum_address(address.lower())


def mask_private_key(key: str) -> str:
    """Masked form of a signing key, safe to show in chat."""
    return key[:6] + "*" * 28 + key[-4:]


def constructor_inputs(abi: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Declared constructor inputs, empty when the ABI has no constructor."""
    for item in abi:
        if item.get("type") == "constructor":
            return item.get("inputs") or []
    return []


def abi_type_string(param: Dict[str, Any]) -> str:
    """
    Canonical type string for an ABI parameter.

    Tuple parameters are collapsed to "(t1,t2)" with any array suffix kept.
    """
    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type

    suffix = abi_type[len("tuple"):]
    inner = ",".join(abi_type_string(c) for c in param.get("components", []))
    return f"({inner}){suffix}"


def coerce_argument(param: Dict[str, Any], value: Any) -> Any:
    """
    Convert a JSON value into the Python value eth-abi expects for a parameter.

    Digit strings become integers, hex strings become bytes for bytes types,
    addresses are checksummed and tuples may be given as arrays or objects.

    Raises:
        ConstructorArgumentError: If the value cannot represent the parameter type
    """
    abi_type = param["type"]
    label = param.get("name") or abi_type

    array_match = _ARRAY_SUFFIX.match(abi_type)
    if array_match:
        base_type, size = array_match.groups()
        if not isinstance(value, list):
            raise ConstructorArgumentError(f"'{label}' expects an array")
        if size and len(value) != int(size):
            raise ConstructorArgumentError(
                f"'{label}' expects exactly {size} elements, got {len(value)}"
            )
        element = dict(param, type=base_type)
        return [coerce_argument(element, v) for v in value]

    if abi_type == "tuple":
        components = param.get("components", [])
        if isinstance(value, dict):
            try:
                value = [value[c["name"]] for c in components]
            except KeyError as e:
                raise ConstructorArgumentError(f"'{label}' is missing field {e}") from e
        if not isinstance(value, list) or len(value) != len(components):
            raise ConstructorArgumentError(
                f"'{label}' expects {len(components)} tuple fields"
            )
        return tuple(coerce_argument(c, v) for c, v in zip(components, value))

    if abi_type == "bool":
        if not isinstance(value, bool):
            raise ConstructorArgumentError(f"'{label}' expects true or false")
        return value

    if _INT_TYPE.match(abi_type):
        return _coerce_integer(label, value)

    if abi_type == "address":
        if not isinstance(value, str) or not is_address(value):
            raise ConstructorArgumentError(f"'{label}' expects an address")
        return to_checksum_address(value)

    if abi_type == "string":
        if not isinstance(value, str):
            raise ConstructorArgumentError(f"'{label}' expects a string")
        return value

    if abi_type == "bytes" or _FIXED_BYTES_TYPE.match(abi_type):
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ConstructorArgumentError(f"'{label}' expects 0x-prefixed hex")
        try:
            return to_bytes(hexstr=value)
        except ValueError as e:
            raise ConstructorArgumentError(f"'{label}' is not valid hex") from e

    return value


def _coerce_integer(label: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConstructorArgumentError(f"'{label}' expects an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            pass
    raise ConstructorArgumentError(f"'{label}' expects an integer")


def encode_constructor_args(abi: List[Dict[str, Any]], args: List[Any]) -> bytes:
    """
    ABI-encode constructor arguments positionally.

    Args:
        abi: Contract interface
        args: Arguments in declaration order

    Returns:
        Encoded arguments, empty when the constructor takes none

    Raises:
        ConstructorArgumentError: On count or type mismatch
    """
    inputs = constructor_inputs(abi)
    if len(args) != len(inputs):
        raise ConstructorArgumentError(
            f"Constructor expects {len(inputs)} argument(s), got {len(args)}"
        )
    if not inputs:
        return b""

    types = [abi_type_string(p) for p in inputs]
    values = [coerce_argument(p, a) for p, a in zip(inputs, args)]

    for param, abi_type, value in zip(inputs, types, values):
        if not is_encodable(abi_type, value):
            label = param.get("name") or abi_type
            raise ConstructorArgumentError(f"Value for '{label}' does not fit {abi_type}")

    return encode(types, values)
