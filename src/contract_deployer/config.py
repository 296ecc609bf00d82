"""Process configuration for contract-deployer."""

import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .constants import (
    ADDRESS_PATTERN,
    DEFAULT_RECEIPT_TIMEOUT,
    DEFAULT_REGISTRY_NETWORK,
    DEFAULT_SOLC_VERSION,
    NETWORK_CONFIG,
    ZERO_ADDRESS,
)
from .exceptions import ConfigurationError
from .parsers import is_valid_private_key
from .types import MultiContractPolicy


@dataclass
class Settings:
    """Values read from the environment at startup."""

    telegram_bot_token: str = field(repr=False)
    registry_address: str = ZERO_ADDRESS
    registry_network: str = DEFAULT_REGISTRY_NETWORK
    demo_private_key: Optional[str] = field(default=None, repr=False)
    solc_version: str = DEFAULT_SOLC_VERSION
    multi_contract_policy: MultiContractPolicy = MultiContractPolicy.FIRST
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    log_level: str = "INFO"

    @property
    def registry_enabled(self) -> bool:
        return self.registry_address.lower() != ZERO_ADDRESS

    @property
    def has_demo_key(self) -> bool:
        return is_valid_private_key(self.demo_private_key)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env: Variables to read (defaults to os.environ)

        Raises:
            ConfigurationError: If TELEGRAM_BOT_TOKEN is missing or a value is malformed
        """
        if env is None:
            env = os.environ

        token = env.get("TELEGRAM_BOT_TOKEN", "").strip()
        if not token:
            raise ConfigurationError(
                "TELEGRAM_BOT_TOKEN environment variable is required. "
                "Get a token from https://t.me/botfather"
            )

        registry_address = env.get("CONTRACT_REGISTRY_ADDRESS", "").strip() or ZERO_ADDRESS
        if re.match(ADDRESS_PATTERN, registry_address) is None:
            raise ConfigurationError(
                f"CONTRACT_REGISTRY_ADDRESS is not a valid address: {registry_address!r}"
            )

        registry_network = (
            env.get("CONTRACT_REGISTRY_NETWORK", "").strip() or DEFAULT_REGISTRY_NETWORK
        )
        if registry_network not in NETWORK_CONFIG:
            raise ConfigurationError(f"Unknown CONTRACT_REGISTRY_NETWORK: {registry_network!r}")

        policy_value = env.get("MULTI_CONTRACT_POLICY", "").strip().lower() or "first"
        try:
            policy = MultiContractPolicy(policy_value)
        except ValueError as e:
            raise ConfigurationError(
                f"MULTI_CONTRACT_POLICY must be 'first' or 'reject', got {policy_value!r}"
            ) from e

        try:
            receipt_timeout = float(env.get("RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT))
        except ValueError as e:
            raise ConfigurationError("RECEIPT_TIMEOUT must be a number of seconds") from e

        return cls(
            telegram_bot_token=token,
            registry_address=registry_address,
            registry_network=registry_network,
            demo_private_key=env.get("PRIVATE_KEY", "").strip() or None,
            solc_version=env.get("SOLC_VERSION", "").strip() or DEFAULT_SOLC_VERSION,
            multi_contract_policy=policy,
            receipt_timeout=receipt_timeout,
            log_level=env.get("LOG_LEVEL", "").strip().upper() or "INFO",
        )
