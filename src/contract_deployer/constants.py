"""Configuration constants for contract-deployer."""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_HASH = "0x" + "00" * 32

# Signing keys and lookup addresses are accepted in this exact shape
PRIVATE_KEY_PATTERN = r"^0x[0-9a-fA-F]{64}$"
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
TX_HASH_PATTERN = r"^0x[0-9a-fA-F]{64}$"
# Creation bytecode: at least one whole byte of hex
BYTECODE_PATTERN = r"^0x(?:[0-9a-fA-F]{2})+$"

MAX_CONTRACT_NAME_LENGTH = 100

DEFAULT_REGISTRY_NETWORK = "mantle-testnet"
DEFAULT_SOLC_VERSION = "0.8.20"
DEFAULT_RECEIPT_TIMEOUT = 300

# Network configuration based on ethereum-lists/chains
# default_rpc_env names the variable that overrides rpc_url
NETWORK_CONFIG = {
    "mantle-testnet": {
        "name": "Mantle Sepolia Testnet",
        "rpc_url": "https://rpc.sepolia.mantle.xyz",
        "chain_id": 5003,
        "is_testnet": True,
        "recommended": True,
        "block_explorer_url": "https://sepolia.mantlescan.xyz",
        "default_rpc_env": "MANTLE_SEPOLIA_RPC_URL",
    },
    "sepolia": {
        "name": "Ethereum Sepolia",
        "rpc_url": "https://ethereum-sepolia-rpc.publicnode.com",
        "chain_id": 11155111,
        "is_testnet": True,
        "recommended": False,
        "block_explorer_url": "https://sepolia.etherscan.io",
        "default_rpc_env": "SEP_RPC_URL",
    },
    "mantle": {
        "name": "Mantle Mainnet",
        "rpc_url": "https://rpc.mantle.xyz",
        "chain_id": 5000,
        "is_testnet": False,
        "recommended": False,
        "block_explorer_url": "https://explorer.mantle.xyz",
        "default_rpc_env": "MANTLE_RPC_URL",
    },
}

# Solidity struct ContractInfo, field order as stored on chain
REGISTRY_RECORD_TYPE = "(string,address,string,uint256,bytes32,address)"

REGISTRY_SIGNATURES = {
    "register": "registerContract(string,address,string,bytes32)",
    "rename": "updateContractName(address,string)",
    "user_contracts": "getUserContracts(address)",
    "contract": "getContract(address)",
    "owner_of": "contractOwner(address)",
    "contract_count": "getContractCount(address)",
    "is_registered": "isRegistered(address)",
}
