"""Chat message text for contract-deployer."""

import re
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .exceptions import DeploymentFailure
from .networks import NetworkRegistry
from .parsers import abi_type_string, constructor_inputs
from .types import (
    Artifact,
    DeployedContractRecord,
    DeploymentResult,
    FailureKind,
    InputKind,
    NetworkConfig,
    Session,
)

# Rows of (label, selection token)
Keyboard = List[List[Tuple[str, str]]]

RESTART_HINT = "Use /deploy to try again."

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")

SECURITY_WARNING = """🚨 *SECURITY WARNING* 🚨

*NEVER share your private key with anyone!*
The key is used for this single deployment only and is never stored.

Private keys give complete control over your funds. Use testnets for testing and \
only deploy to mainnets with small amounts."""

WELCOME_KEYBOARD: Keyboard = [
    [("🚀 Start Deployment", "start_deploy")],
    [("📋 Available Networks", "show_networks")],
    [("❓ Help & Security", "show_help")],
]

INPUT_KIND_KEYBOARD: Keyboard = [
    [("📄 I have Bytecode + ABI", "input_bytecode_abi")],
    [("💻 I have Solidity Source", "input_solidity")],
]

CONFIRM_KEYBOARD: Keyboard = [
    [("🚀 Deploy Contract", "confirm_deploy")],
    [("❌ Cancel", "cancel_deploy")],
]


def escape(value: object) -> str:
    """Escape Markdown entity characters in text shown outside an entity."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(value))


def code(value: object) -> str:
    """Inline code span. Backticks cannot be escaped inside one."""
    return "`" + str(value).replace("`", "'") + "`"


def _network_label(net: NetworkConfig) -> str:
    label = net.name
    if net.recommended:
        label += " ⭐"
    return label + (" (Testnet)" if net.is_testnet else " (Mainnet)")


def welcome() -> str:
    return f"""🤖 *Smart Contract Deployment Bot*

I can help you deploy smart contracts and keep track of them.

Available commands:
/deploy - Start contract deployment
/mycontracts - View your deployed contracts
/networks - List available networks
/cancel - Cancel the current deployment
/help - Help and security information

{SECURITY_WARNING}"""


def help_text(networks: NetworkRegistry) -> str:
    network_lines = "\n".join(f"- {_network_label(n)}" for n in networks.networks())
    return f"""📖 *Help & Security Information*

*How to use this bot:*
1. /deploy starts the deployment process
2. Provide bytecode + ABI, or Solidity source code
3. Enter constructor parameters as a JSON array
4. Name the contract
5. Select the target network and confirm
6. Provide a private key (used once, never stored)
7. /mycontracts shows contracts registered for an address

*Supported Networks:*
{network_lines}

{SECURITY_WARNING}"""


def networks_overview() -> str:
    return "🌐 *Available Networks:*\n\nSelect a network to see details:"


def networks_keyboard(networks: NetworkRegistry, prefix: str) -> Keyboard:
    return [[(_network_label(n), f"{prefix}{n.key}")] for n in networks.networks()]


def network_detail(net: NetworkConfig) -> str:
    kind = "Testnet" if net.is_testnet else "Mainnet"
    note = (
        "✅ This is a testnet, perfect for testing your contracts!"
        if net.is_testnet
        else "⚠️ This is mainnet, real funds will be used for deployment!"
    )
    text = f"""🌐 *{net.name}*

*Chain ID:* {net.chain_id}
*Type:* {kind}
*RPC URL:* {escape(net.rpc_url)}

{note}"""
    if net.recommended:
        text += "\n\n⭐ *RECOMMENDED* for first deployments"
    return text


def deployment_intro() -> str:
    return """🚀 *Contract Deployment*

*Step 1: Contract Input*

You can provide either:
*A)* compiled bytecode and its ABI as JSON
*B)* Solidity source code (compiled for you)

What would you like to provide?"""


def artifact_prompt(kind: InputKind) -> str:
    if kind is InputKind.BYTECODE_AND_INTERFACE:
        return """📄 *Contract Bytecode + ABI*

Send your contract data as JSON:

```
{"bytecode": "0x6080...", "abi": [{"inputs": [], "stateMutability": "nonpayable", "type": "constructor"}]}
```

Make sure the bytecode starts with 0x and the ABI is a JSON array."""
    return """💻 *Solidity Source Code*

Send the complete Solidity source: pragma, contract definition and constructor \
if needed. Only the first contract in the file is deployed."""


def artifact_rejected(kind: InputKind, error: Exception) -> str:
    expected = "JSON" if kind is InputKind.BYTECODE_AND_INTERFACE else "Solidity code"
    return f"❌ *Error parsing contract data:* {escape(error)}\n\nPlease try again with valid {expected}."


def constructor_info(artifact: Optional[Artifact]) -> str:
    if artifact is None:
        return "Please provide the parameters your Solidity constructor expects."

    inputs = constructor_inputs(artifact.abi)
    if not inputs:
        return "✅ No constructor parameters needed."

    lines = "\n".join(
        f"{i}. {code(abi_type_string(p))} - {escape(p.get('name') or 'unnamed')}"
        for i, p in enumerate(inputs, start=1)
    )
    return f"Constructor requires {len(inputs)} parameter(s):\n{lines}"


def constructor_prompt(session: Session) -> str:
    artifact = session.raw_artifact if isinstance(session.raw_artifact, Artifact) else None
    return f"""✅ *Contract data received!*

*Step 2: Constructor Parameters*

{constructor_info(artifact)}

Send the parameters as a JSON array, e.g. `[123, "hello"]`, or `[]` for none."""


def constructor_rejected(error: Exception) -> str:
    return (
        f"❌ *Error parsing constructor parameters:* {escape(error)}\n\n"
        'Please provide a valid JSON array, e.g. `[123, "hello"]` or `[]`.'
    )


def name_prompt() -> str:
    return """✅ *Constructor parameters set!*

*Step 3: Contract Name*

Please provide a name for your contract (stored in the registry), e.g. `MyToken`."""


def name_rejected(error: Exception) -> str:
    return f"❌ *Invalid contract name:* {escape(error)}.\n\nPlease provide a valid name for your contract."


def network_prompt(name: str) -> str:
    return f"""✅ *Contract name set:* "{escape(name)}"

*Step 4: Select Network*

⚠️ Testnets are free and safe for testing. Mainnets use real cryptocurrency!"""


def deployment_summary(session: Session, net: NetworkConfig) -> str:
    kind = (
        "🧪 *Testnet Deployment* - no real funds required!"
        if net.is_testnet
        else "💰 *Mainnet Deployment* - will use real cryptocurrency!"
    )
    return f"""🎯 *{net.name} Selected*

{kind}

*Deployment Summary:*
- Contract Name: {escape(session.contract_name)}
- Network: {net.name}
- Constructor params: {code(session.constructor_args)}

Ready to deploy your contract?"""


def key_choice(has_demo_key: bool) -> Tuple[str, Keyboard]:
    text = f"🔐 *Private Key Required*\n\n{SECURITY_WARNING}\n\n"
    if has_demo_key:
        text += (
            "*Option 1:* Use the demo key (testing only)\n"
            "*Option 2:* Enter your own private key\n\n"
            "⚠️ Contracts deployed with the demo key are owned by the bot administrator."
        )
        keyboard = [
            [("🎯 Use Demo Key (Testing)", "use_demo_key")],
            [("🔑 Enter My Own Key", "enter_own_key")],
        ]
    else:
        text += "Please choose to enter your private key."
        keyboard = [[("🔑 I'll Enter My Key", "enter_own_key")]]
    return text, keyboard


def key_prompt() -> str:
    return f"""🔑 *Enter Your Private Key*

{SECURITY_WARNING}

Send your private key: 0x followed by 64 hexadecimal characters.

- It is used for this deployment only and never stored or logged
- The session is cleared after deployment
- Consider deleting the message containing your key afterwards"""


def key_rejected() -> str:
    return (
        "❌ *Invalid private key format.*\n\n"
        "A private key is 0x followed by 64 hexadecimal characters."
    )


def key_adopted(masked_key: str, demo: bool) -> str:
    if demo:
        return (
            f"🎯 *Using Demo Private Key:* `{masked_key}`\n\n"
            "⚠️ You will NOT own this contract!\n\n🚀 *Starting deployment...*"
        )
    return (
        f"🔐 *Private key received:* `{masked_key}`\n\n"
        "⚠️ Your key is visible in chat history. Consider deleting that message.\n\n"
        "🚀 *Starting deployment...*"
    )


def demo_key_unavailable() -> str:
    return "❌ *Demo key not configured.*\n\nPlease enter your own private key."


def cancelled() -> str:
    return "❌ *Deployment cancelled.*\n\nUse /deploy to start again."


def nothing_to_cancel() -> str:
    return "ℹ️ Nothing to cancel. Use /deploy to start a deployment."


def deploying(net: NetworkConfig) -> str:
    return f"🔄 *Deploying to {net.name}...*\n\nPlease wait while your contract is deployed."


def compiling() -> str:
    return "🔧 *Compiling Solidity code...*"


def transaction_sent(tx_hash: str) -> str:
    return f"📋 *Transaction sent!*\n\nHash: `{tx_hash}`\n\nWaiting for confirmation..."


def registering() -> str:
    return "📝 *Registering contract with registry...*"


def deployment_succeeded(
    result: DeploymentResult,
    networks: NetworkRegistry,
    contract_name: Optional[str],
    registry_configured: bool,
) -> str:
    text = f"""🎉 *Contract Deployed Successfully!*

📍 *Contract Address:* `{result.contract_address}`
🔗 *Transaction Hash:* `{result.tx_hash}`
🌐 *Network:* {escape(networks.display_name(result.network))}
⛽ *Block Number:* {result.block_number}"""

    links = networks.explorer_links(result.network, result.contract_address, result.tx_hash)
    if links:
        text += f"\n\n📍 [Contract]({links['address']})\n🔗 [Transaction]({links['tx']})"

    if result.registry_tx_hash:
        text += (
            f"\n\n📋 *Contract Registered!*\n🔗 *Registry Transaction:* "
            f"`{result.registry_tx_hash}`\n🏷️ *Contract Name:* {escape(contract_name)}"
        )
    elif result.registration_failed:
        text += "\n\n⚠️ *Note:* registering the contract in the registry failed. The deployment itself succeeded."
    elif not registry_configured:
        text += "\n\n⚠️ *Note:* contract registry not configured, so the contract was not registered."

    return text + "\n\n⚠️ *Save this information!*"


def deployment_failed(failure: DeploymentFailure) -> str:
    text = "❌ *Deployment failed.*\n\n"
    if failure.kind is FailureKind.COMPILE_ERROR:
        text += "🔧 *Solidity Compilation Error:*\n\n" + escape(failure.message)
    elif failure.kind is FailureKind.INVALID_CONSTRUCTOR_ARGS:
        text += "🧩 *Invalid constructor parameters:* " + escape(failure.message)
    elif failure.kind is FailureKind.INSUFFICIENT_FUNDS:
        text += "💰 *Insufficient funds* - make sure your wallet has enough native tokens for gas."
    elif failure.kind is FailureKind.NONCE_CONFLICT:
        text += "🔢 *Nonce error* - try again in a few seconds."
    elif failure.kind is FailureKind.GAS_ERROR:
        text += "⛽ *Gas error* - the contract might be too complex or the gas limit too low."
    elif failure.kind is FailureKind.CONFIGURATION_ERROR:
        text += "⚙️ *Configuration error:* " + escape(failure.message)
    else:
        text += f"Error: {escape(failure.message)}"
    return f"{text}\n\n{RESTART_HINT}"


def registry_not_configured() -> str:
    return (
        "❌ *Contract registry not configured.*\n\n"
        "Please contact the administrator to set up the contract registry."
    )


def lookup_prompt() -> str:
    return """📋 *View Your Deployed Contracts*

Please send your Ethereum address, e.g. `0x1234567890abcdef1234567890abcdef12345678`.

Only contracts registered through this bot are shown."""


def lookup_rejected() -> str:
    return (
        "❌ *Invalid Ethereum address format.*\n\n"
        "An address is a 42-character hexadecimal string starting with 0x."
    )


def no_contracts(address: str) -> str:
    return (
        f"📭 *No contracts found for address:* `{address}`\n\n"
        "No contracts have been registered for this address yet."
    )


def contract_list(records: List[DeployedContractRecord], networks: NetworkRegistry) -> str:
    text = f"📋 *Your Deployed Contracts ({len(records)})*\n\n"
    for i, record in enumerate(records, start=1):
        deployed = datetime.fromtimestamp(record.timestamp, tz=timezone.utc)
        text += (
            f"*{i}.* {escape(record.name)}\n"
            f"📍 Address: `{record.contract_address}`\n"
            f"🌐 Network: {escape(networks.display_name(record.network))}\n"
            f"🔗 Tx Hash: `{record.tx_hash}`\n"
            f"📅 Deployed: {deployed:%Y-%m-%d %H:%M:%S} UTC\n"
            f"👤 Deployer: `{record.deployer}`\n\n"
        )
    return text.rstrip()


def lookup_failed(error: Exception, configuration: bool) -> str:
    text = f"❌ *Error retrieving contracts:* {escape(error)}"
    if configuration:
        text += (
            "\n\n*Troubleshooting:*\n"
            "- Check `CONTRACT_REGISTRY_ADDRESS`\n"
            "- Check `CONTRACT_REGISTRY_NETWORK`\n"
            "- Ensure the ContractRegistry contract is deployed on that network"
        )
    else:
        text += "\n\nPlease try /mycontracts again later."
    return text
