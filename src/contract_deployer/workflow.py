"""
Per-chat deployment workflow for contract-deployer.

DeploymentWorkflow is the router the chat transport calls into:
handle_command, handle_selection and handle_text. It owns the
SessionStore and advances each chat's Session one validated step at a
time:

    ContractInput -> AwaitingArtifact -> AwaitingConstructorArgs
    -> AwaitingName -> AwaitingNetwork (select, then confirm)
    -> AwaitingKeyChoice -> [AwaitingKey] -> Deploying

"View my contracts" is a separate one-step workflow in
AwaitingAddressLookup. Deployments and lookups run as background tasks
so a pending transaction never blocks other chats.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Protocol, Set

from . import messages
from .exceptions import (
    ConfigurationError,
    DeployerError,
    DeploymentFailure,
    TransportError,
    ValidationError,
)
from .executor import DeploymentExecutor
from .messages import Keyboard
from .networks import NetworkRegistry
from .parsers import (
    is_valid_private_key,
    mask_private_key,
    parse_artifact_payload,
    parse_constructor_args,
    parse_contract_name,
    parse_lookup_address,
)
from .registry import RegistryAdapter
from .sessions import SessionStore
from .types import FailureKind, InputKind, Session, SourceArtifact, Step

logger = logging.getLogger(__name__)

ChatId = Hashable

# Steps in which explicit cancellation is honored
CANCELLABLE_STEPS = {
    Step.CONTRACT_INPUT,
    Step.AWAITING_ARTIFACT,
    Step.AWAITING_CONSTRUCTOR_ARGS,
    Step.AWAITING_NAME,
    Step.AWAITING_NETWORK,
    Step.AWAITING_KEY_CHOICE,
    Step.AWAITING_KEY,
    Step.AWAITING_ADDRESS_LOOKUP,
}


class ChatTransport(Protocol):
    async def send(
        self, chat_id: ChatId, text: str, options: Optional[Dict[str, Any]] = None
    ) -> None: ...


class DeploymentWorkflow:
    """Collects deployment inputs per chat and hands complete sessions to the executor."""

    def __init__(
        self,
        transport: ChatTransport,
        networks: NetworkRegistry,
        executor: DeploymentExecutor,
        registry: Optional[RegistryAdapter] = None,
        store: Optional[SessionStore] = None,
        demo_key: Optional[str] = None,
    ):
        self._transport = transport
        self._networks = networks
        self._executor = executor
        self._registry = registry
        self.store = store if store is not None else SessionStore()
        # Offered only when well-formed
        self._demo_key = demo_key if is_valid_private_key(demo_key) else None
        self._tasks: Set[asyncio.Task] = set()

        self._commands: Dict[str, Callable[[ChatId], Awaitable[None]]] = {
            "start": self.show_welcome,
            "help": self.show_help,
            "networks": self.show_networks,
            "deploy": self.start_deployment,
            "mycontracts": self.start_lookup,
            "cancel": self.cancel,
        }
        self._text_handlers = {
            Step.AWAITING_ARTIFACT: self._receive_artifact,
            Step.AWAITING_CONSTRUCTOR_ARGS: self._receive_constructor_args,
            Step.AWAITING_NAME: self._receive_name,
            Step.AWAITING_KEY: self._receive_key,
            Step.AWAITING_ADDRESS_LOOKUP: self._receive_lookup_address,
        }

    @property
    def has_demo_key(self) -> bool:
        return self._demo_key is not None

    @property
    def registry_configured(self) -> bool:
        return self._registry is not None and self._registry.enabled

    async def _send(self, chat_id: ChatId, text: str, keyboard: Optional[Keyboard] = None) -> None:
        options: Dict[str, Any] = {"parse_mode": "Markdown"}
        if keyboard:
            options["keyboard"] = keyboard
        try:
            await self._transport.send(chat_id, text, options)
        except TransportError as e:
            if "can't parse entities" not in str(e):
                raise
            logger.warning("Markdown rejected for %s, resending as plain text: %s", chat_id, e)
            del options["parse_mode"]
            await self._transport.send(chat_id, text, options)

    async def _report(self, chat_id: ChatId, text: str) -> None:
        """Send the final message of a background task, logging delivery failures."""
        try:
            await self._send(chat_id, text)
        except DeployerError as e:
            logger.error("Could not deliver report to %s: %s", chat_id, e)

    # ------------------------------------------------------------------
    # Router
    # ------------------------------------------------------------------

    async def handle_command(self, chat_id: ChatId, name: str) -> None:
        """Dispatch a slash command. Unknown commands are ignored."""
        handler = self._commands.get(name.lstrip("/").lower())
        if handler is None:
            logger.debug("Ignoring unknown command %r from %s", name, chat_id)
            return
        await handler(chat_id)

    async def handle_selection(self, chat_id: ChatId, token: str) -> None:
        """Dispatch a button selection. Tokens out of step are ignored."""
        if token == "start_deploy":
            await self.start_deployment(chat_id)
            return
        if token == "show_networks":
            await self.show_networks(chat_id)
            return
        if token == "show_help":
            await self.show_help(chat_id)
            return
        if token.startswith("network_"):
            await self.show_network(chat_id, token[len("network_"):])
            return

        session = self.store.get(chat_id)
        if session is None:
            return

        if token == "input_bytecode_abi":
            await self._choose_input_kind(chat_id, session, InputKind.BYTECODE_AND_INTERFACE)
        elif token == "input_solidity":
            await self._choose_input_kind(chat_id, session, InputKind.SOURCE_TEXT)
        elif token.startswith("select_network_"):
            await self._select_network(chat_id, session, token[len("select_network_"):])
        elif token == "confirm_deploy":
            await self._confirm(chat_id, session)
        elif token == "cancel_deploy":
            await self.cancel(chat_id)
        elif token == "use_demo_key":
            await self._use_demo_key(chat_id, session)
        elif token == "enter_own_key":
            await self._enter_own_key(chat_id, session)
        else:
            logger.debug("Ignoring unknown selection %r from %s", token, chat_id)

    async def handle_text(self, chat_id: ChatId, text: str) -> None:
        """Feed free text to the chat's current step. Without a session it is ignored."""
        session = self.store.get(chat_id)
        if session is None:
            return

        handler = self._text_handlers.get(session.step)
        if handler is None:
            return
        await handler(chat_id, session, text)

    async def drain(self) -> None:
        """Wait for all running deployments and lookups."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Informational views
    # ------------------------------------------------------------------

    async def show_welcome(self, chat_id: ChatId) -> None:
        await self._send(chat_id, messages.welcome(), messages.WELCOME_KEYBOARD)

    async def show_help(self, chat_id: ChatId) -> None:
        await self._send(chat_id, messages.help_text(self._networks))

    async def show_networks(self, chat_id: ChatId) -> None:
        await self._send(
            chat_id,
            messages.networks_overview(),
            messages.networks_keyboard(self._networks, "network_"),
        )

    async def show_network(self, chat_id: ChatId, key: str) -> None:
        if not self._networks.has_network(key):
            return
        await self._send(chat_id, messages.network_detail(self._networks.get(key)))

    # ------------------------------------------------------------------
    # Deployment workflow
    # ------------------------------------------------------------------

    async def start_deployment(self, chat_id: ChatId) -> None:
        """Start a deployment, replacing any session the chat had."""
        self.store.start(chat_id)
        logger.info("Deployment workflow started for %s", chat_id)
        await self._send(chat_id, messages.deployment_intro(), messages.INPUT_KIND_KEYBOARD)

    async def cancel(self, chat_id: ChatId) -> None:
        session = self.store.get(chat_id)
        if session is None:
            await self._send(chat_id, messages.nothing_to_cancel())
            return
        if session.step not in CANCELLABLE_STEPS:
            await self._send(chat_id, "⏳ Deployment already in progress and cannot be cancelled.")
            return
        self.store.discard(chat_id)
        logger.info("Workflow cancelled for %s", chat_id)
        await self._send(chat_id, messages.cancelled())

    async def _choose_input_kind(self, chat_id: ChatId, session: Session, kind: InputKind) -> None:
        if session.step is not Step.CONTRACT_INPUT:
            return
        session.input_kind = kind
        session.step = Step.AWAITING_ARTIFACT
        await self._send(chat_id, messages.artifact_prompt(kind))

    async def _receive_artifact(self, chat_id: ChatId, session: Session, text: str) -> None:
        if session.input_kind is InputKind.BYTECODE_AND_INTERFACE:
            try:
                session.raw_artifact = parse_artifact_payload(text)
            except ValidationError as e:
                await self._send(chat_id, messages.artifact_rejected(session.input_kind, e))
                return
        else:
            # Compiled by the executor once the attempt starts
            session.raw_artifact = SourceArtifact(source_text=text)

        session.step = Step.AWAITING_CONSTRUCTOR_ARGS
        await self._send(chat_id, messages.constructor_prompt(session))

    async def _receive_constructor_args(self, chat_id: ChatId, session: Session, text: str) -> None:
        try:
            session.constructor_args = parse_constructor_args(text)
        except ValidationError as e:
            await self._send(chat_id, messages.constructor_rejected(e))
            return

        session.step = Step.AWAITING_NAME
        await self._send(chat_id, messages.name_prompt())

    async def _receive_name(self, chat_id: ChatId, session: Session, text: str) -> None:
        try:
            session.contract_name = parse_contract_name(text)
        except ValidationError as e:
            await self._send(chat_id, messages.name_rejected(e))
            return

        session.step = Step.AWAITING_NETWORK
        await self._send(
            chat_id,
            messages.network_prompt(session.contract_name),
            messages.networks_keyboard(self._networks, "select_network_"),
        )

    async def _select_network(self, chat_id: ChatId, session: Session, key: str) -> None:
        if session.step is not Step.AWAITING_NETWORK or not self._networks.has_network(key):
            return
        session.network = key
        session.confirmed = False
        await self._send(
            chat_id,
            messages.deployment_summary(session, self._networks.get(key)),
            messages.CONFIRM_KEYBOARD,
        )

    async def _confirm(self, chat_id: ChatId, session: Session) -> None:
        if session.step is not Step.AWAITING_NETWORK or session.network is None:
            return
        session.confirmed = True
        session.step = Step.AWAITING_KEY_CHOICE
        text, keyboard = messages.key_choice(self.has_demo_key)
        await self._send(chat_id, text, keyboard)

    async def _use_demo_key(self, chat_id: ChatId, session: Session) -> None:
        if session.step is not Step.AWAITING_KEY_CHOICE:
            return
        if not self.has_demo_key:
            await self._send(chat_id, messages.demo_key_unavailable())
            return
        await self._adopt_key(chat_id, session, self._demo_key, demo=True)

    async def _enter_own_key(self, chat_id: ChatId, session: Session) -> None:
        if session.step is not Step.AWAITING_KEY_CHOICE:
            return
        session.step = Step.AWAITING_KEY
        await self._send(chat_id, messages.key_prompt())

    async def _receive_key(self, chat_id: ChatId, session: Session, text: str) -> None:
        key = text.strip()
        if not is_valid_private_key(key):
            await self._send(chat_id, messages.key_rejected())
            return
        await self._adopt_key(chat_id, session, key, demo=False)

    async def _adopt_key(self, chat_id: ChatId, session: Session, key: str, demo: bool) -> None:
        session.signing_key = key
        session.step = Step.DEPLOYING
        await self._send(chat_id, messages.key_adopted(mask_private_key(key), demo))
        self._spawn(self._deploy(chat_id, session))

    async def _deploy(self, chat_id: ChatId, session: Session) -> None:
        async def progress(stage: str, details: Dict[str, Any]) -> None:
            if stage == "deploying":
                text = messages.deploying(details["network"])
            elif stage == "compiling":
                text = messages.compiling()
            elif stage == "submitted":
                text = messages.transaction_sent(details["tx_hash"])
            elif stage == "registering":
                text = messages.registering()
            else:
                return
            try:
                await self._send(chat_id, text)
            except DeployerError:
                logger.warning("Could not deliver progress update to %s", chat_id)

        try:
            result = await self._executor.execute(session, progress)
        except DeploymentFailure as failure:
            await self._report(chat_id, messages.deployment_failed(failure))
        except Exception:
            logger.exception("Unexpected error during deployment for %s", chat_id)
            await self._report(
                chat_id,
                messages.deployment_failed(
                    DeploymentFailure(FailureKind.UNKNOWN_ERROR, "Internal error")
                ),
            )
        else:
            await self._report(
                chat_id,
                messages.deployment_succeeded(
                    result, self._networks, session.contract_name, self.registry_configured
                ),
            )
        finally:
            session.signing_key = None
            self.store.discard(chat_id, session)

    # ------------------------------------------------------------------
    # Address lookup workflow
    # ------------------------------------------------------------------

    async def start_lookup(self, chat_id: ChatId) -> None:
        """Start a "view my contracts" lookup, replacing any session the chat had."""
        if not self.registry_configured:
            await self._send(chat_id, messages.registry_not_configured())
            return
        self.store.start(chat_id, Session(step=Step.AWAITING_ADDRESS_LOOKUP))
        await self._send(chat_id, messages.lookup_prompt())

    async def _receive_lookup_address(self, chat_id: ChatId, session: Session, text: str) -> None:
        try:
            address = parse_lookup_address(text)
        except ValidationError:
            await self._send(chat_id, messages.lookup_rejected())
            return

        session.lookup_address = address
        self.store.discard(chat_id, session)
        self._spawn(self._lookup(chat_id, address))

    async def _lookup(self, chat_id: ChatId, address: str) -> None:
        try:
            records = await self._registry.lookup(address)
        except ConfigurationError as e:
            logger.error("Registry lookup misconfigured: %s", e)
            await self._report(chat_id, messages.lookup_failed(e, configuration=True))
            return
        except Exception as e:
            logger.exception("Failed to query contracts for %s", address)
            await self._report(chat_id, messages.lookup_failed(e, configuration=False))
            return

        if not records:
            await self._report(chat_id, messages.no_contracts(address))
        else:
            await self._report(chat_id, messages.contract_list(records, self._networks))

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background task failed", exc_info=task.exception())
