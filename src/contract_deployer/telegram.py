"""Telegram Bot API transport for contract-deployer."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional

import requests

from .exceptions import TransportError

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Hashable], Awaitable[None]]
TextHandler = Callable[[Hashable, str], Awaitable[None]]
SelectionHandler = Callable[[Hashable, str], Awaitable[None]]


class TelegramTransport:
    """
    Long-polling client for the Telegram Bot HTTP API.

    Translates updates into command, free-text and selection handler calls.
    Selection handlers are registered for an exact token, or for a prefix
    when the token ends with "*".
    """

    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        poll_timeout: int = 30,
        retry_delay: float = 5.0,
    ):
        self._token = token
        self._base_url = f"{api_base}/bot{token}"
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay
        self._offset: Optional[int] = None
        self._commands: Dict[str, CommandHandler] = {}
        self._selections: Dict[str, SelectionHandler] = {}
        self._free_text: Optional[TextHandler] = None

    def on_command(self, name: str, handler: CommandHandler) -> None:
        self._commands[name.lstrip("/").lower()] = handler

    def on_free_text(self, handler: TextHandler) -> None:
        self._free_text = handler

    def on_selection(self, token: str, handler: SelectionHandler) -> None:
        self._selections[token] = handler

    def _redact(self, text: str) -> str:
        return text.replace(self._token, "<token>")

    def call(self, method: str, payload: Dict[str, Any]) -> Any:
        """
        Call a Bot API method.

        Returns:
            The "result" member of the response

        Raises:
            TransportError: On network errors or a response with ok=false
        """
        try:
            response = requests.post(
                f"{self._base_url}/{method}",
                json=payload,
                timeout=self.poll_timeout + 10,
            )
            data = response.json()
        except requests.RequestException as e:
            raise TransportError(f"Network error calling {method}: {self._redact(str(e))}") from e
        except ValueError as e:
            raise TransportError(f"Invalid response from {method}") from e

        if not data.get("ok"):
            raise TransportError(f"{method} failed: {data.get('description', 'unknown error')}")
        return data.get("result")

    async def send(
        self, chat_id: Hashable, text: str, options: Optional[Dict[str, Any]] = None
    ) -> None:
        """Send a message, with an inline keyboard when options carry one."""
        options = options or {}
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if options.get("parse_mode"):
            payload["parse_mode"] = options["parse_mode"]
        if options.get("keyboard"):
            payload["reply_markup"] = {
                "inline_keyboard": [
                    [{"text": label, "callback_data": token} for label, token in row]
                    for row in options["keyboard"]
                ]
            }
        await asyncio.to_thread(self.call, "sendMessage", payload)

    def _selection_handler(self, token: str) -> Optional[SelectionHandler]:
        if token in self._selections:
            return self._selections[token]
        for pattern, handler in self._selections.items():
            if pattern.endswith("*") and token.startswith(pattern[:-1]):
                return handler
        return None

    async def dispatch(self, update: Dict[str, Any]) -> None:
        """Route a single update to the registered handler."""
        query = update.get("callback_query")
        if query is not None:
            try:
                await asyncio.to_thread(
                    self.call, "answerCallbackQuery", {"callback_query_id": query["id"]}
                )
            except TransportError as e:
                logger.warning("Could not answer callback query: %s", e)

            message = query.get("message") or {}
            chat_id = message.get("chat", {}).get("id")
            handler = self._selection_handler(query.get("data", ""))
            if chat_id is not None and handler is not None:
                await handler(chat_id, query["data"])
            return

        message = update.get("message")
        if not message or not message.get("text"):
            return

        chat_id = message["chat"]["id"]
        text = message["text"]
        if text.startswith("/"):
            # "/deploy@SomeBot args" -> "deploy"
            name = text.split()[0][1:].split("@")[0].lower()
            command = self._commands.get(name)
            if command is not None:
                await command(chat_id)
        elif self._free_text is not None:
            await self._free_text(chat_id, text)

    async def poll_once(self) -> int:
        """Fetch and dispatch one batch of updates. Returns the batch size."""
        payload: Dict[str, Any] = {
            "timeout": self.poll_timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if self._offset is not None:
            payload["offset"] = self._offset

        updates: List[Dict[str, Any]] = await asyncio.to_thread(self.call, "getUpdates", payload)
        for update in updates:
            self._offset = update["update_id"] + 1
            try:
                await self.dispatch(update)
            except Exception:
                logger.exception("Failed to handle update %s", update["update_id"])
        return len(updates)

    async def run_polling(self, stop: Optional[asyncio.Event] = None) -> None:
        """Poll until stop is set. Polling errors are logged and retried."""
        logger.info("Polling for updates")
        while stop is None or not stop.is_set():
            try:
                await self.poll_once()
            except TransportError as e:
                logger.error("Polling error: %s", e)
                await asyncio.sleep(self.retry_delay)
