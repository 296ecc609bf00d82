"""In-memory session store for contract-deployer."""

from typing import Dict, Hashable, Optional

from .types import Session

ChatId = Hashable


class SessionStore:
    """
    Maps a chat identity to its single active Session.

    Held in memory only; everything is lost on restart.
    """

    def __init__(self):
        self._sessions: Dict[ChatId, Session] = {}

    def start(self, chat_id: ChatId, session: Optional[Session] = None) -> Session:
        """Install a fresh session, discarding any previous one for the chat."""
        if session is None:
            session = Session()
        self._sessions[chat_id] = session
        return session

    def get(self, chat_id: ChatId) -> Optional[Session]:
        return self._sessions.get(chat_id)

    def discard(self, chat_id: ChatId, session: Optional[Session] = None) -> bool:
        """
        Remove the chat's session.

        If session is given, remove only when it is still the active one,
        so a finishing attempt cannot destroy a workflow started meanwhile.

        Returns:
            True if a session was removed
        """
        current = self._sessions.get(chat_id)
        if current is None:
            return False
        if session is not None and current is not session:
            return False
        del self._sessions[chat_id]
        return True

    def __contains__(self, chat_id: ChatId) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
