import asyncio
import logging
from collections import OrderedDict, deque
from typing import Iterable, List

from docqa.models.data_models import ConversationTurn

logger = logging.getLogger(__name__)

class ConversationSession:
    """Fixed-capacity window of the most recent turns; the oldest turn drops out on overflow."""

    def __init__(self, max_messages: int = 10):
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.max_messages = max_messages
        self._turns: deque = deque(maxlen=max_messages)
        # Held by the answer composer for a whole exchange: one writer per conversation
        self.lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._turns)

    def turns(self) -> List[ConversationTurn]:
        """Snapshot of the window, oldest first."""
        return list(self._turns)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        self._turns.extend(turns)

    def clear(self) -> None:
        self._turns.clear()

class ConversationStore:
    """
    One ConversationSession per conversation id, created on first use.

    At most `max_sessions` conversations are kept; opening one more forgets the
    least recently used.
    """

    def __init__(self, max_messages: int = 10, max_sessions: int = 1000):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_messages = max_messages
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()

    def get(self, session_id: str) -> ConversationSession:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session

        session = self._sessions[session_id] = ConversationSession(self.max_messages)
        logger.debug("[Memory] Opened conversation %s", session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("[Memory] Conversation limit %d reached, forgot %s", self.max_sessions, evicted)
        return session

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
