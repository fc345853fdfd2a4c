"""Conversation store.

Holds any number of independent conversations, one of which is current.
Conversations are append-only; messages are immutable. Each conversation
index has its own lock so exchanges on the same conversation run one at a
time while exchanges on different conversations can overlap.
"""

from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from directive.exceptions import ConversationIndexError
from directive.protocols import Message, Role
from directive.tracing import TraceContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class MessageFilter(str, enum.Enum):
    """Which setup messages an objective is allowed to store."""

    NONE = "none"
    ONLY_USER_MESSAGES = "only_user_messages"
    ONLY_SYSTEM_MESSAGES = "only_system_messages"

    def accepts(self, message: Message) -> bool:
        if self is MessageFilter.ONLY_USER_MESSAGES:
            return message.role is Role.USER
        if self is MessageFilter.ONLY_SYSTEM_MESSAGES:
            return message.role is Role.SYSTEM
        return True


class ConversationStore:
    """Ordered message logs, one current at a time.

    Usage::

        store = ConversationStore()
        store.append(user_message("Hello"))
        index = store.new_conversation()
        store.switch_conversation(0)
    """

    def __init__(self, trace: TraceContext | None = None) -> None:
        self._conversations: list[list[Message]] = [[]]
        self._locks: list[threading.RLock] = [threading.RLock()]
        self._current = 0
        self._guard = threading.Lock()
        self._trace = trace or TraceContext()

    # ------------------------------------------------------------------
    # Conversation selection
    # ------------------------------------------------------------------

    @property
    def current_index(self) -> int:
        return self._current

    def __len__(self) -> int:
        return len(self._conversations)

    def new_conversation(self) -> int:
        """Create an empty conversation, make it current and return its index."""
        with self._guard:
            self._conversations.append([])
            self._locks.append(threading.RLock())
            self._current = len(self._conversations) - 1
            return self._current

    def switch_conversation(self, index: int) -> None:
        """Make ``index`` the current conversation.

        Raises:
            ConversationIndexError: If ``index`` is out of bounds.
        """
        self._check(index)
        self._current = index

    @contextmanager
    def exclusive(self, index: int | None = None) -> Iterator[int]:
        """Hold the lock of one conversation for the duration of an exchange."""
        index = self._current if index is None else index
        self._check(index)
        with self._locks[index]:
            yield index

    # ------------------------------------------------------------------
    # Reading and appending
    # ------------------------------------------------------------------

    def messages(self, index: int | None = None) -> list[Message]:
        """Return a snapshot of a conversation (current by default)."""
        return list(self._conversation(index))

    def append(self, message: Message, index: int | None = None) -> Message:
        conversation = self._conversation(index)
        conversation.append(message)
        self._trace.debug("messenger", "%s", message.to_dict())
        return message

    def extend(self, messages: Iterable[Message], index: int | None = None) -> None:
        for message in messages:
            self.append(message, index)

    def last_message(self, index: int | None = None) -> Message:
        conversation = self._conversation(index)
        if not conversation:
            raise LookupError("Conversation is empty; no last message available")
        return conversation[-1]

    def last_user_message(self, index: int | None = None) -> Message | None:
        for message in reversed(self._conversation(index)):
            if message.role is Role.USER:
                return message
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._conversations):
            raise ConversationIndexError(index, len(self._conversations))

    def _conversation(self, index: int | None) -> list[Message]:
        index = self._current if index is None else index
        self._check(index)
        return self._conversations[index]
