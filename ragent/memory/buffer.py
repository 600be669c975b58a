"""Per-session conversation memory."""

from ragent.exceptions import ConfigurationError, ValidationError
from ragent.llm.models import Message, Role
from ragent.logging_config import get_logger
from ragent.memory.models import MemoryTurn

logger = get_logger(__name__)


class ConversationMemory:
    """Ordered buffer of user and assistant turns.

    Each session owns one instance. Turns are kept in insertion order and
    their ordinals never repeat, even after truncation. When ``max_turns`` is
    set the oldest turns are dropped once the buffer grows past it.
    """

    def __init__(self, max_turns: int | None = None) -> None:
        """Initialize an empty memory.

        Args:
            max_turns: Keep at most this many turns; None keeps everything.

        Raises:
            ConfigurationError: If max_turns is less than 1.
        """
        if max_turns is not None and max_turns < 1:
            raise ConfigurationError(
                "max_turns must be at least 1",
                details={"max_turns": max_turns},
            )
        self._max_turns = max_turns
        self._turns: list[MemoryTurn] = []
        self._last_ordinal = -1

    @property
    def max_turns(self) -> int | None:
        return self._max_turns

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, turn: MemoryTurn) -> None:
        """Append a turn.

        Raises:
            ValidationError: If the ordinal does not follow the last one.
        """
        if turn.ordinal <= self._last_ordinal:
            raise ValidationError(
                "Memory turns must be appended in increasing ordinal order",
                details={"ordinal": turn.ordinal, "last_ordinal": self._last_ordinal},
            )

        self._turns.append(turn)
        self._last_ordinal = turn.ordinal

        if self._max_turns is not None and len(self._turns) > self._max_turns:
            dropped = len(self._turns) - self._max_turns
            del self._turns[:dropped]
            logger.debug(
                "Truncated conversation memory",
                extra={"dropped": dropped, "kept": len(self._turns)},
            )

    def add_message(self, role: Role, content: str) -> MemoryTurn:
        """Record a message as the next turn."""
        turn = MemoryTurn(role=role, content=content, ordinal=self._last_ordinal + 1)
        self.append(turn)
        return turn

    def record_exchange(self, user_input: str, answer: str) -> None:
        """Record a completed user/assistant exchange as two turns."""
        self.add_message(Role.USER, user_input)
        self.add_message(Role.ASSISTANT, answer)

    def history(self) -> list[MemoryTurn]:
        """Turns in insertion order."""
        return list(self._turns)

    def to_messages(self) -> list[Message]:
        """Turns as chat messages for prompt assembly."""
        return [Message(role=turn.role, content=turn.content) for turn in self._turns]

    def clear(self) -> None:
        """Forget every turn.

        Ordinals keep increasing afterwards.
        """
        self._turns.clear()
        logger.debug("Cleared conversation memory")
