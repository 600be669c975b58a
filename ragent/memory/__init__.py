"""Conversation memory module."""

from ragent.memory.buffer import ConversationMemory
from ragent.memory.models import MemoryTurn

__all__ = [
    "ConversationMemory",
    "MemoryTurn",
]
