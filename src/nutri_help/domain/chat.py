"""Domain models for the nutrition assistant conversation."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ChatRole(Enum):
    """Author of a chat message."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ChatMessage:
    """Single message in the conversation stream."""

    id: str
    role: ChatRole
    text: str
    timestamp: datetime
