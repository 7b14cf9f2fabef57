"""
Append-only conversation log for one analysis session
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class MessageRole(str, Enum):
    """Who produced a message"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM_NOTICE = "system-notice"


@dataclass(frozen=True)
class Message:
    """A single exchanged message"""
    role: MessageRole
    text: str
    chart_svg: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "text": self.text,
            "chart_svg": self.chart_svg,
            "created_at": self.created_at.isoformat(),
        }


class ConversationLog:
    """
    Ordered record of messages, oldest first.

    There is no way to remove or edit a message; a session starts a new
    log when it needs a clean history.
    """

    def __init__(self):
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def all(self) -> Tuple[Message, ...]:
        """Read-only snapshot in chronological order"""
        return tuple(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.all())
