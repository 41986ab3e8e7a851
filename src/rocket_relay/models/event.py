from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ReceiveMessageEvent:
    """Inbound message addressed to the bot, as handed to the framework."""

    text: str
    channel: str
    author_id: str = ""
    data: Any = None
