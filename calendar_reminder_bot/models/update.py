from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class IncomingMessage:
    chat_id: int
    text: str


@dataclass(slots=True, frozen=True)
class InboundUpdate:
    id: int
    message: Optional[IncomingMessage] = None
