from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    text: str
    html: str


class Mailer(Protocol):
    async def send(self, message: OutboundEmail) -> None: ...
