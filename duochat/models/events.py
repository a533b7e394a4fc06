from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AppendText:
    message_id: str
    text: str


@dataclass(frozen=True)
class Complete:
    message_id: str


NormalizedEvent = AppendText | Complete
