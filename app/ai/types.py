from dataclasses import dataclass
from typing import Literal, Protocol, Sequence


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


class CompletionError(RuntimeError):
    """The text-generation call itself failed (network, quota, empty reply)."""


class CompletionClient(Protocol):
    def complete(self, messages: Sequence[ChatMessage]) -> str: ...
