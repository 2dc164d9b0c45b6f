from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal, Protocol

MessageKind = Literal["message", "error"]


class ActionCoordinatorDelegate(Protocol):
    def did_receive_message(self, text: str) -> None:
        ...

    def did_encounter_error(self, message: str) -> None:
        ...


class CallbackDelegate:
    def __init__(
        self,
        on_message: Callable[[str], None],
        on_error: Callable[[str], None],
    ) -> None:
        self._on_message = on_message
        self._on_error = on_error

    def did_receive_message(self, text: str) -> None:
        self._on_message(text)

    def did_encounter_error(self, message: str) -> None:
        self._on_error(message)


@dataclass(slots=True)
class DelegateMessage:
    kind: MessageKind
    text: str


@dataclass(slots=True)
class BufferedDelegate:
    """Keeps notifications until a poller drains them."""

    max_items: int = 50
    items: list[DelegateMessage] = field(default_factory=list)

    def did_receive_message(self, text: str) -> None:
        self._append(DelegateMessage("message", text))

    def did_encounter_error(self, message: str) -> None:
        self._append(DelegateMessage("error", message))

    def drain(self) -> list[DelegateMessage]:
        drained, self.items = self.items, []
        return drained

    def _append(self, item: DelegateMessage) -> None:
        self.items.append(item)
        if len(self.items) > self.max_items:
            del self.items[: len(self.items) - self.max_items]
