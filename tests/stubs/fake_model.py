from __future__ import annotations

import asyncio
from collections.abc import Sequence

from runmerge.core.types import Message, Role


class FakeChatModel:
    """Minimal downstream stage standing in for a chat model.

    Records every conversation it receives and answers with a fixed reply,
    or raises `exception_to_raise` when one is given.
    """

    def __init__(
        self,
        reply: str = "ok",
        *,
        exception_to_raise: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.reply = reply
        self.requests_messages: list[list[Message]] = []
        self._exception_to_raise = exception_to_raise
        self._delay = delay

    def _respond(self, messages: Sequence[Message]) -> Message:
        self.requests_messages.append(list(messages))
        if self._exception_to_raise is not None:
            raise self._exception_to_raise
        return Message(role=Role.ai, content=self.reply)

    def invoke(self, messages: Sequence[Message]) -> Message:
        return self._respond(messages)

    async def ainvoke(self, messages: Sequence[Message]) -> Message:
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._respond(messages)
