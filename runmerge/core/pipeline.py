from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
import inspect
from typing import Any, Protocol

from runmerge.core.logger import logger


class Invocable(Protocol):
    def invoke(self, value: Any) -> Any: ...


type Stage = Callable[[Any], Any] | Invocable


def _stage_name(stage: Any) -> str:
    return (
        getattr(stage, "name", None)
        or getattr(stage, "__name__", None)
        or type(stage).__name__
    )


def _call_sync(stage: Stage, value: Any) -> Any:
    invoke = getattr(stage, "invoke", None)
    if callable(invoke):
        return invoke(value)
    if not callable(stage):
        raise TypeError(f"Stage {stage!r} is neither callable nor invocable")
    return stage(value)


async def _call_async(stage: Stage, value: Any) -> Any:
    ainvoke = getattr(stage, "ainvoke", None)
    if callable(ainvoke):
        return await ainvoke(value)
    result = _call_sync(stage, value)
    if inspect.isawaitable(result):
        return await result
    return result


class Runnable(ABC):
    """Deferred transformation: call it, `invoke` it, or pipe it into more stages."""

    name: str

    @abstractmethod
    def invoke(self, value: Any) -> Any: ...

    @abstractmethod
    async def ainvoke(self, value: Any) -> Any: ...

    def __call__(self, value: Any) -> Any:
        return self.invoke(value)

    def pipe(self, *others: Stage) -> RunnableSequence:
        return RunnableSequence(self, *others)

    def __or__(self, other: Stage) -> RunnableSequence:
        return self.pipe(other)

    def __ror__(self, other: Stage) -> RunnableSequence:
        return RunnableSequence(other, self)


class RunnableStep(Runnable):
    def __init__(self, func: Callable[[Any], Any], name: str | None = None) -> None:
        self.func = func
        self.name = name or _stage_name(func)

    def invoke(self, value: Any) -> Any:
        return self.func(value)

    async def ainvoke(self, value: Any) -> Any:
        result = self.func(value)
        if inspect.isawaitable(result):
            return await result
        return result

    def __repr__(self) -> str:
        return f"RunnableStep({self.name})"


class RunnableSequence(Runnable):
    """Stages run left to right, each fed the previous stage's output.

    Stages can be plain or async callables, or objects exposing
    `invoke`/`ainvoke`. Nested sequences are flattened.
    """

    def __init__(self, *stages: Stage, name: str | None = None) -> None:
        if not stages:
            raise ValueError("A runnable sequence needs at least one stage")

        flat: list[Stage] = []
        for stage in stages:
            if isinstance(stage, RunnableSequence):
                flat.extend(stage.stages)
            else:
                flat.append(stage)
        self.stages: tuple[Stage, ...] = tuple(flat)
        self.name = name or " | ".join(_stage_name(s) for s in self.stages)

    def invoke(self, value: Any) -> Any:
        # A trailing async stage hands its awaitable back to the caller as-is.
        last = len(self.stages) - 1
        for i, stage in enumerate(self.stages):
            value = _call_sync(stage, value)
            if i < last and inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise TypeError(
                    f"Stage {_stage_name(stage)!r} returned an awaitable "
                    f"before the end of the sequence; use ainvoke() instead"
                )
        return value

    async def ainvoke(self, value: Any) -> Any:
        for stage in self.stages:
            logger.debug("Running stage %s", _stage_name(stage))
            value = await _call_async(stage, value)
        return value

    def pipe(self, *others: Stage) -> RunnableSequence:
        return RunnableSequence(*self.stages, *others, name=None)

    def __repr__(self) -> str:
        return f"RunnableSequence({self.name})"
