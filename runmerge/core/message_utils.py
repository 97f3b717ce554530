from __future__ import annotations

from collections.abc import Mapping, Sequence
import functools
from typing import Any, overload

from pydantic import BaseModel, TypeAdapter, ValidationError

from runmerge.core.content import DEFAULT_CHUNK_SEPARATOR, merge_content
from runmerge.core.logger import logger
from runmerge.core.pipeline import RunnableStep
from runmerge.core.types import (
    ContentBlock,
    ContentFormatError,
    Message,
    Role,
    Usage,
)

type MessageLike = (
    Message | Mapping[str, Any] | tuple[Any, Any] | list[Any] | str
)

# Fields (besides content) that accumulate across a run, per role.
# Anything not listed here is taken from the first message of the run.
COMBINABLE_FIELDS: dict[Role, frozenset[str]] = {
    Role.system: frozenset(),
    Role.human: frozenset(),
    Role.ai: frozenset({"tool_calls", "usage"}),
    Role.tool: frozenset(),
    Role.generic: frozenset(),
}

_blocks_adapter: TypeAdapter[list[ContentBlock]] = TypeAdapter(list[ContentBlock])


def _validate_content(content: Any, index: int) -> str | list[ContentBlock]:
    if isinstance(content, str):
        return content
    if not isinstance(content, (list, tuple)):
        raise ContentFormatError(content, index)

    raw_blocks: list[Any] = []
    for block in content:
        if isinstance(block, str):
            raw_blocks.append({"type": "text", "text": block})
        elif isinstance(block, BaseModel):
            raw_blocks.append(block)
        elif isinstance(block, Mapping) and isinstance(block.get("type"), str):
            raw_blocks.append(dict(block))
        else:
            raise ContentFormatError(
                content, index, f"unrecognized content block {block!r}"
            )

    try:
        return _blocks_adapter.validate_python(raw_blocks)
    except ValidationError as e:
        raise ContentFormatError(
            content, index, f"invalid content block: {e.errors()[0]['msg']}"
        ) from e


def coerce_message(value: MessageLike, index: int = 0) -> Message:
    """Build a `Message` from a message-like value.

    Accepts a `Message`, a mapping of `Message` fields, a `(role, content)`
    pair (tuple or two-item list, as decoded from JSON), or a bare string
    (a human message).
    """
    match value:
        case Message():
            content = _validate_content(value.content, index)
            return value.model_copy(update={"content": content})
        case str():
            return Message(role=Role.human, content=value)
        case (role, content) if isinstance(value, (tuple, list)):
            return Message(role=role, content=_validate_content(content, index))
        case Mapping():
            data = dict(value)
            data["content"] = _validate_content(data.get("content", ""), index)
            return Message.model_validate(data)
        case _:
            raise TypeError(
                f"Unsupported message type {type(value).__name__} at index {index}"
            )


def _merge_pair(
    acc: Message, incoming: Message, separator: str, combine_auxiliary: bool
) -> Message:
    update: dict[str, Any] = {
        "content": merge_content(acc.content, incoming.content, separator)
    }
    combinable = COMBINABLE_FIELDS[acc.role] if combine_auxiliary else frozenset()

    if "tool_calls" in combinable and (acc.tool_calls or incoming.tool_calls):
        update["tool_calls"] = [*(acc.tool_calls or []), *(incoming.tool_calls or [])]

    if "usage" in combinable and (acc.usage or incoming.usage):
        update["usage"] = (acc.usage or Usage()) + (incoming.usage or Usage())

    return acc.model_copy(update=update)


def merge_runs(
    messages: Sequence[MessageLike],
    *,
    chunk_separator: str = DEFAULT_CHUNK_SEPARATOR,
    combine_auxiliary: bool = True,
) -> list[Message]:
    """Collapse each run of adjacent same-role messages into one message.

    The first message of a run supplies the id, name and metadata of the
    merged message. Contents are merged pairwise in order; see
    `merge_content`. The input is never modified and every returned message
    is a fresh object.

    Raises:
        ContentFormatError: a message's content is neither a string nor a
            list of content blocks. Nothing is returned in that case.
    """
    result: list[Message] = []
    for index, raw in enumerate(messages):
        try:
            msg = coerce_message(raw, index)
        except ContentFormatError as e:
            logger.warning("Refusing to merge malformed messages: %s", e)
            raise

        if result and result[-1].role == msg.role:
            result[-1] = _merge_pair(
                result[-1], msg, chunk_separator, combine_auxiliary
            )
        else:
            result.append(msg)

    logger.debug("Merged %d messages into %d runs", len(messages), len(result))
    return [msg.model_copy(deep=True) for msg in result]


@overload
def merge_message_runs(
    messages: None = None,
    *,
    chunk_separator: str = ...,
    combine_auxiliary: bool = ...,
) -> RunnableStep: ...
@overload
def merge_message_runs(
    messages: Sequence[MessageLike],
    *,
    chunk_separator: str = ...,
    combine_auxiliary: bool = ...,
) -> list[Message]: ...
def merge_message_runs(
    messages: Sequence[MessageLike] | None = None,
    *,
    chunk_separator: str = DEFAULT_CHUNK_SEPARATOR,
    combine_auxiliary: bool = True,
) -> list[Message] | RunnableStep:
    """Merge runs now, or return a step that does so when invoked.

    With `messages` this is `merge_runs(messages)`. Without, the returned
    `RunnableStep` can be invoked later or piped into a downstream stage,
    e.g. `merge_message_runs() | model`.
    """
    if messages is not None:
        return merge_runs(
            messages,
            chunk_separator=chunk_separator,
            combine_auxiliary=combine_auxiliary,
        )
    return RunnableStep(
        functools.partial(
            merge_runs,
            chunk_separator=chunk_separator,
            combine_auxiliary=combine_auxiliary,
        ),
        name="merge_message_runs",
    )
