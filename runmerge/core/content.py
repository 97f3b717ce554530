from __future__ import annotations

from typing import Any

from runmerge.core.types import ContentBlock, ContentFormatError, TextBlock

type MessageContent = str | list[ContentBlock]

DEFAULT_CHUNK_SEPARATOR = "\n"


def to_blocks(content: MessageContent) -> list[ContentBlock]:
    """Return `content` as a block list, promoting a string to one text block.

    An empty string contributes no block.
    """
    if isinstance(content, str):
        return [TextBlock(text=content)] if content else []
    if isinstance(content, list):
        return list(content)
    raise ContentFormatError(content)


def merge_content(
    left: Any, right: Any, separator: str = DEFAULT_CHUNK_SEPARATOR
) -> MessageContent:
    """Merge two content values, `left` being the earlier one.

    Careful: this is not commutative!
    """
    match left, right:
        case str(), str():
            return separator.join(part for part in (left, right) if part)
        case list(), list():
            return [*left, *right]
        case (str() | list()), (str() | list()):
            return [*to_blocks(left), *to_blocks(right)]
        case (str() | list()), _:
            raise ContentFormatError(right)
        case _:
            raise ContentFormatError(left)
