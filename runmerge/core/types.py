from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum, auto
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    computed_field,
    model_validator,
)


class Role(StrEnum):
    system = auto()
    human = auto()
    ai = auto()
    tool = auto()
    generic = auto()

    @classmethod
    def _missing_(cls, value: object) -> Role | None:
        if isinstance(value, str):
            canonical = ROLE_ALIASES.get(value.lower())
            if canonical is not None:
                return cls(canonical)
        return None


ROLE_ALIASES: dict[str, str] = {
    "system": "system",
    "human": "human",
    "user": "human",
    "ai": "ai",
    "assistant": "ai",
    "tool": "tool",
    "generic": "generic",
    "chat": "generic",
}


def _role_before(v: Any) -> Any:
    if isinstance(v, str) and not isinstance(v, Role):
        return ROLE_ALIASES.get(v.lower(), v)
    return v


RoleField = Annotated[Role, BeforeValidator(_role_before)]


class TextBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image_url"] = "image_url"
    image_url: str | dict[str, Any]


class ToolUseBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str | None = None
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str = ""
    is_error: bool = False


class ReasoningBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reasoning"] = "reasoning"
    reasoning: str
    signature: str | None = None


class GenericBlock(BaseModel):
    """Any block kind without a dedicated model; extra keys are kept as-is."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str


KNOWN_BLOCK_TYPES = frozenset({
    "text",
    "image_url",
    "tool_use",
    "tool_result",
    "reasoning",
})


def _block_tag(v: Any) -> str:
    if isinstance(v, dict):
        tag = v.get("type")
    else:
        tag = getattr(v, "type", None)
    if (
        isinstance(tag, str)
        and tag in KNOWN_BLOCK_TYPES
        and not isinstance(v, GenericBlock)
    ):
        return tag
    return "generic"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image_url")],
        Annotated[ToolUseBlock, Tag("tool_use")],
        Annotated[ToolResultBlock, Tag("tool_result")],
        Annotated[ReasoningBlock, Tag("reasoning")],
        Annotated[GenericBlock, Tag("generic")],
    ],
    Discriminator(_block_tag),
]


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class Usage(BaseModel):
    model_config = ConfigDict(frozen=True)

    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


class Message(BaseModel):
    """One conversation turn.

    `content` is either a plain string or an ordered list of content blocks,
    never both. Instances are frozen so the role can't change after
    construction.

    Keys that aren't fields (e.g. `additional_kwargs`) are moved into
    `metadata`; keys already in `metadata` win.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    role: RoleField
    content: str | list[ContentBlock] = ""
    name: str | None = None
    id: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    usage: Usage | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_unknown_keys(cls, v: Any) -> Any:
        if not isinstance(v, Mapping):
            return v
        unknown = {k: val for k, val in v.items() if k not in cls.model_fields}
        if not unknown:
            return v
        data = {k: val for k, val in v.items() if k in cls.model_fields}
        metadata = data.get("metadata") or {}
        if isinstance(metadata, Mapping):
            data["metadata"] = {**unknown, **metadata}
        return data


class ContentFormatError(ValueError):
    def __init__(
        self, content: Any, index: int | None = None, reason: str | None = None
    ) -> None:
        self.content_type = type(content).__name__
        self.index = index
        where = f"message {index}" if index is not None else "message"
        detail = reason or (
            f"content must be a string or a list of content blocks, "
            f"got {self.content_type}"
        )
        super().__init__(f"Malformed content in {where}: {detail}")
