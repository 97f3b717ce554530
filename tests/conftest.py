from __future__ import annotations

from pathlib import Path

import pytest

from runmerge.core.types import Message, Role


@pytest.fixture(autouse=True)
def runmerge_home(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Path:
    home = tmp_path_factory.mktemp("runmerge_home")
    monkeypatch.setenv("RUNMERGE_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "RUNMERGE_CHUNK_SEPARATOR",
        "RUNMERGE_COMBINE_AUXILIARY",
        "RUNMERGE_INDENT",
        "LOG_LEVEL",
        "DEBUG_MODE",
        "LOG_MAX_BYTES",
    ):
        monkeypatch.delenv(var, raising=False)


def system(content: str | list) -> Message:
    return Message(role=Role.system, content=content)


def human(content: str | list) -> Message:
    return Message(role=Role.human, content=content)


def ai(content: str | list, **kwargs) -> Message:
    return Message(role=Role.ai, content=content, **kwargs)


def tool(content: str | list, **kwargs) -> Message:
    return Message(role=Role.tool, content=content, **kwargs)
