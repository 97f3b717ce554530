from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path


class GlobalPath:
    def __init__(self, resolver: Callable[[], Path]) -> None:
        self._resolver = resolver

    @property
    def path(self) -> Path:
        return self._resolver()


_DEFAULT_RUNMERGE_HOME = Path.home() / ".runmerge"


def _get_runmerge_home() -> Path:
    if runmerge_home := os.getenv("RUNMERGE_HOME"):
        return Path(runmerge_home).expanduser().resolve()
    return _DEFAULT_RUNMERGE_HOME


RUNMERGE_HOME = GlobalPath(_get_runmerge_home)
GLOBAL_CONFIG_FILE = GlobalPath(lambda: RUNMERGE_HOME.path / "config.toml")
GLOBAL_ENV_FILE = GlobalPath(lambda: RUNMERGE_HOME.path / ".env")
LOG_DIR = GlobalPath(lambda: RUNMERGE_HOME.path / "logs")
LOG_FILE = GlobalPath(lambda: RUNMERGE_HOME.path / "logs" / "runmerge.log")
