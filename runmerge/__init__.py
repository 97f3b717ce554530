from __future__ import annotations

from pathlib import Path

from runmerge.core.message_utils import merge_message_runs, merge_runs
from runmerge.core.pipeline import RunnableSequence, RunnableStep
from runmerge.core.types import ContentFormatError, Message, Role

__version__ = "0.1.0"

RUNMERGE_ROOT = Path(__file__).parent

__all__ = [
    "ContentFormatError",
    "Message",
    "Role",
    "RunnableSequence",
    "RunnableStep",
    "merge_message_runs",
    "merge_runs",
]
