from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from pydantic import ValidationError
from rich import print as rprint
from rich.markup import escape

from runmerge.core.config import MergeConfig, load_dotenv_values
from runmerge.core.logger import apply_logging_config, logger
from runmerge.core.message_utils import merge_runs
from runmerge.core.paths.global_paths import GLOBAL_CONFIG_FILE
from runmerge.core.types import ContentFormatError, Message


def load_config_or_exit(args: argparse.Namespace) -> MergeConfig:
    overrides: dict[str, Any] = {}
    if args.separator is not None:
        overrides["chunk_separator"] = args.separator
    if args.first_wins:
        overrides["combine_auxiliary"] = False
    if args.indent is not None:
        overrides["indent"] = args.indent

    try:
        return MergeConfig.load(**overrides)
    except (RuntimeError, ValueError) as e:
        rprint(f"[yellow]{escape(str(e))}[/]", file=sys.stderr)
        sys.exit(1)


def bootstrap_config_file() -> None:
    if GLOBAL_CONFIG_FILE.path.exists():
        rprint(f"[dim]Config already exists at {GLOBAL_CONFIG_FILE.path}[/]")
        return
    path = MergeConfig.save_updates(MergeConfig.create_default())
    rprint(f"[green]Wrote default config to {path}[/]")


def read_messages(args: argparse.Namespace) -> list[Any]:
    if args.input is not None:
        raw = args.input.read_text("utf-8")
    else:
        raw = sys.stdin.read()

    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(
            f"Expected a JSON array of messages, got {type(data).__name__}"
        )
    return data


def dump_messages(messages: list[Message], indent: int | None) -> str:
    payload = [msg.model_dump(mode="json", exclude_none=True) for msg in messages]
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def run_cli(args: argparse.Namespace) -> None:
    load_dotenv_values()
    apply_logging_config(logger)

    if args.init_config:
        bootstrap_config_file()
        sys.exit(0)

    config = load_config_or_exit(args)

    try:
        raw_messages = read_messages(args)
        merged = merge_runs(
            raw_messages,
            chunk_separator=config.chunk_separator,
            combine_auxiliary=config.combine_auxiliary,
        )
    except OSError as e:
        rprint(f"[red]Cannot read input: {escape(str(e))}[/]", file=sys.stderr)
        sys.exit(1)
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid JSON input: {escape(str(e))}[/]", file=sys.stderr)
        sys.exit(1)
    except ContentFormatError as e:
        rprint(f"[red]{escape(str(e))}[/]", file=sys.stderr)
        sys.exit(1)
    except (ValidationError, ValueError, TypeError) as e:
        rprint(f"[red]Invalid message: {escape(str(e))}[/]", file=sys.stderr)
        sys.exit(1)

    logger.info("Merged %d messages into %d", len(raw_messages), len(merged))
    output = dump_messages(merged, config.indent)
    if args.output is not None:
        args.output.write_text(output + "\n", "utf-8")
    else:
        print(output)
