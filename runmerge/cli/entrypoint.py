from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from runmerge import __version__


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="runmerge",
        description=(
            "Merge runs of consecutive same-role chat messages. Reads a JSON "
            "array of messages and writes the merged array."
        ),
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        default=None,
        help="JSON file holding the messages (defaults to stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the merged messages here instead of stdout",
    )
    parser.add_argument(
        "--separator",
        default=None,
        help="Separator between merged string contents (default: newline)",
    )
    parser.add_argument(
        "--first-wins",
        action="store_true",
        help="Take tool calls and usage from the first message of a run only",
    )
    parser.add_argument(
        "--indent", type=int, default=None, help="JSON indentation of the output"
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write the default config file if it is missing and exit",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    from runmerge.cli.cli import run_cli

    args = parse_arguments(argv)
    run_cli(args)


if __name__ == "__main__":
    main()
