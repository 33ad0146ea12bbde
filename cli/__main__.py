"""``python -m cli``: talk to a running Greanly server."""

import argparse
import asyncio
import sys
from pathlib import Path

from .config import CLIConfig
from .greanly_cli import main


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="greanly-cli",
        description=(
            "Chat with Greanly. The server keeps no state, so this client "
            "holds the conversation and resends it every turn."
        ),
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", default="localhost")
    server.add_argument("--port", type=int, default=8000)
    server.add_argument("--api-path", default="/chat")

    session = parser.add_argument_group("conversation")
    session.add_argument(
        "--history-file",
        type=Path,
        help="Resume from and save the conversation to this JSON file",
    )
    session.add_argument(
        "--reset",
        action="store_true",
        help="Start over, deleting the conversation in --history-file",
    )
    session.add_argument(
        "--no-welcome",
        dest="fetch_welcome",
        action="store_false",
        help="Skip fetching the onboarding message from /welcome",
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--show-thinking", action="store_true", help="Print reasoning summaries"
    )
    output.add_argument(
        "--debug", action="store_true", help="Log requests and response headers"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> CLIConfig:
    return CLIConfig(
        host=args.host,
        port=args.port,
        api_path=args.api_path,
        fetch_welcome=args.fetch_welcome,
        history_file=args.history_file,
        reset_history=args.reset,
        show_thinking=args.show_thinking,
    )


def cli_entry(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(main(config_from_args(args), debug=args.debug))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli_entry()
