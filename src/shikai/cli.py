from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv

from shikai import __version__
from shikai.config import AppConfig, ConfigError, resolve_model_alias
from shikai.conversations.catalog import list_conversations
from shikai.runtime.repl import ChatREPL
from shikai.runtime.runtime import ChatRuntime
from shikai.runtime.terminal import Terminal, format_conversation_row


def main() -> int:
    load_dotenv()
    return _main(sys.argv[1:])


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(verbose: bool = False, quiet: bool = False, log_format: str = "text") -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_format == "json":
        handlers[0].setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=handlers)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-dir", default=None, help="Directory holding saved conversations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    parser.add_argument("--log-format", default="text", choices=["text", "json"])


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shikai",
        description="ShikAI - terminal assistant with conversation management",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=False)

    chat = subparsers.add_parser("chat", help="Start a new chat or resume a saved conversation")
    resume = chat.add_mutually_exclusive_group()
    resume.add_argument("-r", "--resume", action="store_true", help="Resume the most recent conversation")
    resume.add_argument("-c", "--conversation", default=None, help="Resume a conversation by id")
    chat.add_argument(
        "--model",
        default=None,
        help="Model to use (supports aliases: sonnet, opus, haiku, 4o, flash, deepseek)",
    )
    chat.add_argument("--max-steps", type=int, default=None, help="Tool steps before asking to continue")
    chat.add_argument("--title-interval", type=int, default=None, help="Retitle every N messages")
    chat.add_argument("--no-stream", action="store_true", help="Disable streaming")
    chat.add_argument("--yes", action="store_true", help="Run shell commands without asking")
    _add_common_arguments(chat)

    listing = subparsers.add_parser("list", aliases=["ls"], help="List saved conversations")
    _add_common_arguments(listing)

    return parser


def _load_config(args: argparse.Namespace) -> AppConfig:
    config = AppConfig.from_env()
    if args.log_dir:
        config.conversation.log_dir = args.log_dir
    if getattr(args, "model", None):
        config.agent.model = resolve_model_alias(args.model)
    if getattr(args, "max_steps", None) is not None:
        config.agent.max_steps = args.max_steps
    if getattr(args, "title_interval", None) is not None:
        config.conversation.title_update_interval = args.title_interval
    if getattr(args, "no_stream", False):
        config.agent.stream = False
    if getattr(args, "yes", False):
        config.agent.auto_approve = True
    config.validate()
    return config


def _main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv or ["chat"])

    cmd = args.command or "chat"
    if cmd == "chat":
        return _cmd_chat(args)
    if cmd in ("list", "ls"):
        return _cmd_list(args)

    parser.print_help(sys.stderr)
    return 2


def _cmd_chat(args: argparse.Namespace) -> int:
    setup_logging(args.verbose, args.quiet, args.log_format)
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    runtime = ChatRuntime(config)
    repl = ChatREPL(runtime)
    repl.run(resume_id=args.conversation, resume_last=bool(args.resume))
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    setup_logging(args.verbose, args.quiet, args.log_format)
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    conversations = list_conversations(
        config.conversation.log_dir, limit=config.conversation.catalog_limit
    )
    terminal = Terminal()
    if not conversations:
        terminal.write(f"No saved conversations in {config.conversation.log_dir}")
        return 0
    terminal.write("ID | Last Chat           | Topic / Last Message                | Messages")
    for conversation in conversations:
        terminal.write(format_conversation_row(conversation))
        terminal.write(f"   id: {conversation.timestamp}")
    return 0
