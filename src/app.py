"""Application entry point for wellbots."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import random
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from rich.console import Console

import settings
from adapters.console_formatting import (
    format_analysis,
    format_bot_line,
    format_gratitude_history,
    format_recommendation,
    format_turn,
)
from adapters.sqlite_storage import SQLiteStorage
from core.bots import (
    COGNITIVE_DISTORTION,
    FACE_DETECTION,
    GRATITUDE,
    MOODS,
    TRIPLE_M,
    VENTING_SHREDDER,
    default_registry,
)
from core.catalog import select_response
from core.config import SamplerConfig, SessionConfig
from core.emotion import EmotionSampler
from core.processor import SupportProcessor
from core.session import ChatSession, GratitudeSession, MoodSession, ShredderSession
from core.state import GratitudeView

NAME = "WELLBOTS"
FONT = "tarty-1"

QUIT_COMMANDS = {"/quit", "/exit"}
RESET_COMMAND = "/reset"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(console: Optional[bool] = None) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # Interactive chat keeps log lines off the terminal unless asked for.
    if config.get("console", True) if console is None else console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/wellbots.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _rng() -> random.Random:
    return random.Random(settings.RANDOM_SEED)


def _session_config() -> SessionConfig:
    return SessionConfig(
        processing_delay_seconds=settings.PROCESSING_DELAY_SECONDS,
        countdown_seconds=settings.COUNTDOWN_SECONDS,
        shred_step_seconds=settings.SHRED_STEP_SECONDS,
    )


def _parse_expression(raw: Optional[str]) -> dict[str, float]:
    """Parse ``happy=0.8,sad=0.1``; a bare label scores 1.0."""

    scores: dict[str, float] = {}
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        label, _, score = part.partition("=")
        scores[label.strip().lower()] = float(score) if score else 1.0
    return scores


async def _ask(console: Console, prompt: str) -> str:
    return (await asyncio.to_thread(console.input, prompt)).strip()


async def _ask_yes_no(console: Console, prompt: str) -> bool:
    answer = await _ask(console, f"{prompt} (y/n) ")
    return answer.lower() in {"y", "yes"}


async def _chat_loop(
    console: Console,
    processor: SupportProcessor,
    bot_type: str,
    user_id: str,
    expression: dict,
) -> None:
    bot = processor.registry.get(bot_type)
    sampler = None
    if bot_type == FACE_DETECTION:
        sampler = EmotionSampler(SamplerConfig(period_seconds=settings.SAMPLER_PERIOD_SECONDS))
        sampler.start(lambda: expression)

    session = ChatSession(processor, bot_type, user_id, config=_session_config(), sampler=sampler)
    try:
        greeting = await session.start()
        if greeting:
            console.print(format_bot_line(bot.name, greeting))
        while True:
            text = await _ask(console, "[bold]you>[/bold] ")
            if text in QUIT_COMMANDS:
                return
            if text == RESET_COMMAND:
                session.reset()
                console.print("[dim]Session reset.[/dim]")
                continue
            if not text:
                continue
            with console.status(f"{bot.name} is thinking..."):
                result = await session.submit(text)
            if result is not None:
                console.print(format_turn(result, bot.name))
            session.reset()
    finally:
        session.close()
        if sampler is not None:
            sampler.stop()


async def _distortion_loop(console: Console, processor: SupportProcessor, user_id: str) -> None:
    while True:
        thought = await _ask(console, "[bold]thought>[/bold] ")
        if thought in QUIT_COMMANDS:
            return
        if not thought:
            continue
        analysis = await processor.analyze_thought(user_id, thought)
        console.print(format_analysis(analysis))


async def _mood_flow(console: Console, processor: SupportProcessor, user_id: str) -> None:
    session = MoodSession(processor, user_id)
    while True:
        text = await _ask(console, f"How are you feeling? ({', '.join(MOODS)}) ")
        if text in QUIT_COMMANDS:
            return
        mood = text.lower() if text.lower() in MOODS else processor.suggest_mood(text)
        if mood is None:
            console.print("[yellow]Pick one of the listed moods.[/yellow]")
            continue
        session.choose(mood)

        try:
            intensity = int(await _ask(console, "Intensity 1-10: "))
            notes = await _ask(console, "Notes (optional): ")
            session.describe(intensity, notes)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            session.back()
            continue

        recommendation = await session.submit()
        console.print(format_recommendation(recommendation))
        session.reset()


async def _gratitude_flow(console: Console, processor: SupportProcessor, user_id: str) -> None:
    session = GratitudeSession(processor, user_id)
    console.print(format_gratitude_history(session.entries, limit=5))
    while True:
        session.show(GratitudeView.ADD)
        console.print(f"[bold cyan]Today's challenge:[/bold cyan] {session.state.challenge}")
        session.accept(await _ask_yes_no(console, "Accept the challenge?"))
        text = await _ask(console, "[bold]grateful for>[/bold] ")
        if text in QUIT_COMMANDS:
            return
        if not text:
            continue
        await session.submit(text)
        console.print(format_gratitude_history(session.entries, limit=5))


async def _venting_flow(console: Console, processor: SupportProcessor, user_id: str) -> None:
    bot = processor.registry.get(VENTING_SHREDDER)
    session = ShredderSession(processor, user_id, config=_session_config())
    try:
        while True:
            text = await _ask(console, "[bold]vent>[/bold] ")
            if text in QUIT_COMMANDS:
                return
            if not text:
                continue
            if not await session.write(text):
                console.print("[red]Could not save your text. Please try again.[/red]")
                continue
            if not await _ask_yes_no(console, "Shred it?"):
                session.back()
                continue
            with console.status("Shredding..."):
                shredded = await session.shred()
            if shredded:
                console.print(format_bot_line(bot.name, select_response("released", bot.catalog)))
            else:
                console.print("[red]The text could not be shredded.[/red]")
            session.reset()
    finally:
        session.close()


async def _run_chat(bot_type: str, user_id: str, expression: dict) -> None:
    console = Console()
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    processor = SupportProcessor(default_registry(), storage, rng=_rng())
    bot = processor.registry.get(bot_type)
    console.print(f"[bold]{bot.name}[/bold] [dim](/quit to leave)[/dim]")

    if bot_type == COGNITIVE_DISTORTION:
        await _distortion_loop(console, processor, user_id)
    elif bot_type == TRIPLE_M:
        await _mood_flow(console, processor, user_id)
    elif bot_type == GRATITUDE:
        await _gratitude_flow(console, processor, user_id)
    elif bot_type == VENTING_SHREDDER:
        await _venting_flow(console, processor, user_id)
    else:
        await _chat_loop(console, processor, bot_type, user_id, expression)


def _chat(args: argparse.Namespace) -> None:
    _print_banner()
    _configure_logging(console=False)
    logging.getLogger(__name__).info("Starting %s chat for %s", args.bot, args.user)
    try:
        asyncio.run(_run_chat(args.bot, args.user, _parse_expression(args.expression)))
    except (KeyboardInterrupt, EOFError):
        pass


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    from adapters.http_api import create_app

    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    host = args.host or settings.SERVER_HOST
    port = args.port or settings.SERVER_PORT
    logger.info("Starting classification service on %s:%s", host, port)
    uvicorn.run(create_app(rng=_rng()), host=host, port=port)


def _classify(args: argparse.Namespace) -> None:
    from adapters.http_api import classify_message

    console = Console()
    console.print(classify_message(default_registry(), args.message, args.bot, _rng()))


def main(argv: Optional[list[str]] = None) -> None:
    bot_types = default_registry().bot_types

    parser = argparse.ArgumentParser(prog="wellbots")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Start the classification service")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)

    chat = subparsers.add_parser("chat", help="Talk to a bot in the terminal")
    chat.add_argument("--bot", choices=bot_types, default=bot_types[0])
    chat.add_argument("--user", default=os.getenv("WELLBOTS_USER", "local"))
    chat.add_argument(
        "--expression",
        help="Fixed expression scores for the face-aware chat, e.g. happy=0.8,sad=0.1",
    )

    classify = subparsers.add_parser("classify", help="Print the reply for one message")
    classify.add_argument("bot", choices=bot_types)
    classify.add_argument("message")

    args = parser.parse_args(argv)
    if args.command == "chat":
        _chat(args)
        return
    if args.command == "classify":
        _classify(args)
        return
    if args.command == "serve":
        _serve(args)
        return
    parser.print_help()


if __name__ == "__main__":
    main()
