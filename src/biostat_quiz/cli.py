"""Command line entry point: ``biostat-quiz``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from rich.console import Console

from biostat_quiz import __version__
from biostat_quiz.core import ai
from biostat_quiz.core.ai import ConfigurationError
from biostat_quiz.core.logging import configure_logger
from biostat_quiz.core.workspace import WorkspaceError, ensure_workspace
from biostat_quiz.quiz import config as quiz_config
from biostat_quiz.quiz.builder import QuizRequestOptions
from biostat_quiz.quiz.config import (
    ConfigOverrides,
    QuizConfig,
    QuizConfigError,
)
from biostat_quiz.quiz.generator import GenerationError, build_generator
from biostat_quiz.quiz.models import QuizMode, Question
from biostat_quiz.quiz.scoring import write_transcript
from biostat_quiz.quiz.session import QuizSession
from biostat_quiz.quiz.topics import BIOSTATISTICS_TOPICS, resolve_topics
from biostat_quiz.quiz.view import render_results, run_quiz_session

LOGGER_NAME = "biostat_quiz"
GENERATION_FAILED_MESSAGE = (
    "Could not generate the quiz. Please try again in a moment."
)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="biostat-quiz",
        description="AI-generated multiple-choice biostatistics quizzes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument(
        "-V", "--version", action="store_true", help="Show version and exit"
    )
    sub = p.add_subparsers(dest="command")

    sub.add_parser("topics", help="List the topic catalog")

    sp_config = sub.add_parser("config", help="Manage quiz.toml")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_init = config_sub.add_parser(
        "init", help="Write the default quiz.toml template"
    )
    sp_init.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory)",
    )
    sp_init.add_argument("--workspace", type=Path)
    sp_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing config"
    )

    sp_start = sub.add_parser("start", help="Generate and take a quiz")
    sp_start.add_argument(
        "--mode",
        choices=[mode.value for mode in QuizMode],
        default=QuizMode.RANDOM.value,
    )
    sp_start.add_argument(
        "--topics",
        nargs="+",
        help="Catalog topics or their numbers (topic mode)",
    )
    sp_start.add_argument("--hashtag", help="Tag to filter on (hashtag mode)")
    sp_start.add_argument("--num", type=int, help="Number of questions")
    sp_start.add_argument(
        "--extended",
        action="store_true",
        default=None,
        help="Include chart and statistical-output questions",
    )
    sp_start.add_argument(
        "--export", dest="export", action="store_true", default=None
    )
    sp_start.add_argument("--no-export", dest="export", action="store_false")
    sp_start.add_argument("--config", type=Path)
    sp_start.add_argument("--workspace", type=Path)
    sp_start.add_argument("--log-level")
    sp_start.add_argument("--verbose", action="store_true", default=None)
    return p


def _cmd_topics(console: Console) -> int:
    for number, topic in enumerate(BIOSTATISTICS_TOPICS, start=1):
        console.print(f"{number:>2}. {topic}", highlight=False)
    return 0


def _cmd_config_init(args: argparse.Namespace, console: Console) -> int:
    try:
        if args.path is not None:
            target = args.path.expanduser().absolute()
        else:
            layout = ensure_workspace(path=args.workspace)
            target = layout.path_for("config") / quiz_config.CONFIG_FILENAME
        written = quiz_config.write_default_config(
            target, overwrite=args.force
        )
    except (QuizConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    console.print(f"Wrote quiz config to {written}", highlight=False)
    return 0


def _request_from_args(
    args: argparse.Namespace, config: QuizConfig
) -> tuple[QuizMode, QuizRequestOptions]:
    mode = QuizMode(args.mode)
    topics: List[str] = []
    if mode is QuizMode.TOPIC:
        if not args.topics:
            raise ValueError("--topics is required with --mode topic")
        topics = resolve_topics(args.topics)
    hashtag = None
    if mode is QuizMode.HASHTAG:
        hashtag = (args.hashtag or "").strip()
        if not hashtag:
            raise ValueError("--hashtag is required with --mode hashtag")
    return mode, QuizRequestOptions(
        topics=tuple(topics),
        hashtag=hashtag,
        extended=config.extended_kinds,
    )


async def _generate(
    client: Any,
    config: QuizConfig,
    mode: QuizMode,
    options: QuizRequestOptions,
    logger: logging.Logger,
) -> List[Question]:
    generator = build_generator(
        client,
        model=config.provider.model,
        temperature=config.provider.temperature,
        max_output_tokens=config.provider.max_output_tokens,
        logger=logger.getChild("generator"),
    )
    try:
        return await asyncio.wait_for(
            generator.generate(mode, config.num_questions, options),
            timeout=config.provider.timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        logger.error(
            "Quiz generation timed out",
            extra={"timeout_seconds": config.provider.timeout_seconds},
        )
        raise GenerationError("Quiz generation timed out.") from exc
    finally:
        await client.close()


def _cmd_start(
    args: argparse.Namespace,
    console: Console,
    input_provider: Callable[[], str],
) -> int:
    overrides = ConfigOverrides(
        num_questions=args.num,
        extended_kinds=args.extended,
        export_enabled=args.export,
        log_level=args.log_level,
        verbose=args.verbose,
    )
    try:
        loaded = quiz_config.load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except (QuizConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 2
    config = loaded.config

    try:
        mode, options = _request_from_args(args, config)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=config.log_level,
        verbose=config.verbose,
    )
    logger.debug(
        "start command invoked",
        extra={"config_path": loaded.config_path, "mode": mode.value},
    )

    try:
        client = ai.load_client(timeout=config.provider.timeout_seconds)
    except ConfigurationError as exc:
        logger.error("Provider credential missing")
        sys.stderr.write(f"{exc}\n")
        return 2

    with console.status("Generating your quiz..."):
        try:
            questions = asyncio.run(
                _generate(client, config, mode, options, logger)
            )
        except GenerationError:
            console.print(f"[red]{GENERATION_FAILED_MESSAGE}[/]")
            console.print(f"[dim]Details in {log_path}[/]", highlight=False)
            return 1

    session = QuizSession(logger=logger.getChild("session"))
    session.initialize(questions)
    result = run_quiz_session(session, console, input_provider)
    if result.outcome is None:
        return 0

    render_results(console, questions, result.outcome, mode)
    if config.export_enabled:
        try:
            path = write_transcript(
                config.export_dir,
                questions,
                result.outcome.answers,
                result.outcome.elapsed_seconds,
                mode,
            )
        except OSError:
            logger.exception(
                "Transcript export failed",
                extra={"export_dir": config.export_dir},
            )
            console.print(
                f"[red]Could not save results to {config.export_dir}.[/]",
                highlight=False,
            )
            return 1
        logger.info("Exported transcript", extra={"path": path})
        console.print(f"Saved results to {path}", highlight=False)
    return 0


def _version() -> str:
    try:
        return metadata.version("biostat-quiz")
    except metadata.PackageNotFoundError:
        return __version__


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    if args.version:
        console.print(_version(), highlight=False)
        return 0
    if args.command == "topics":
        return _cmd_topics(console)
    if args.command == "config":
        return _cmd_config_init(args, console)
    if args.command == "start":
        provider = input_provider or (lambda: console.input("> "))
        return _cmd_start(args, console, provider)
    parser.print_help()
    return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
