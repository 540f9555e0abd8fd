"""Command-line launcher for the doc-quiz application."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from rich.console import Console

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    DocQuizConfigError,
    load_config,
    write_config_template,
)
from .core import configure_logger, load_client
from .generator import QuizGenerator
from .workflow import QuizWorkflow

LOGGER_NAME = "doc_quiz"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc-quiz",
        description=(
            "Turn a PDF, DOC or DOCX document into an editable "
            "multiple-choice quiz."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "document",
        nargs="?",
        type=Path,
        help="Document to preselect in the app",
    )
    parser.add_argument("--config", type=Path, help="Path to doc_quiz.toml")
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace directory for config and logs",
    )
    parser.add_argument("--model", help="OpenAI model override")
    parser.add_argument("--log-level", help="File log level override")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also log to stderr at DEBUG level",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help=f"Write a {CONFIG_FILENAME} template into the workspace and exit",
    )
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    client_factory: Callable[[Optional[str]], Any] = load_client,
    app_factory: Optional[Callable[..., Any]] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    out = console or Console(stderr=True)

    try:
        result = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                model=args.model, log_level=args.log_level
            ),
            workspace_path=args.workspace,
        )
    except DocQuizConfigError as exc:
        out.print(f"[red]Configuration error:[/] {exc}")
        return 2

    if args.init_config:
        target = args.config or result.layout.path_for("config") / CONFIG_FILENAME
        try:
            write_config_template(target)
        except DocQuizConfigError as exc:
            out.print(f"[yellow]{exc}[/]")
            return 1
        out.print(f"Created template {target}")
        return 0

    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=result.layout.path_for("logs"),
        level=result.config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "doc-quiz launched",
        extra={
            "config_path": result.config_path,
            "model": result.config.generation.model,
        },
    )

    if args.document is not None and not args.document.expanduser().is_file():
        out.print(f"[red]Document not found:[/] {args.document}")
        return 1

    try:
        client = client_factory(None)
    except RuntimeError as exc:
        # The app still starts; the first generation reports the problem and
        # the error dialog offers to enter a key.
        logger.warning("OpenAI client unavailable", extra={"reason": str(exc)})
        out.print(f"[yellow]{exc}[/]")
        client = None

    generator = QuizGenerator(client, settings=result.config.generation)
    workflow = QuizWorkflow(generator, logger=logger.getChild("workflow"))

    if app_factory is None:
        from .view import DocQuizApp

        app_factory = DocQuizApp
    app = app_factory(
        workflow,
        initial_path=args.document,
        client_factory=client_factory,
    )
    app.run()
    logger.debug("doc-quiz exited", extra={"log_path": log_path})
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover
    run()
