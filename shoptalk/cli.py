"""CLI commands for shoptalk.

Runs the query understanding pipeline on a single utterance from the
terminal, mainly for tuning keyword tables and checking extraction rules.

Commands:
    shoptalk parse TEXT      - Show intent, entities and period
    shoptalk respond TEXT    - Show the response directive
    shoptalk enrich TEXT     - Print the enriched chat payload as JSON
    shoptalk validate [TEXT] [--tax-id X] [--phone X] [--plate X]
                             - Check entity formats
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import NluConfig
from .core.intent import EntityType, QueryParser, create_parser as create_query_parser

console = Console()


def _setup_logging() -> logging.Logger:
    """Configure logging with rotation.

    Logs are written to ~/.shoptalk/logs/ with owner-only permissions.
    Uses INFO level by default; set SHOPTALK_DEBUG=1 for DEBUG level.
    """
    log_dir = Path.home() / ".shoptalk" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_dir.chmod(0o700)

    log_level = logging.DEBUG if os.environ.get("SHOPTALK_DEBUG") else logging.INFO

    # 5 MB per file, keep 3 backups
    handler = RotatingFileHandler(
        log_dir / "shoptalk.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    return logging.getLogger(__name__)


def _load_parser(args: argparse.Namespace) -> QueryParser:
    config = NluConfig.load(Path(args.project_path).resolve())
    return create_query_parser(config=config)


def _format_value(value: Any) -> str:
    return ", ".join(value) if isinstance(value, (list, tuple)) else str(value)


def _print_json(data: dict[str, Any]) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False, default=str))


def show_parse(args: argparse.Namespace) -> int:
    """Show the parsed query for an utterance.

    Args:
        args: Parsed arguments (text, json)

    Returns:
        Exit code (0 for success)
    """
    query = _load_parser(args).parse_query(args.text)

    if args.json:
        _print_json(query.to_dict())
        return 0

    console.print(f"[bold]Intent:[/bold] [cyan]{query.intent}[/cyan] ({query.confidence:.2f})")
    for intent, confidence in query.alternatives:
        console.print(f"  [dim]alt: {intent} ({confidence:.2f})[/dim]")

    if query.entities:
        table = Table(title="Entities")
        table.add_column("Type", style="cyan")
        table.add_column("Value")
        for entity_type, value in query.entities.items():
            table.add_row(entity_type, _format_value(value))
        console.print(table)
    else:
        console.print("[dim]No entities found.[/dim]")

    if query.period:
        console.print(
            f"[bold]Period:[/bold] {query.period.start:%Y-%m-%d %H:%M} "
            f"→ {query.period.end:%Y-%m-%d %H:%M}"
        )

    return 0


def show_response(args: argparse.Namespace) -> int:
    """Show the response directive for an utterance.

    Args:
        args: Parsed arguments (text, json)

    Returns:
        Exit code (0 for success)
    """
    directive = _load_parser(args).handle(args.text)

    if args.json:
        _print_json(directive.to_dict())
        return 0

    kind_style = "green" if directive.is_dispatch else "yellow"
    console.print(f"[bold]Kind:[/bold] [{kind_style}]{directive.kind}[/{kind_style}]")
    if directive.action:
        console.print(f"[bold]Action:[/bold] {directive.action}")
    if directive.missing_slots:
        console.print(f"[bold]Missing:[/bold] {', '.join(directive.missing_slots)}")
    console.print(directive.message)
    for suggestion in directive.suggestions:
        console.print(f"  [dim]• {suggestion}[/dim]")

    return 0


def show_enriched(args: argparse.Namespace) -> int:
    """Print the enriched chat payload as JSON."""
    _print_json(_load_parser(args).enrich_message(args.text))
    return 0


def validate_text(args: argparse.Namespace) -> int:
    """Check entity formats.

    Entities come from the optional text and from the explicit --tax-id,
    --phone and --plate values, which are checked as typed.

    Args:
        args: Parsed arguments (text, tax_id, phone, plate)

    Returns:
        Exit code (0 if every entity is valid, 1 otherwise)
    """
    parser = _load_parser(args)
    entities = parser.extractor.extract(args.text) if args.text else {}

    for entity_type, value in (
        (EntityType.TAX_ID, args.tax_id),
        (EntityType.PHONE, args.phone),
        (EntityType.PLATE, args.plate),
    ):
        if value is None:
            continue
        existing = entities.get(entity_type.value)
        if existing is None:
            entities[entity_type.value] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            entities[entity_type.value] = [existing, value]

    if not entities:
        console.print("[dim]No entities found.[/dim]")
        return 0

    result = parser.normalizer.validate(entities)
    if result.valid:
        console.print(f"[green]✓[/green] {len(entities)} entity types look valid")
        return 0

    for error in result.errors:
        console.print(f"[red]✗[/red] {escape(error)}")
    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="shoptalk",
        description="shoptalk: query understanding for the repair-shop assistant",
    )
    parser.add_argument(
        "--project",
        "-p",
        dest="project_path",
        default=".",
        help="Project directory holding .shoptalk/config.yaml (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_text_arg(p: argparse.ArgumentParser, with_json: bool = True) -> None:
        p.add_argument("text", help="User utterance")
        if with_json:
            p.add_argument(
                "--json",
                action="store_true",
                help="Print JSON instead of a table",
            )

    parse_parser = subparsers.add_parser("parse", help="Show intent, entities and period")
    add_text_arg(parse_parser)
    parse_parser.set_defaults(func=show_parse)

    respond_parser = subparsers.add_parser("respond", help="Show the response directive")
    add_text_arg(respond_parser)
    respond_parser.set_defaults(func=show_response)

    enrich_parser = subparsers.add_parser("enrich", help="Print the enriched chat payload")
    add_text_arg(enrich_parser, with_json=False)
    enrich_parser.set_defaults(func=show_enriched)

    validate_parser = subparsers.add_parser("validate", help="Check entity formats")
    validate_parser.add_argument("text", nargs="?", default="", help="User utterance")
    validate_parser.add_argument("--tax-id", help="Tax ID to check as typed")
    validate_parser.add_argument("--phone", help="Phone number to check as typed")
    validate_parser.add_argument("--plate", help="Plate to check as typed")
    validate_parser.set_defaults(func=validate_text)

    return parser


def run_cli(args: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not hasattr(parsed, "func"):
        parser.print_help()
        return 0

    try:
        return parsed.func(parsed)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[dim]Cancelled.[/dim]")
        return 130


def main() -> None:
    _setup_logging()
    sys.exit(run_cli())


__all__ = [
    "create_parser",
    "run_cli",
    "main",
    "show_parse",
    "show_response",
    "show_enriched",
    "validate_text",
]
