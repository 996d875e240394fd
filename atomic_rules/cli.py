"""Command-line interface for atomic rules."""

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from atomic_rules.config import Settings, get_settings
from atomic_rules.rules import (
    BatchAssembler,
    DependencyResolver,
    FileRuleSource,
    RuleAuditor,
    RuleError,
    RuleStore,
    Target,
    TargetParser,
)

load_dotenv()

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of the environment settings."""
    overrides = {}
    if args.rules_dir:
        overrides["rules_dir"] = Path(args.rules_dir)
    if args.targets_dir:
        overrides["targets_dir"] = Path(args.targets_dir)
    if args.workers:
        overrides["max_workers"] = args.workers
    settings = get_settings()
    return settings.model_copy(update=overrides) if overrides else settings


def _load(settings: Settings) -> tuple[RuleStore, list[Target]]:
    store = FileRuleSource(settings.rules_dir).load_store()
    targets = TargetParser().parse_dir(settings.targets_dir)
    return store, targets


def cmd_assemble(args: argparse.Namespace, settings: Settings) -> int:
    """Assemble instruction documents command."""
    store, targets = _load(settings)

    if args.target:
        by_name = {t.name: t for t in targets}
        missing = [name for name in args.target if name not in by_name]
        if missing:
            console.print(f"[red]Unknown target(s): {', '.join(missing)}[/red]")
            return 1
        targets = [by_name[name] for name in args.target]

    generation_id = args.generation_id or uuid.uuid4().hex
    requests = [t.to_request(generation_id) for t in targets]
    result = BatchAssembler(store, max_workers=settings.max_workers).assemble_all(requests)

    output_dir = None
    if args.output_dir:
        output_dir = Path(args.output_dir)
    elif args.write:
        output_dir = settings.output_dir
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    for name, document in result.documents.items():
        if args.format == "json":
            text = json.dumps(document.to_dict(), indent=2, ensure_ascii=False, default=str)
            suffix = ".json"
        else:
            text = document.render_markdown()
            suffix = ".md"

        if output_dir:
            path = output_dir / f"{name}{suffix}"
            path.write_text(text, encoding="utf-8")
            console.print(f"[green]Wrote {path}[/green] ({len(document.rules)} rules)")
        else:
            console.print(text, markup=False, highlight=False, soft_wrap=True)

    for name, error in result.failures.items():
        console.print(f"[red]Failed to assemble '{name}': {escape(str(error))}[/red]")

    summary = result.summary()
    console.print(
        f"[bold]Assembled {summary['assembled']}/{summary['total']} targets[/bold]"
    )
    return 0 if result.ok else 1


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Validate rules and targets command."""
    store, targets = _load(settings)
    report = RuleAuditor(store).audit(t.to_request() for t in targets)

    if args.json:
        text = json.dumps(report.to_dict(), indent=2, ensure_ascii=False, default=str)
        console.print(text, markup=False, highlight=False, soft_wrap=True)
        return 1 if report.has_errors() else 0

    for rule_id, missing in report.dangling:
        console.print(f"[red]Rule '{rule_id}' depends on unknown rule '{missing}'[/red]")
    for cycle in report.cycles:
        console.print(f"[red]Circular dependency: {' -> '.join(cycle)}[/red]")
    for target, error in report.target_errors.items():
        console.print(f"[red]Target '{target}': {escape(error)}[/red]")
    for warning in report.warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    if report.orphans:
        console.print(f"[yellow]Orphan rules: {', '.join(report.orphans)}[/yellow]")

    if report.has_errors():
        console.print("[bold red]Validation failed[/bold red]")
        return 1

    console.print(
        f"[bold green]OK[/bold green]: {len(store)} rules, {len(targets)} targets"
    )
    return 0


def cmd_orphans(args: argparse.Namespace, settings: Settings) -> int:
    """List rules no target uses command."""
    store, targets = _load(settings)
    orphans = RuleAuditor(store).find_orphans(t.to_request() for t in targets)

    if not orphans:
        console.print("[green]No orphan rules[/green]")
        return 0

    table = Table(title="Orphan Rules")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category", style="green")
    table.add_column("Version", style="yellow")
    table.add_column("Source")

    for rule_id in orphans:
        rule = store.get(rule_id)
        table.add_row(rule.id, rule.category, rule.version, rule.source_path or "")

    console.print(table)
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Show a rule and its resolved dependencies command."""
    store = FileRuleSource(settings.rules_dir).load_store()
    rule = store.get(args.rule_id)
    order = DependencyResolver(store).resolve([rule.id])

    table = Table(title=f"Rule: {rule.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", rule.version)
    table.add_row("Category", rule.category)
    table.add_row("Tags", ", ".join(sorted(rule.tags)))
    table.add_row("Depends on", ", ".join(rule.depends_on))
    table.add_row("Resolved order", " -> ".join(order))
    table.add_row("Examples", str(len(rule.examples)))
    table.add_row("Source", rule.source_path or "")
    console.print(table)
    console.print(rule.description, markup=False, highlight=False)
    return 0


COMMANDS = {
    "assemble": cmd_assemble,
    "validate": cmd_validate,
    "orphans": cmd_orphans,
    "show": cmd_show,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atomic-rules",
        description="Atomic rules - assemble agent instructions from reusable rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--rules-dir",
        type=str,
        help="Directory holding rule files (default: $ATOMIC_RULES_RULES_DIR or rules)",
    )
    parser.add_argument(
        "--targets-dir",
        type=str,
        help="Directory holding agent and semantic view files (default: targets)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Worker threads for batch assembly",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    # Assemble command
    assemble_parser = subparsers.add_parser("assemble", help="Assemble instruction documents")
    assemble_parser.add_argument(
        "--target", "-t",
        action="append",
        help="Target to assemble (repeatable, default: all)",
    )
    assemble_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["markdown", "json"],
        default="markdown",
        help="Output format (default: markdown)",
    )
    assemble_parser.add_argument(
        "--output-dir", "-o",
        type=str,
        help="Write one file per target to this directory instead of printing",
    )
    assemble_parser.add_argument(
        "--write", "-w",
        action="store_true",
        help="Write one file per target to $ATOMIC_RULES_OUTPUT_DIR (default: build/instructions)",
    )
    assemble_parser.add_argument(
        "--generation-id",
        type=str,
        help="Id recorded in every document (default: random)",
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate rules and targets")
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the audit report as JSON",
    )

    # Orphans command
    subparsers.add_parser("orphans", help="List rules no target uses")

    # Show command
    show_parser = subparsers.add_parser("show", help="Show a rule and its dependencies")
    show_parser.add_argument("rule_id", type=str, help="Rule id")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")
    settings = _resolve_settings(args)
    _configure_logging(settings, args.verbose)

    try:
        return COMMANDS[args.command](args, settings)
    except RuleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
