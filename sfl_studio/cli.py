"""
Command-line entry point.

    sfl-studio [--debug] serve [--host HOST] [--port PORT] [--reload]
    sfl-studio [--debug] analyze FILE... [--kind text|audio|video|image] [--model MODEL]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .analyzer import ProfileAnalyzer
from .config import AVAILABLE_MODELS, config
from .exceptions import StudioError
from .gemini import GeminiClient
from .logging_config import set_debug_mode
from .models import ModelSettings, SourceKind, StyleProfile
from .sources import LocalFile, capture_batch

console = Console()


def render_profile(name: str, profile: StyleProfile) -> None:
    """Print a profile as two rich tables: labels and process distribution."""
    console.print(Panel.fit(
        f"[bold cyan]{name}[/bold cyan]\n\n"
        f"[green]{profile.persona_style}[/green]  ·  {profile.tone}  ·  "
        f"technicality {profile.technicality_level}/10",
        border_style="cyan"
    ))

    table = Table(title="SFL Profile", show_header=True, header_style="bold cyan")
    table.add_column("Metafunction", style="dim")
    table.add_column("Feature", style="green")
    table.add_column("Value")

    rows = [
        ("Ideational", "Explanation tendency", profile.explanation_tendency),
        ("Ideational", "Dialogue pattern", profile.dialogue_pattern),
        ("Interpersonal", "Confidence", profile.confidence_level),
        ("Interpersonal", "Hedging", profile.hedging_frequency),
        ("Interpersonal", "Statement strength", profile.statement_strength),
        ("Textual", "Information packaging", profile.information_packaging),
        ("Textual", "Topic development", profile.topic_development),
        ("Textual", "Reference style", profile.reference_style),
    ]
    for row in rows:
        table.add_row(*row)
    console.print(table)

    dist = profile.process_distribution
    processes = Table(title="Process Distribution", show_header=True, header_style="bold magenta")
    for label in ("Material", "Mental", "Relational", "Verbal"):
        processes.add_column(label, justify="right")
    processes.add_row(*(f"{v:g}%" for v in (dist.material, dist.mental, dist.relational, dist.verbal)))
    console.print(processes)

    if profile.topics:
        console.print(f"\n[bold]Topics:[/bold] {', '.join(profile.topics)}")
    if profile.analysis_explanation:
        console.print(f"\n[dim]{profile.analysis_explanation}[/dim]")


async def analyze_files(paths: List[Path], kind: SourceKind, settings: ModelSettings) -> StyleProfile:
    sources = await capture_batch([LocalFile(p) for p in paths], kind)
    if not sources:
        raise StudioError("None of the given files could be read", error_code="NO_SOURCES")
    return await ProfileAnalyzer(GeminiClient()).analyze(sources, settings)


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "servers.studio_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def _analyze(args: argparse.Namespace) -> int:
    paths = [Path(p) for p in args.files]
    missing = [p for p in paths if not p.is_file()]
    if missing:
        console.print(f"[red]File not found: {', '.join(str(p) for p in missing)}[/red]")
        return 1

    settings = ModelSettings(model=args.model) if args.model else ModelSettings()
    try:
        with console.status("[cyan]Analyzing sources...[/cyan]"):
            profile = asyncio.run(analyze_files(paths, SourceKind(args.kind), settings))
    except StudioError as e:
        console.print(f"[red]{e.message}[/red]")
        return 1

    render_profile(args.name or paths[0].stem, profile)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sfl-studio",
        description="SFL persona dialogue studio"
    )
    parser.add_argument("--debug", action="store_true", help="Show DEBUG logs on the console")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web API")
    serve.add_argument("--host", default=config.host)
    serve.add_argument("--port", type=int, default=config.port)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve.set_defaults(func=_serve)

    analyze = sub.add_parser("analyze", help="Derive an SFL profile from local files")
    analyze.add_argument("files", nargs="+", help="Source files for one speaker")
    analyze.add_argument(
        "--kind",
        default=SourceKind.TEXT.value,
        choices=[k.value for k in SourceKind if k != SourceKind.LINK],
    )
    analyze.add_argument("--model", choices=[m["id"] for m in AVAILABLE_MODELS], help="Model id")
    analyze.add_argument("--name", help="Speaker name for the report")
    analyze.set_defaults(func=_analyze)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        set_debug_mode(True)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
