"""Command-line interface for jobdesc."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import IO, Optional

import click
import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from jobdesc import __version__
from jobdesc.config import Config, MonitoringConfig, settings
from jobdesc.extractor.normalizer import ContentNormalizer
from jobdesc.extractor.validator import calculate_improvement
from jobdesc.observability import configure_logging, set_enabled
from jobdesc.pipeline import ExtractionPipeline
from jobdesc.protocols import ExtractionRequest, ExtractionResult

console = Console()
logger = structlog.get_logger(__name__)


def _load_config(config_path: Optional[Path]) -> Config:
    if config_path:
        return Config.from_yaml(config_path)
    return settings


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (defaults to the configured level)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """jobdesc - recover full job descriptions from job-posting URLs."""
    ctx.ensure_object(dict)
    loaded = _load_config(Path(config) if config else None)
    ctx.obj["config"] = loaded

    monitoring = loaded.monitoring
    configure_logging(
        MonitoringConfig(
            log_level=log_level or monitoring.log_level,
            log_file=monitoring.log_file,
            metrics_enabled=monitoring.metrics_enabled,
        )
    )
    set_enabled(monitoring.metrics_enabled)


def _render_result(result: ExtractionResult) -> None:
    if result.success:
        assert result.method is not None
        console.print(
            Panel(
                result.description or "",
                title=f"Extracted via {result.method.value}",
                subtitle=result.final_url or "",
                border_style="green",
            )
        )
    else:
        console.print(
            Panel(
                result.error or "",
                title="Extraction failed",
                subtitle=result.final_url or "",
                border_style="red",
            )
        )


@cli.command()
@click.argument("url")
@click.option("--snippet", help="Snippet already known for this posting")
@click.option("--snippet-file", type=click.File("r"), help="Read the snippet from a file")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def extract(
    ctx: click.Context,
    url: str,
    snippet: Optional[str],
    snippet_file: Optional[IO[str]],
    as_json: bool,
) -> None:
    """Extract the full job description for URL."""
    if snippet is None and snippet_file is None:
        raise click.UsageError("Provide --snippet or --snippet-file")
    if snippet is not None and snippet_file is not None:
        raise click.UsageError("--snippet and --snippet-file are mutually exclusive")
    if snippet_file is not None:
        snippet = snippet_file.read()

    pipeline = ExtractionPipeline(ctx.obj["config"])
    request = ExtractionRequest(url=url, original_snippet=snippet or "")
    result = asyncio.run(pipeline.extract(request))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_result(result)

    ctx.exit(0 if result.success else 1)


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
def normalize(source: IO[str]) -> None:
    """Normalize raw job-posting text from SOURCE (stdin by default)."""
    click.echo(ContentNormalizer().normalize(source.read()))


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--snippet", required=True, help="Baseline snippet for the improvement check")
@click.pass_context
def validate(ctx: click.Context, source: IO[str], snippet: str) -> None:
    """Normalize SOURCE and run the quality checks against SNIPPET."""
    validator = ctx.obj["config"].validation.build_validator()
    text = ContentNormalizer().normalize(source.read())
    verdict = validator.validate(text, snippet)

    table = Table(title="Quality Validation")
    table.add_column("Check", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Length", f"{len(text)} (min {validator.min_length})")
    table.add_row("Error pattern", validator.find_error_pattern(text) or "none")
    table.add_row(
        "Improvement",
        f"{calculate_improvement(text, snippet):.1f}% (min {validator.min_improvement_percent:g}%)",
    )
    table.add_row("Keywords", f"{validator.count_keywords(text)} (min {validator.min_keyword_matches})")
    table.add_row("Verdict", "accepted" if verdict.accepted else f"rejected: {verdict.reason.value}")
    console.print(table)

    if verdict.detail:
        console.print(f"[yellow]{verdict.detail}[/yellow]")
    ctx.exit(0 if verdict.accepted else 1)


@cli.command()
@click.argument("url")
@click.pass_context
def profile(ctx: click.Context, url: str) -> None:
    """Show the domain profile that applies to URL."""
    resolved = ctx.obj["config"].profiles.build_registry().lookup(url)

    table = Table(title=f"Profile for {url}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Match", "fallback" if resolved.is_fallback else resolved.match_suffix)
    table.add_row("Selectors", "\n".join(resolved.selectors))
    table.add_row("Wait selector", resolved.wait_selector or "-")
    table.add_row("Remove selectors", "\n".join(resolved.remove_selectors) or "-")
    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
