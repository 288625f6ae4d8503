"""CLI for constellation: strategy extraction, offline parsing and seeding."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from constellation.ai.results import ParseFailure, ParseResult
from constellation.ai.strategy_extract import parse_strategy_extract_response
from constellation.ai.types import StrategyExtractionResult
from constellation.core.config import AppSettings
from constellation.labels import STRATEGY_COMPONENT_TITLES
from constellation.providers.llm_client import LLMClient
from constellation.services.ai_service import AIService
from constellation.services.store import create_data_store, load_seed_file

app = typer.Typer(name="constellation", help="Project Constellation back-end tools")
console = Console()


def _build_settings(api_key: Optional[str], model: Optional[str]) -> AppSettings:
    """Build settings, overriding env defaults with CLI flags."""
    settings = AppSettings()
    overrides: dict = {}
    if api_key:
        overrides["api_key"] = api_key
    if model:
        overrides["model"] = model
    if overrides:
        settings.llm = settings.llm.model_copy(update=overrides)
    return settings


def _print_extraction(result: StrategyExtractionResult) -> None:
    console.print(f"[bold]Title:[/bold] {result.title}")
    console.print(f"[bold]Summary:[/bold] {result.summary}\n")

    table = Table(title="Blueprint Components")
    table.add_column("#", style="cyan")
    table.add_column("Component", style="green")
    table.add_column("Confidence", justify="right")
    table.add_column("Content", max_width=60)

    for cid, component in result.components.items():
        preview = component.content
        if len(preview) > 100:
            preview = preview[:100] + "..."
        table.add_row(cid, STRATEGY_COMPONENT_TITLES.get(cid, ""), f"{component.confidence:.2f}", preview)
    console.print(table)

    if result.selection_logic.criteria:
        console.print("\n[bold]Selection criteria:[/bold]")
        for criterion in result.selection_logic.criteria:
            console.print(f"  - {criterion}")

    if result.warnings:
        console.print(f"\n[yellow]{len(result.warnings)} warning(s):[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
    else:
        console.print("\n[green]Response was complete; no warnings.[/green]")


def _emit(parsed: ParseResult[StrategyExtractionResult], as_json: bool) -> None:
    if isinstance(parsed, ParseFailure):
        console.print(f"[red]{parsed.error}[/red] ({parsed.kind})")
        raise typer.Exit(code=1)
    if as_json:
        console.print_json(parsed.result.model_dump_json(by_alias=True))
    else:
        _print_extraction(parsed.result)


@app.command("extract-strategy")
def extract_strategy(
    text_file: Path = typer.Argument(..., help="Plain-text strategy document"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="LLM API key"),
    model: Optional[str] = typer.Option(None, "--model", help="LLM model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Map a strategy document onto the six-component blueprint."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    settings = _build_settings(api_key, model)
    service = AIService(LLMClient(settings.llm), settings.extraction)

    text = text_file.read_text(encoding="utf-8")
    if not text.strip():
        raise typer.BadParameter(f"{text_file} is empty")
    console.print(f"[bold]Extracting from {text_file}[/bold] ({len(text):,} characters)")

    parsed = asyncio.run(service.extract_strategy(text))
    _emit(parsed, as_json)


@app.command("parse-response")
def parse_response(
    response_file: Path = typer.Argument(..., help="Saved model response text"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run the extraction parser on a saved model response, without calling the LLM."""
    parsed = parse_strategy_extract_response(response_file.read_text(encoding="utf-8"))
    _emit(parsed, as_json)


@app.command()
def seed(
    seed_file: Path = typer.Argument(..., help="Seed JSON document"),
) -> None:
    """Import lgas, opportunity types, sectors, deals, strategies and allowlist entries."""
    settings = AppSettings()
    store = create_data_store(settings.persistence)

    try:
        counts = load_seed_file(store, seed_file)
    except json.JSONDecodeError as e:
        console.print(f"[red]{seed_file} is not valid JSON: {e}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Seeded into {settings.persistence.backend} store")
    table.add_column("Section", style="cyan")
    table.add_column("Records", justify="right")
    for section, count in counts.items():
        table.add_row(section, str(count))
    console.print(table)


if __name__ == "__main__":
    app()
