"""
Storefront Wizard - CLI Entry Point.
Classify, validate and generate stores from product links using Click and Rich.
"""

import asyncio
import json
import sys
import time
from functools import wraps
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from storewizard.classifiers.canonicalizer import canonicalize
from storewizard.classifiers.url_classifier import classify
from storewizard.config.settings import Settings, get_settings
from storewizard.models.schemas import ProgressSnapshot, ValidationState, ValidationStatus
from storewizard.pipeline.orchestrator import GenerationProgressOrchestrator
from storewizard.services.autocorrect_service import AutoCorrectionService
from storewizard.services.generation_service import StoreGenerationService
from storewizard.services.preview_service import ProductPreviewService
from storewizard.services.validation_service import ValidationService
from storewizard.utils.errors import (
    ConfigurationError,
    ErrorHandler,
    GenerationCancelledError,
    GenerationError,
)
from storewizard.utils.formatters import StatusFormatter
from storewizard.utils.logger import setup_logging

# Initialize Rich Console
console = Console()
formatter = StatusFormatter()

# =============================================================================
# Helper Functions
# =============================================================================

def async_command(f):
    """Decorator to run async click commands."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def setup_logger(verbose: bool):
    """Configure logging based on verbosity."""
    setup_logging(
        level="DEBUG" if verbose else "WARNING",
        json_format=False,
        console=console,
    )


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


def _check_api_url(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not value.startswith(("http://", "https://")):
        raise click.BadParameter("must start with http:// or https://")
    return value.rstrip("/")


async def run_validation(url: str, settings: Settings, typed: bool = False) -> ValidationState:
    """
    Feed ``url`` to the input pipeline and wait for its verdict.

    A paste is corrected at once; typed input waits for the auto-correction
    delay like a user who stopped typing.
    """
    validator = ValidationService(settings=settings)
    autocorrect = AutoCorrectionService(validator, settings=settings)
    verdict = asyncio.Event()

    def on_change(state: ValidationState) -> None:
        if state.is_terminal:
            verdict.set()

    validator.subscribe(on_change)
    try:
        if typed:
            autocorrect.on_input(url)
        else:
            autocorrect.on_paste(url)

        if validator.pending or autocorrect.pending:
            timeout = (settings.validate_debounce_ms + settings.autocorrect_delay_ms) * 3 / 1000
            try:
                await asyncio.wait_for(verdict.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass
        return validator.state
    finally:
        autocorrect.close()
        validator.close()

# =============================================================================
# CLI Group
# =============================================================================

@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Storefront Wizard"""
    pass

# =============================================================================
# Commands
# =============================================================================

@cli.command(name="classify")
@click.argument('url')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
def classify_command(url: str, as_json: bool):
    """
    Classify a product link and show its canonical form.

    URL: AliExpress, Amazon or Shopify product link
    """
    result = classify(url)
    canonical = canonicalize(url, result)

    if as_json:
        console.print_json(json.dumps({**result.to_dict(), "canonical": canonical}))
        return

    console.print(formatter.classification(url, result, canonical))


@cli.command(name="validate")
@click.argument('url')
@click.option('--typed', is_flag=True, help='Treat the link as typed instead of pasted')
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def validate_command(url: str, typed: bool, verbose: bool):
    """
    Validate a product link the way the wizard input does.

    Exits with status 1 unless the link is valid.
    """
    settings = _load_settings()
    setup_logger(verbose or settings.debug)
    state = await run_validation(url, settings, typed=typed)

    console.print(formatter.validation(state))
    if state.status != ValidationStatus.VALID:
        sys.exit(1)


@cli.command(name="generate")
@click.argument('url')
@click.option('--language', default=None, help='Language of the generated store (ISO 639-1)')
@click.option('--api-url', default=None, callback=_check_api_url, help='Override the backend base URL')
@click.option('--verbose', is_flag=True, help='Detailed logging')
@async_command
async def generate_command(url: str, language: Optional[str], api_url: Optional[str], verbose: bool):
    """
    Generate a store from a product link.

    URL: AliExpress, Amazon or Shopify product link
    """
    settings = _load_settings()
    setup_logger(verbose or settings.debug)
    if api_url:
        settings = settings.model_copy(update={"api_base_url": api_url})

    canonical = canonicalize(url)
    state = ValidationService(settings=settings).evaluate(canonical, skip_trim_suppression=True)
    if state.status != ValidationStatus.VALID:
        console.print(formatter.validation(state))
        sys.exit(1)

    console.print(Panel.fit(f"[bold blue]Store Generation[/bold blue]\nProduct: [cyan]{escape(canonical)}[/cyan]"))

    start_time = time.monotonic()
    run = None
    previews = ProductPreviewService(settings=settings)
    generator = StoreGenerationService(settings=settings)

    try:
        async with previews, generator:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("[cyan]Starting...", total=100)

                def update_progress(snapshot: ProgressSnapshot) -> None:
                    progress.update(
                        task,
                        completed=snapshot.percent,
                        description=f"[cyan]{snapshot.message}",
                    )

                async with GenerationProgressOrchestrator(
                    preview_fn=previews.fetch_preview,
                    final_fn=generator.generate,
                    settings=settings,
                    on_progress=update_progress,
                ) as orchestrator:
                    try:
                        result = await orchestrator.run(canonical, language=language)
                    finally:
                        run = orchestrator.current_run

                progress.update(task, completed=100, description="[green]Store ready!")

    except (GenerationError, GenerationCancelledError) as e:
        if run is not None:
            console.print(formatter.run_summary(run, time.monotonic() - start_time))
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        if isinstance(e, GenerationError) and ErrorHandler.is_retryable(e):
            console.print("[yellow]The backend may be temporarily unavailable. Try again in a moment.[/yellow]")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if run.preview is not None:
        line = formatter.preview(run.preview)
        if line:
            console.print(line)
    console.print(formatter.run_summary(run, time.monotonic() - start_time))
    console.print(f"[green]✓[/green] Store generated: {result.product_id}")


if __name__ == "__main__":
    cli()
