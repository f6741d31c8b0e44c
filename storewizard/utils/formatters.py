"""
Status formatting utilities.

Renders validation states, classification results and progress snapshots as
rich markup and tables for the CLI.
"""

from typing import Optional

from rich.markup import escape
from rich.table import Table

from storewizard.models.schemas import (
    MAX_STAGE,
    ClassificationResult,
    GenerationRun,
    ProductPreview,
    ProgressSnapshot,
    RunStatus,
    ValidationState,
    ValidationStatus,
)

STATUS_STYLES = {
    ValidationStatus.IDLE: ("dim", "·"),
    ValidationStatus.VALIDATING: ("yellow", "…"),
    ValidationStatus.VALID: ("green", "✓"),
    ValidationStatus.INVALID: ("red", "✗"),
}

RUN_STATUS_STYLES = {
    RunStatus.RUNNING: "cyan",
    RunStatus.SUCCEEDED: "green",
    RunStatus.FAILED: "red",
    RunStatus.CANCELLED: "yellow",
}

KIND_LABELS = {
    "aliexpress": "AliExpress",
    "amazon": "Amazon",
    "shopify": "Shopify",
    "unknown": "Unknown",
}


def format_kind(kind: str) -> str:
    """Human label of a URL kind."""
    return KIND_LABELS.get(str(getattr(kind, "value", kind)), str(kind))


def format_validation_state(state: ValidationState) -> str:
    """
    One-line rich markup for a validation state.

    [green]✓ Amazon product link detected[/green]
    """
    style, icon = STATUS_STYLES[ValidationStatus(state.status)]
    message = escape(state.message) if state.message else ValidationStatus(state.status).value
    return f"[{style}]{icon} {message}[/{style}]"


def format_classification_table(
    url: str,
    result: ClassificationResult,
    canonical: Optional[str] = None,
    show_pattern: bool = True,
) -> Table:
    """
    Table of classifier output.

    | Field | Value |
    |-------|-------|
    | Input | amazon.fr/gp/product/B08N5WRWNW?th=1 |
    | Kind | Amazon |
    | Pattern | amazon_gp_product |
    | Captured ID | B08N5WRWNW |
    | Canonical | https://www.amazon.fr/dp/B08N5WRWNW |
    """
    table = Table(title="Classification", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", overflow="fold")

    table.add_row("Input", escape(url))
    table.add_row("Kind", format_kind(result.kind))
    if show_pattern:
        table.add_row("Pattern", result.matched_pattern or "-")
    table.add_row("Captured ID", result.captured_id or "-")
    if canonical is not None:
        table.add_row("Canonical", escape(canonical))
    return table


def format_progress_line(snapshot: ProgressSnapshot) -> str:
    """``Stage 2/4 · 47.5% · Writing your store content``"""
    return (
        f"Stage {snapshot.stage}/{MAX_STAGE} · {snapshot.percent:.1f}% · {snapshot.message}"
    )


def format_preview(preview: ProductPreview) -> Optional[str]:
    """Short markup summary of a product preview, or None if it failed."""
    if not preview.success or not preview.title:
        return None
    line = f"[bold]{escape(preview.title)}[/bold]"
    if preview.price is not None:
        line += f" [dim]({preview.price:.2f})[/dim]"
    return line


class StatusFormatter:
    """
    Formats wizard state for the console.
    """

    def __init__(self, show_pattern: bool = True):
        self.show_pattern = show_pattern

    def validation(self, state: ValidationState) -> str:
        return format_validation_state(state)

    def classification(
        self,
        url: str,
        result: ClassificationResult,
        canonical: Optional[str] = None,
    ) -> Table:
        return format_classification_table(url, result, canonical, self.show_pattern)

    def progress(self, snapshot: ProgressSnapshot) -> str:
        return format_progress_line(snapshot)

    def preview(self, preview: ProductPreview) -> Optional[str]:
        return format_preview(preview)

    def run_summary(self, run: GenerationRun, duration_seconds: Optional[float] = None) -> Table:
        """Summary table printed when a generation run ends."""
        status = RunStatus(run.status)
        style = RUN_STATUS_STYLES[status]

        table = Table(title="Generation Summary", show_header=False)
        table.add_row("Run", str(run.run_token))
        table.add_row("URL", escape(run.url))
        table.add_row("Language", run.language)
        table.add_row("Status", f"[{style}]{status.value.title()}[/{style}]")
        if run.result is not None:
            table.add_row("Product ID", run.result.product_id)
        if run.error:
            table.add_row("Error", f"[red]{escape(run.error)}[/red]")
        if duration_seconds is not None:
            table.add_row("Duration", f"{duration_seconds:.2f}s")
        return table
