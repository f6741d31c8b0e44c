import io

from rich.console import Console

from storewizard.models.schemas import (
    ClassificationResult,
    GenerationResult,
    GenerationRun,
    ProductPreview,
    ProgressSnapshot,
    RunStatus,
    UrlKind,
    ValidationState,
    ValidationStatus,
)
from storewizard.utils.formatters import (
    StatusFormatter,
    format_kind,
    format_progress_line,
    format_validation_state,
)


def render(renderable) -> str:
    buffer = io.StringIO()
    Console(file=buffer, width=200, color_system=None).print(renderable)
    return buffer.getvalue()


def test_format_kind():
    assert format_kind(UrlKind.ALIEXPRESS) == "AliExpress"
    assert format_kind("shopify") == "Shopify"

def test_format_validation_state():
    state = ValidationState(
        status=ValidationStatus.VALID,
        kind=UrlKind.AMAZON,
        message="Amazon product link detected",
    )
    assert format_validation_state(state) == "[green]✓ Amazon product link detected[/green]"

def test_format_validation_state_without_message():
    assert format_validation_state(ValidationState()) == "[dim]· idle[/dim]"

def test_format_progress_line():
    snapshot = ProgressSnapshot(run_token=1, stage=2, percent=47.456, message="Writing your store content")
    assert format_progress_line(snapshot) == "Stage 2/4 · 47.5% · Writing your store content"

def test_classification_table():
    result = ClassificationResult(
        kind=UrlKind.AMAZON,
        matched_pattern="amazon_gp_product",
        captured_id="B08N5WRWNW",
    )
    output = render(StatusFormatter().classification(
        "amazon.fr/gp/product/B08N5WRWNW?th=1",
        result,
        "https://www.amazon.fr/dp/B08N5WRWNW",
    ))
    assert "Amazon" in output
    assert "amazon_gp_product" in output
    assert "https://www.amazon.fr/dp/B08N5WRWNW" in output

def test_classification_table_without_pattern():
    result = ClassificationResult(kind=UrlKind.SHOPIFY, matched_pattern="shopify_product", captured_id="mug")
    output = render(StatusFormatter(show_pattern=False).classification("x/products/mug", result))
    assert "shopify_product" not in output
    assert "mug" in output

def test_markup_in_urls_is_escaped():
    state = ValidationState(status=ValidationStatus.INVALID, message="bad [link]")
    assert "[link]" in render(format_validation_state(state))

def test_preview_line():
    formatter = StatusFormatter()
    assert formatter.preview(ProductPreview(success=False)) is None
    line = formatter.preview(ProductPreview(success=True, title="Mug", price=9.5))
    assert "Mug" in line
    assert "9.50" in line

def test_run_summary():
    run = GenerationRun(
        run_token=3,
        url="https://www.amazon.fr/dp/B08N5WRWNW",
        language="fr",
        started_at=0.0,
        status=RunStatus.SUCCEEDED,
        result=GenerationResult(productId="prod_1"),
    )
    output = render(StatusFormatter().run_summary(run, duration_seconds=2.5))
    assert "Succeeded" in output
    assert "prod_1" in output
    assert "2.50s" in output

def test_run_summary_failure():
    run = GenerationRun(run_token=1, url="u", started_at=0.0, status="failed", error="Out of stock")
    output = render(StatusFormatter().run_summary(run))
    assert "Failed" in output
    assert "Out of stock" in output
