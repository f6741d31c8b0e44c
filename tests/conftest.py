import pytest
import structlog
from unittest.mock import patch

from storewizard.config.settings import Settings
from storewizard.models.schemas import GenerationResult, ProductPreview

SETTINGS_IMPORTS = (
    "storewizard.services.base.get_settings",
    "storewizard.services.validation_service.get_settings",
    "storewizard.services.autocorrect_service.get_settings",
    "storewizard.pipeline.orchestrator.get_settings",
    "storewizard.main.get_settings",
)


@pytest.fixture
def fast_settings():
    """Real settings with short timings so timer-driven tests stay quick."""
    return Settings(
        _env_file=None,
        api_base_url="http://backend.test",
        validate_debounce_ms=20,
        autocorrect_delay_ms=60,
        progress_sample_interval_ms=10,
        completion_settle_ms=20,
    )


@pytest.fixture(autouse=True)
def patch_get_settings(fast_settings):
    """Globally patch get_settings wherever it is imported."""
    patchers = [patch(target, return_value=fast_settings) for target in SETTINGS_IMPORTS]
    for p in patchers:
        p.start()
    yield fast_settings
    for p in reversed(patchers):
        p.stop()


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI tests point structlog at CliRunner streams; undo that after each test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class FakeClock:
    """Monotonic clock driven by the test."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_preview():
    return ProductPreview(
        success=True,
        title="Ceramic Coffee Mug",
        description="A sturdy mug for every morning",
        image="https://cdn.example.com/mug.jpg",
        price=19.99,
    )


@pytest.fixture
def sample_result():
    return GenerationResult(productId="prod_123", content={"headline": "Your new favourite mug"})
