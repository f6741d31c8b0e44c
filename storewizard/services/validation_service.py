"""
Debounced validation of the product-link input.

The service owns the ``ValidationState`` of one input field. Every keystroke
flips the state to ``VALIDATING`` immediately and restarts a single debounce
timer; only the timer of the most recent keystroke ever produces a verdict.
"""

import re
from typing import Callable, Optional
from urllib.parse import urlsplit

from storewizard.classifiers.canonicalizer import (
    canonicalize,
    ensure_scheme,
    has_trailing_content,
    truncate_at_extension,
)
from storewizard.classifiers.url_classifier import (
    classify,
    is_aliexpress_host,
    match_partial_aliexpress,
)
from storewizard.config.settings import Settings, get_settings
from storewizard.models.schemas import UrlKind, ValidationState, ValidationStatus
from storewizard.utils.logger import get_logger
from storewizard.utils.timers import TimerSlot

logger = get_logger(__name__)

StateListener = Callable[[ValidationState], None]

# Valid TLD, no path/query
DOMAIN_PATTERN = re.compile(
    r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*\.[A-Za-z]{2,}$"
)


class ValidationMessages:
    """User-facing validation messages."""

    VALIDATING = "Checking the link..."
    CLEANING_UP = "Cleaning up the link..."
    VALID = {
        UrlKind.ALIEXPRESS: "AliExpress product link detected",
        UrlKind.AMAZON: "Amazon product link detected",
        UrlKind.SHOPIFY: "Shopify product link detected",
    }
    ALIEXPRESS_MISSING_EXTENSION = (
        "Almost there: AliExpress links must end with .html after the item number"
    )
    ALIEXPRESS_WRONG_FORMAT = (
        "This AliExpress link is not a product page. "
        "Expected https://www.aliexpress.com/item/<id>.html"
    )
    SHOPIFY_MISSING_PRODUCTS = "Shopify links must point to a product page containing /products/"
    HOMEPAGE = "This looks like a homepage, not a product page"
    UNSUPPORTED = "Unsupported URL. Paste an AliExpress, Amazon or Shopify product link"


def _split(value: str):
    try:
        return urlsplit(ensure_scheme(value))
    except ValueError:
        return None


def _path_endswith_extension(value: str) -> bool:
    parts = _split(value)
    path = parts.path if parts is not None else value
    return path.lower().endswith((".html", ".htm"))


def _path_has_products(value: str) -> bool:
    parts = _split(value)
    path = parts.path if parts is not None else value
    return "/products/" in path.lower()


def _path_has_collections(value: str) -> bool:
    parts = _split(value)
    path = parts.path if parts is not None else value
    return "/collections/" in path.lower() or path.lower().endswith("/collections")


def _is_bare_domain(value: str) -> bool:
    parts = _split(value)
    if parts is None or parts.query or parts.fragment:
        return False
    if parts.path not in ("", "/"):
        return False
    try:
        hostname = parts.hostname
    except ValueError:
        return False
    return bool(hostname and DOMAIN_PATTERN.match(hostname))


class ValidationService:
    """
    Debounced validator for one product-link input field.

    Example:
        >>> validator = ValidationService(on_change=render)
        >>> validator.on_input("https://www.amazon.fr/dp/B08N5WRWNW")
        ValidationState(status='validating', ...)
        >>> # 500 ms later render() receives status='valid'
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        debounce_ms: Optional[float] = None,
        on_change: Optional[StateListener] = None,
    ):
        """
        Initialize the validator.

        Args:
            settings: Application settings (uses defaults if not provided)
            debounce_ms: Quiet period before a verdict; overrides settings
            on_change: Listener called with every new state
        """
        self.settings = settings or get_settings()
        self.debounce_ms = (
            debounce_ms if debounce_ms is not None else self.settings.validate_debounce_ms
        )
        self._timer = TimerSlot("validation")
        self._state = ValidationState()
        self._listeners: list[StateListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def is_ready(self) -> bool:
        """Whether the wizard may start generation with the current input."""
        return self._state.status == ValidationStatus.VALID

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_input(self, raw: str, skip_trim_suppression: bool = False) -> ValidationState:
        """
        Handle one keystroke (or programmatic value change).

        Args:
            raw: Current content of the input field
            skip_trim_suppression: Set when re-validating a value the
                auto-correction already trimmed, so the verdict is never
                deferred again.

        Returns:
            The state right after the keystroke (``IDLE`` or ``VALIDATING``).
        """
        if not isinstance(raw, str) or not raw.strip():
            self._timer.cancel()
            return self._set_state(ValidationState(status=ValidationStatus.IDLE))

        state = self._set_state(
            ValidationState(
                status=ValidationStatus.VALIDATING,
                message=ValidationMessages.VALIDATING,
            )
        )
        self._timer.schedule(
            self.debounce_ms / 1000,
            lambda: self._fire(raw, skip_trim_suppression),
        )
        return state

    def evaluate(self, raw: str, skip_trim_suppression: bool = False) -> ValidationState:
        """
        Compute the verdict for ``raw`` without any delay.

        This is what the debounce timer runs when it fires.
        """
        if not isinstance(raw, str) or not raw.strip():
            return ValidationState(status=ValidationStatus.IDLE)

        value = raw.strip()

        if not skip_trim_suppression and has_trailing_content(value):
            truncated, _ = truncate_at_extension(value)
            pending_kind = classify(truncated).kind
            if pending_kind != UrlKind.UNKNOWN:
                # The auto-correction is about to clean this value up
                return ValidationState(
                    status=ValidationStatus.VALIDATING,
                    kind=pending_kind,
                    message=ValidationMessages.CLEANING_UP,
                )

        canonical = canonicalize(value)
        kind = classify(canonical).kind

        if kind == UrlKind.ALIEXPRESS:
            if _path_endswith_extension(canonical):
                return self._valid(kind)
            if match_partial_aliexpress(value):
                return self._invalid(kind, ValidationMessages.ALIEXPRESS_MISSING_EXTENSION)
            return self._invalid(kind, ValidationMessages.ALIEXPRESS_WRONG_FORMAT)

        if kind == UrlKind.AMAZON:
            return self._valid(kind)

        if kind == UrlKind.SHOPIFY:
            if _path_has_products(canonical):
                return self._valid(kind)
            return self._invalid(kind, ValidationMessages.SHOPIFY_MISSING_PRODUCTS)

        if match_partial_aliexpress(value):
            return self._invalid(UrlKind.ALIEXPRESS, ValidationMessages.ALIEXPRESS_MISSING_EXTENSION)
        if _path_has_collections(canonical):
            return self._invalid(UrlKind.SHOPIFY, ValidationMessages.SHOPIFY_MISSING_PRODUCTS)
        if _is_bare_domain(canonical):
            return self._invalid(UrlKind.UNKNOWN, ValidationMessages.HOMEPAGE)
        if is_aliexpress_host(canonical):
            return self._invalid(UrlKind.ALIEXPRESS, ValidationMessages.ALIEXPRESS_WRONG_FORMAT)
        return self._invalid(UrlKind.UNKNOWN, ValidationMessages.UNSUPPORTED)

    def cancel(self) -> None:
        """Cancel the pending verdict without touching the state."""
        self._timer.cancel()

    def close(self) -> None:
        """Tear down: cancel timers and drop listeners."""
        self._timer.cancel()
        self._listeners.clear()

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _valid(kind: UrlKind) -> ValidationState:
        return ValidationState(
            status=ValidationStatus.VALID,
            kind=kind,
            message=ValidationMessages.VALID[UrlKind(kind)],
        )

    @staticmethod
    def _invalid(kind: UrlKind, message: str) -> ValidationState:
        return ValidationState(status=ValidationStatus.INVALID, kind=kind, message=message)

    def _fire(self, raw: str, skip_trim_suppression: bool) -> None:
        state = self.evaluate(raw, skip_trim_suppression)
        logger.debug(
            "Validation completed",
            status=str(state.status),
            kind=str(state.kind),
        )
        self._set_state(state)

    def _set_state(self, state: ValidationState) -> ValidationState:
        if state == self._state:
            return state
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as cb_err:
                logger.warning(f"Validation listener failed: {cb_err}")
        return state
