"""
Product-link canonicalizer.

Turns a pasted link into the deterministic form that is stored and compared.
Normalization is idempotent and never raises; strings that cannot be parsed
as a URL fall back to literal substring cuts.
"""

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from storewizard.classifiers.url_classifier import (
    DEFAULT_AMAZON_TLD,
    classify,
    extract_amazon_id,
)
from storewizard.models.schemas import ClassificationResult, UrlKind

HTML_EXTENSION = ".html"
HTM_EXTENSION = ".htm"

PRODUCT_PATH_MARKERS = ("/products/", "/collections/")

SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
TRAILING_SEPARATORS_PATTERN = re.compile(r"[\s/]+$")


def ensure_scheme(value: str) -> str:
    """Prefix ``https://`` when missing. Used for parsing only."""
    if SCHEME_PATTERN.match(value):
        return value
    if value.startswith("//"):
        return "https:" + value
    return "https://" + value


def truncate_at_extension(value: str) -> tuple[str, bool]:
    """
    Cut everything after the first ``.html`` (or ``.htm``) boundary.

    Tracking parameters are usually appended after the page extension, so
    the extension is kept and the tail dropped.

    Returns:
        The possibly truncated string and whether a boundary was found.
    """
    lowered = value.lower()

    index = lowered.find(HTML_EXTENSION)
    if index != -1:
        return value[: index + len(HTML_EXTENSION)], True

    index = lowered.find(HTM_EXTENSION)
    while index != -1:
        end = index + len(HTM_EXTENSION)
        # Never cut ".html" in the middle
        if lowered[end:end + 1] == "l":
            index = lowered.find(HTM_EXTENSION, end)
            continue
        return value[:end], True

    return value, False


def has_trailing_content(raw: str) -> bool:
    """True when text follows a ``.html``/``.htm`` boundary."""
    if not isinstance(raw, str):
        return False
    value = raw.strip()
    truncated, found = truncate_at_extension(value)
    return found and truncated != value


def _rebuild_amazon(value: str) -> Optional[str]:
    amazon_id = extract_amazon_id(value)
    if amazon_id is None:
        return None
    if amazon_id.pattern == "amazon_short_link":
        # Short codes only resolve through their own host
        return f"https://amzn.{amazon_id.tld}/{amazon_id.asin}"
    tld = amazon_id.tld or DEFAULT_AMAZON_TLD
    return f"https://www.amazon.{tld}/dp/{amazon_id.asin}"


def _trim_path_end(path: str) -> str:
    """Drop trailing slashes together with any whitespace mixed into them."""
    return TRAILING_SEPARATORS_PATTERN.sub("", path)


def _literal_product_cut(value: str) -> Optional[str]:
    """String-only fallback for product links urlsplit rejects."""
    lowered = value.lower()
    if not any(marker in lowered for marker in PRODUCT_PATH_MARKERS):
        return None
    for separator in ("?", "#"):
        index = value.find(separator)
        if index != -1:
            value = value[:index]
    return ensure_scheme(_trim_path_end(value))


def _strip_product_path(value: str) -> Optional[str]:
    """
    Drop query and fragment from Shopify-style product/collection links.

    Returns ``None`` when the path has no product or collection segment.
    """
    try:
        parts = urlsplit(ensure_scheme(value))
    except ValueError:
        return _literal_product_cut(value)

    lowered_path = parts.path.lower()
    if not any(marker in lowered_path for marker in PRODUCT_PATH_MARKERS):
        return None

    return urlunsplit((parts.scheme, parts.netloc, _trim_path_end(parts.path), "", ""))


def canonicalize(raw: str, classification: Optional[ClassificationResult] = None) -> str:
    """
    Produce the canonical form of a product link.

    Rules, in order:
        1. Trim surrounding whitespace.
        2. Truncate after the first ``.html`` / ``.htm`` boundary.
        3. Amazon links without such a boundary are rebuilt as
           ``https://www.amazon.<tld>/dp/<id>``.
        4. Links whose path has ``/products/`` or ``/collections/`` lose their
           query, fragment and trailing slash, and gain ``https://``.
        5. Anything else is returned trimmed.

    Args:
        raw: The string as typed or pasted.
        classification: Classifier result for ``raw``; computed when omitted.

    Returns:
        The canonical string. ``canonicalize(canonicalize(x)) == canonicalize(x)``.
    """
    if not isinstance(raw, str):
        return ""

    value = raw.strip()
    if not value:
        return ""

    if classification is None:
        classification = classify(value)

    value, truncated = truncate_at_extension(value)

    if classification.kind == UrlKind.AMAZON and not truncated:
        return _rebuild_amazon(value) or value

    product_url = _strip_product_path(value)
    if product_url is not None:
        return product_url

    return value
