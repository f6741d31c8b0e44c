"""
Product-link classifier.

Recognizes which e-commerce dialect a free-text string belongs to. Rules are
purely lexical and evaluated in a fixed priority order, first match wins:

    1. AliExpress item pages   aliexpress.<tld>/item/<digits>.htm[l]
    2. Amazon product pages    amazon.<tld-chain>/dp/<id>, /gp/product/<id>, ...
                               amzn.<tld>/<id>, or a bare ASIN
    3. Shopify product pages   .../[collections/<slug>/]products/<slug>
    4. Unknown

Shopify is the most permissive rule and must stay last so AliExpress and
Amazon links that happen to contain "products" are not misclassified.
"""

import re
from typing import NamedTuple, Optional

from storewizard.models.schemas import ClassificationResult, UrlKind


# =============================================================================
# Patterns
# =============================================================================

# Host boundary: start of string, scheme separator, subdomain dot or "@"
_HOST_START = r"(?:^|[/.@])"

# The ".htm" prefix covers ".html"; which one to keep is the canonicalizer's job
ALIEXPRESS_ITEM_PATTERN = re.compile(
    _HOST_START + r"aliexpress\.[a-z]{2,3}/item/(\d+)\.htm",
    re.IGNORECASE,
)

# Host and item number without the page extension ("almost right" links)
ALIEXPRESS_PARTIAL_PATTERN = re.compile(
    _HOST_START + r"aliexpress\.[a-z]{2,3}/item/(\d+)",
    re.IGNORECASE,
)

# Any AliExpress host, item page or not
ALIEXPRESS_HOST_PATTERN = re.compile(
    _HOST_START + r"aliexpress\.[a-z]{2,3}(?=[/:?#]|$)",
    re.IGNORECASE,
)

AMAZON_HOST_PATTERN = re.compile(
    _HOST_START + r"amazon\.((?:[a-z]{2,3})(?:\.[a-z]{2,3})*)(?=[/:?#]|$)",
    re.IGNORECASE,
)

AMAZON_SHORT_LINK_PATTERN = re.compile(
    _HOST_START + r"amzn\.([a-z]{2,3})/([A-Za-z0-9]{10})(?=[/?&#]|$)",
    re.IGNORECASE,
)

# Ids keep their original case; the character class already covers both
_AMAZON_ID = r"([A-Za-z0-9]{10})(?=[/?&#]|$)"

# (pattern id, regex), tried in order once an Amazon host is present
AMAZON_ID_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("amazon_dp", re.compile(r"/dp/" + _AMAZON_ID, re.IGNORECASE)),
    ("amazon_gp_product", re.compile(r"/gp/product/" + _AMAZON_ID, re.IGNORECASE)),
    (
        "amazon_path_variant",
        re.compile(
            r"/(?:gp/aw/d|gp/offer-listing|o/ASIN|product/detail)/" + _AMAZON_ID,
            re.IGNORECASE,
        ),
    ),
    ("amazon_asin_query", re.compile(r"[?&]asin=([A-Za-z0-9]{10})(?=[^A-Za-z0-9]|$)", re.IGNORECASE)),
)

# A bare ASIN typed on its own; ASINs are uppercase
BARE_ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$")

SHOPIFY_PRODUCT_PATTERN = re.compile(
    r"(/collections/[^/?#\s]+)?/products/([^/?#\s]+)",
    re.IGNORECASE,
)

DEFAULT_AMAZON_TLD = "com"


class AmazonId(NamedTuple):
    """Result of the first matching Amazon id-extraction rule."""

    asin: str
    tld: Optional[str]
    pattern: str


# =============================================================================
# Extraction Helpers
# =============================================================================

def match_aliexpress_item(value: str) -> Optional[str]:
    """Return the AliExpress item number of a complete item link."""
    match = ALIEXPRESS_ITEM_PATTERN.search(value)
    return match.group(1) if match else None


def match_partial_aliexpress(value: str) -> bool:
    """
    True when the host and ``/item/<digits>`` are present but the page
    extension is missing, e.g. ``aliexpress.com/item/1005001234``.
    """
    if not isinstance(value, str):
        return False
    return bool(ALIEXPRESS_PARTIAL_PATTERN.search(value)) and not ALIEXPRESS_ITEM_PATTERN.search(value)


def is_aliexpress_host(value: str) -> bool:
    """True when ``value`` points anywhere on an AliExpress host."""
    if not isinstance(value, str):
        return False
    return bool(ALIEXPRESS_HOST_PATTERN.search(value))


def extract_amazon_id(value: str) -> Optional[AmazonId]:
    """
    Apply the Amazon id-extraction rules in order.

    Returns:
        The captured id with the marketplace TLD (``None`` for short links
        and bare ASINs), or ``None`` when no rule matches.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()

    host_match = AMAZON_HOST_PATTERN.search(value)
    if host_match:
        tail = value[host_match.end():]
        for pattern_id, pattern in AMAZON_ID_PATTERNS:
            id_match = pattern.search(tail)
            if id_match:
                return AmazonId(id_match.group(1), host_match.group(1).lower(), pattern_id)

    short_match = AMAZON_SHORT_LINK_PATTERN.search(value)
    if short_match:
        return AmazonId(short_match.group(2), short_match.group(1).lower(), "amazon_short_link")

    if BARE_ASIN_PATTERN.match(value):
        return AmazonId(value, None, "amazon_bare_asin")

    return None


# =============================================================================
# Classifier
# =============================================================================

def classify(raw: str) -> ClassificationResult:
    """
    Classify a raw string into a product-link dialect.

    Never raises: empty, non-string or unrecognized input yields
    ``UrlKind.UNKNOWN``.
    """
    if not isinstance(raw, str):
        return ClassificationResult()

    value = raw.strip()
    if not value:
        return ClassificationResult()

    item_id = match_aliexpress_item(value)
    if item_id:
        return ClassificationResult(
            kind=UrlKind.ALIEXPRESS,
            matched_pattern="aliexpress_item",
            captured_id=item_id,
        )

    amazon_id = extract_amazon_id(value)
    if amazon_id:
        return ClassificationResult(
            kind=UrlKind.AMAZON,
            matched_pattern=amazon_id.pattern,
            captured_id=amazon_id.asin,
        )

    shopify_match = SHOPIFY_PRODUCT_PATTERN.search(value)
    if shopify_match:
        return ClassificationResult(
            kind=UrlKind.SHOPIFY,
            matched_pattern="shopify_collection_product" if shopify_match.group(1) else "shopify_product",
            captured_id=shopify_match.group(2),
        )

    return ClassificationResult()
