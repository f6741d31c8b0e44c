"""Product link classification and canonicalization."""

from storewizard.classifiers.canonicalizer import canonicalize, has_trailing_content
from storewizard.classifiers.url_classifier import classify, extract_amazon_id

__all__ = [
    "classify",
    "extract_amazon_id",
    "canonicalize",
    "has_trailing_content",
]
