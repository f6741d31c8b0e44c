import pytest
from storewizard.classifiers.url_classifier import (
    classify,
    extract_amazon_id,
    is_aliexpress_host,
    match_aliexpress_item,
    match_partial_aliexpress,
)
from storewizard.models.schemas import UrlKind

# =============================================================================
# AliExpress
# =============================================================================

@pytest.mark.parametrize("url, item_id", [
    ("https://www.aliexpress.com/item/1005001234567890.html", "1005001234567890"),
    ("https://fr.aliexpress.com/item/1005009828380377.html?spm=a2g0o&gps-id=x", "1005009828380377"),
    ("aliexpress.us/item/3256805.htm", "3256805"),
    ("HTTPS://WWW.ALIEXPRESS.COM/ITEM/42.HTML", "42"),
])
def test_classify_aliexpress_item(url, item_id):
    result = classify(url)
    assert result.kind == UrlKind.ALIEXPRESS
    assert result.matched_pattern == "aliexpress_item"
    assert result.captured_id == item_id

def test_aliexpress_requires_host_boundary():
    assert classify("https://notaliexpress.com/item/123.html").kind == UrlKind.UNKNOWN

def test_aliexpress_without_extension_is_not_an_item():
    assert match_aliexpress_item("https://www.aliexpress.com/item/1005001234") is None
    assert classify("https://www.aliexpress.com/item/1005001234").kind == UrlKind.UNKNOWN

def test_partial_aliexpress():
    assert match_partial_aliexpress("https://www.aliexpress.com/item/1005001234") is True
    assert match_partial_aliexpress("https://www.aliexpress.com/item/1005001234.html") is False
    assert match_partial_aliexpress("https://www.aliexpress.com/store/123") is False
    assert match_partial_aliexpress(None) is False  # type: ignore

def test_is_aliexpress_host():
    assert is_aliexpress_host("https://www.aliexpress.com/store/123") is True
    assert is_aliexpress_host("aliexpress.us") is True
    assert is_aliexpress_host("https://notaliexpress.com/store/123") is False
    assert is_aliexpress_host("https://aliexpress.company.com/") is False
    assert is_aliexpress_host(None) is False  # type: ignore

# =============================================================================
# Amazon
# =============================================================================

@pytest.mark.parametrize("url, asin, pattern", [
    ("https://www.amazon.com/dp/B08N5WRWNW", "B08N5WRWNW", "amazon_dp"),
    ("https://www.amazon.co.uk/Some-Product-Name/dp/B08N5WRWNW/ref=sr_1_1", "B08N5WRWNW", "amazon_dp"),
    ("amazon.fr/gp/product/B08N5WRWNW?th=1", "B08N5WRWNW", "amazon_gp_product"),
    ("https://www.amazon.de/gp/aw/d/B08N5WRWNW", "B08N5WRWNW", "amazon_path_variant"),
    ("https://www.amazon.com/gp/offer-listing/B08N5WRWNW", "B08N5WRWNW", "amazon_path_variant"),
    ("https://www.amazon.com/o/ASIN/B08N5WRWNW", "B08N5WRWNW", "amazon_path_variant"),
    ("https://www.amazon.com/product/detail/B08N5WRWNW", "B08N5WRWNW", "amazon_path_variant"),
    ("https://www.amazon.com/s?k=mug&asin=B08N5WRWNW", "B08N5WRWNW", "amazon_asin_query"),
    ("https://amzn.eu/d1a2b3c4d5", "d1a2b3c4d5", "amazon_short_link"),
    ("B08N5WRWNW", "B08N5WRWNW", "amazon_bare_asin"),
])
def test_classify_amazon(url, asin, pattern):
    result = classify(url)
    assert result.kind == UrlKind.AMAZON
    assert result.captured_id == asin
    assert result.matched_pattern == pattern

def test_extract_amazon_id_keeps_tld_chain():
    amazon_id = extract_amazon_id("https://www.amazon.com.mx/dp/B08N5WRWNW")
    assert amazon_id.asin == "B08N5WRWNW"
    assert amazon_id.tld == "com.mx"

def test_extract_amazon_id_dp_wins_over_query():
    amazon_id = extract_amazon_id("https://www.amazon.com/dp/B000000001?asin=B000000002")
    assert amazon_id.asin == "B000000001"
    assert amazon_id.pattern == "amazon_dp"

def test_amazon_path_without_amazon_host_is_not_amazon():
    assert classify("https://example.com/dp/B08N5WRWNW").kind == UrlKind.UNKNOWN

def test_amazon_id_must_be_ten_characters():
    assert classify("https://www.amazon.com/dp/B08N5WRW").kind == UrlKind.UNKNOWN
    assert classify("https://www.amazon.com/dp/B08N5WRWNWXX").kind == UrlKind.UNKNOWN

def test_lowercase_bare_token_is_not_an_asin():
    assert extract_amazon_id("b08n5wrwnw") is None

# =============================================================================
# Shopify
# =============================================================================

def test_classify_shopify_product():
    result = classify("https://mystore.com/products/cool-mug?variant=123")
    assert result.kind == UrlKind.SHOPIFY
    assert result.matched_pattern == "shopify_product"
    assert result.captured_id == "cool-mug"

def test_classify_shopify_collection_product():
    result = classify("mystore.com/collections/all/products/cool-mug?variant=123#reviews")
    assert result.kind == UrlKind.SHOPIFY
    assert result.matched_pattern == "shopify_collection_product"
    assert result.captured_id == "cool-mug"

def test_collections_only_is_unknown():
    assert classify("https://mystore.com/collections/all").kind == UrlKind.UNKNOWN

def test_aliexpress_takes_priority_over_shopify():
    result = classify("https://www.aliexpress.com/item/123.html?from=/products/x")
    assert result.kind == UrlKind.ALIEXPRESS

def test_amazon_takes_priority_over_shopify():
    result = classify("https://www.amazon.com/products/dp/B08N5WRWNW")
    assert result.kind == UrlKind.AMAZON

# =============================================================================
# Unknown
# =============================================================================

@pytest.mark.parametrize("value", ["", "   ", "hello world", "https://example.com", None, 42])
def test_classify_unknown_never_raises(value):
    result = classify(value)
    assert result.kind == UrlKind.UNKNOWN
    assert result.matched_pattern is None
    assert result.captured_id is None
    assert result.is_known is False

def test_classify_trims_input():
    assert classify("  B08N5WRWNW  ").kind == UrlKind.AMAZON
