"""
Product preview collaborator.

Fetches the title, image, description and price shown while the store is
generated. Shopify product pages expose a public ``.json`` endpoint that is
read directly; AliExpress and Amazon previews go through the backend.

Previews are best effort: every failure yields ``ProductPreview(success=False)``.
"""

import html
import re
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from storewizard.classifiers.canonicalizer import canonicalize
from storewizard.classifiers.url_classifier import classify
from storewizard.models.schemas import ProductPreview, UrlKind
from storewizard.services.base import BackendClient
from storewizard.utils.errors import PreviewError
from storewizard.utils.logger import get_logger

logger = get_logger(__name__)

DESCRIPTION_MAX_LENGTH = 200
TITLE_AS_DESCRIPTION_MAX_LENGTH = 150

TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_html_description(raw_html: Optional[str]) -> str:
    """Strip tags, decode entities and collapse whitespace."""
    if not isinstance(raw_html, str) or not raw_html:
        return ""
    text = TAG_PATTERN.sub(" ", raw_html)
    text = html.unescape(text)
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    return text


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a response body that must be a JSON object."""
    data = response.json()
    if not isinstance(data, dict):
        raise PreviewError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _first_variant_price(product: dict[str, Any]) -> Optional[float]:
    variants = _as_list(product.get("variants"))
    if not variants or not isinstance(variants[0], dict):
        return None
    if variants[0].get("price") in (None, ""):
        return None
    try:
        return float(variants[0]["price"])
    except (TypeError, ValueError):
        return None


class ProductPreviewService(BackendClient):
    """Best-effort product preview fetcher."""

    PREVIEW_PATH = "/api/ai/fetch-product-preview"

    async def fetch_preview(self, url: str) -> ProductPreview:
        """
        Fetch a preview for a product link.

        Never raises; a failed preview only means no checkpoint arrives.
        """
        kind = classify(url).kind

        try:
            if kind == UrlKind.UNKNOWN:
                return ProductPreview(success=False)
            if kind == UrlKind.SHOPIFY:
                return await self.fetch_shopify_preview(url)
            return await self.fetch_backend_preview(url)
        except (PreviewError, httpx.HTTPError, PydanticValidationError, ValueError) as e:
            logger.warning("Product preview failed", url=url, kind=str(kind), error=str(e))
            return ProductPreview(success=False)

    async def fetch_shopify_preview(self, url: str) -> ProductPreview:
        """Read the public ``<product-url>.json`` endpoint of a Shopify store."""
        json_url = canonicalize(url) + ".json"
        data = await self._get_json(json_url)

        product = data.get("product")
        if not isinstance(product, dict) or not product:
            raise PreviewError("Product not found in Shopify response")

        images = [
            image["src"]
            for image in _as_list(product.get("images"))
            if isinstance(image, dict) and image.get("src")
        ]
        description = clean_html_description(product.get("body_html"))[:DESCRIPTION_MAX_LENGTH]

        logger.info("Shopify preview fetched", url=json_url, images=len(images))

        return ProductPreview(
            success=True,
            title=product.get("title") or "Untitled Product",
            description=description,
            image=images[0] if images else None,
            price=_first_variant_price(product),
        )

    async def fetch_backend_preview(self, url: str) -> ProductPreview:
        """Ask the backend for an AliExpress or Amazon preview."""
        data = await self._post_json(self._endpoint(self.PREVIEW_PATH), {"productUrl": url})
        if data.get("error"):
            raise PreviewError(str(data["error"]))

        preview = ProductPreview.model_validate(data)
        if preview.success and not preview.description and preview.title:
            title = preview.title
            if len(title) > TITLE_AS_DESCRIPTION_MAX_LENGTH:
                title = title[:TITLE_AS_DESCRIPTION_MAX_LENGTH] + "..."
            preview = preview.model_copy(update={"description": title})
        return preview

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def _get_json(self, url: str) -> dict[str, Any]:
        # Storefront hosts are user supplied: never send the backend token there
        client = await self.connect()
        response = await client.get(
            url,
            headers=self._headers(authenticated=False),
            timeout=self.settings.preview_timeout_seconds,
        )
        response.raise_for_status()
        return _json_object(response)

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def _post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self.connect()
        response = await client.post(
            url,
            json=payload,
            headers=self._headers(),
            timeout=self.settings.preview_timeout_seconds,
        )
        response.raise_for_status()
        return _json_object(response)
