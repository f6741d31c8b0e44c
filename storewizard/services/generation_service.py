"""
Store generation collaborator.

Issues the authoritative ``generate-store`` call. Failures are fatal to the
generation run and are raised as ``GenerationError`` carrying the backend's
message verbatim; no automatic retry is performed.
"""

from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from storewizard.models.schemas import GenerationResult
from storewizard.services.base import BackendClient
from storewizard.utils.errors import GenerationError
from storewizard.utils.logger import get_logger

logger = get_logger(__name__)


def _error_message(response: httpx.Response) -> str:
    """The backend's own error text, falling back to the status line."""
    try:
        data: Any = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    text = response.text.strip()
    return text[:200] if text else f"HTTP {response.status_code}"


class StoreGenerationService(BackendClient):
    """Client of the store generation endpoint."""

    GENERATE_PATH = "/api/ai/generate-store"

    async def generate(self, url: str, language: str) -> GenerationResult:
        """
        Generate the store content for a product link.

        Args:
            url: Canonical product link
            language: ISO 639-1 code of the generated content

        Returns:
            The product identifier and generated content.

        Raises:
            GenerationError: On transport errors, non-2xx responses and
                malformed payloads.
        """
        client = await self.connect()
        endpoint = self._endpoint(self.GENERATE_PATH)

        logger.info("Requesting store generation", url=url, language=language)

        try:
            response = await client.post(
                endpoint,
                json={"productUrl": url, "language": language},
                headers=self._headers(),
                timeout=self.settings.generation_timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise GenerationError(
                f"Store generation timed out after {self.settings.generation_timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Could not reach the generation service: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.error(
                "Store generation rejected",
                status_code=response.status_code,
                error=message,
            )
            raise GenerationError(message, status_code=response.status_code)

        try:
            return GenerationResult.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise GenerationError(
                "Malformed response from the generation service",
                status_code=response.status_code,
                details={"error": str(e)},
            ) from e
