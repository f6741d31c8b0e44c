import json

import httpx
import pytest
from pydantic import SecretStr
from storewizard.services.generation_service import StoreGenerationService
from storewizard.utils.errors import ErrorHandler, GenerationError

URL = "https://www.amazon.fr/dp/B08N5WRWNW"


def make_service(fast_settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StoreGenerationService(settings=fast_settings, client=client)


@pytest.mark.asyncio
async def test_generate_success(fast_settings):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"productId": "prod_42", "content": {"title": "Mug"}})

    service = make_service(fast_settings, handler)
    result = await service.generate(URL, "fr")

    assert result.product_id == "prod_42"
    assert result.content == {"title": "Mug"}
    assert str(requests[0].url) == "http://backend.test/api/ai/generate-store"
    assert json.loads(requests[0].content) == {"productUrl": URL, "language": "fr"}

@pytest.mark.asyncio
async def test_generate_sends_auth_header(fast_settings):
    settings = fast_settings.model_copy(update={"api_token": SecretStr("secret-token")})
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={"productId": "p"})

    await make_service(settings, handler).generate(URL, "en")
    assert seen["authorization"] == "Bearer secret-token"

@pytest.mark.asyncio
async def test_generate_error_message_is_verbatim(fast_settings):
    service = make_service(
        fast_settings,
        lambda request: httpx.Response(422, json={"error": "This product is no longer available"}),
    )
    with pytest.raises(GenerationError) as exc:
        await service.generate(URL, "en")

    assert str(exc.value) == "This product is no longer available"
    assert exc.value.status_code == 422
    assert ErrorHandler.categorize_error(exc.value) == "REQUEST_ERROR"

@pytest.mark.asyncio
async def test_generate_error_without_json_body(fast_settings):
    service = make_service(fast_settings, lambda request: httpx.Response(502, text="Bad Gateway"))
    with pytest.raises(GenerationError) as exc:
        await service.generate(URL, "en")
    assert str(exc.value) == "Bad Gateway"
    assert ErrorHandler.is_retryable(exc.value) is True

@pytest.mark.asyncio
async def test_generate_error_with_empty_body(fast_settings):
    service = make_service(fast_settings, lambda request: httpx.Response(500))
    with pytest.raises(GenerationError) as exc:
        await service.generate(URL, "en")
    assert str(exc.value) == "HTTP 500"

@pytest.mark.asyncio
async def test_generate_malformed_payload(fast_settings):
    service = make_service(fast_settings, lambda request: httpx.Response(200, json={"content": {}}))
    with pytest.raises(GenerationError) as exc:
        await service.generate(URL, "en")
    assert "Malformed" in str(exc.value)

@pytest.mark.asyncio
async def test_generate_transport_error_is_not_retried(fast_settings):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationError) as exc:
        await make_service(fast_settings, handler).generate(URL, "en")

    assert len(attempts) == 1
    assert isinstance(exc.value.__cause__, httpx.ConnectError)

@pytest.mark.asyncio
async def test_generate_timeout(fast_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GenerationError) as exc:
        await make_service(fast_settings, handler).generate(URL, "en")
    assert "timed out" in str(exc.value)
    assert ErrorHandler.categorize_error(exc.value) == "TIMEOUT_ERROR"
