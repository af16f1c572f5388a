import httpx
import pytest

from canvas_provisioning.client import SharePointApiError, SharePointClient, SharePointNotFoundError


def _build_client(handler: httpx.MockTransport, *, retry_count: int = 3) -> SharePointClient:
    async_client = httpx.AsyncClient(transport=handler, base_url="http://contoso.local/sites/s")
    return SharePointClient(async_client, retry_count=retry_count, retry_delay=0)


@pytest.mark.anyio
async def test_get_json_success() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/sites/s/_api/web"
        assert request.url.params["$select"] == "ServerRelativeUrl"
        return httpx.Response(200, json={"ServerRelativeUrl": "/sites/s"})

    client = _build_client(httpx.MockTransport(handler))
    result = await client.get_json("/_api/web", params={"$select": "ServerRelativeUrl"})
    assert result == {"ServerRelativeUrl": "/sites/s"}
    await client.aclose()


@pytest.mark.anyio
async def test_http_error_includes_details() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="Access denied from mock")

    client = _build_client(httpx.MockTransport(handler))
    with pytest.raises(SharePointApiError) as exc:
        await client.get_json("/_api/web/lists")
    assert exc.value.status_code == 403
    assert "403" in str(exc.value)
    assert "Access denied from mock" in str(exc.value)
    assert not isinstance(exc.value, SharePointNotFoundError)
    await client.aclose()


@pytest.mark.anyio
async def test_missing_resource_raises_not_found() -> None:
    client = _build_client(httpx.MockTransport(lambda req: httpx.Response(404, text="File Not Found.")))
    with pytest.raises(SharePointNotFoundError) as exc:
        await client.get_json("/_api/web/GetList(@u)")
    assert exc.value.status_code == 404
    await client.aclose()


@pytest.mark.anyio
async def test_timeout_surface_readable_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TimeoutException("mock timeout", request=request)

    client = _build_client(httpx.MockTransport(handler))
    with pytest.raises(SharePointApiError) as exc:
        await client.get_json("/_api/web")
    assert "timed out" in str(exc.value)
    assert exc.value.status_code is None
    await client.aclose()


@pytest.mark.anyio
async def test_invalid_json_is_reported() -> None:
    client = _build_client(httpx.MockTransport(lambda req: httpx.Response(200, text="<html>")))
    with pytest.raises(SharePointApiError) as exc:
        await client.get_json("/_api/web")
    assert "invalid JSON" in str(exc.value)
    await client.aclose()


@pytest.mark.anyio
async def test_throttled_requests_are_retried() -> None:
    attempts = []

    async def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            return httpx.Response(429, headers={"Retry-After": "0"})
        if len(attempts) == 2:
            return httpx.Response(503, text="Server busy")
        return httpx.Response(200, json={"ServerRelativeUrl": "/sites/s"})

    client = _build_client(httpx.MockTransport(handler))
    result = await client.get_json("/_api/web")
    assert result["ServerRelativeUrl"] == "/sites/s"
    assert len(attempts) == 3
    await client.aclose()


@pytest.mark.anyio
async def test_retries_give_up_after_retry_count() -> None:
    attempts = []

    async def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(429)

    client = _build_client(httpx.MockTransport(handler), retry_count=2)
    with pytest.raises(SharePointApiError) as exc:
        await client.get_json("/_api/web")
    assert exc.value.status_code == 429
    assert "3 attempts" in str(exc.value)
    assert len(attempts) == 3
    await client.aclose()
