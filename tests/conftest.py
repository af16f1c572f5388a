from collections.abc import AsyncIterator

import httpx
import pytest

from canvas_provisioning.client import SharePointClient
from canvas_provisioning.web import ClientContext
from tests.fakes import FakeSite


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
async def context(site: FakeSite) -> AsyncIterator[ClientContext]:
    async_client = httpx.AsyncClient(
        transport=httpx.MockTransport(site.handler),
        base_url="http://contoso.local",
    )
    ctx = ClientContext(SharePointClient(async_client, retry_delay=0))
    yield ctx
    await ctx.aclose()
