import httpx
import pytest

from catalogsync.clients.auth import AccessTokenProvider
from catalogsync.clients.erp import ErpClient
from catalogsync.clients.storefront import StorefrontClient

from payloads import ERP, SHOP, TOKEN_URL, FakeClock


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def storefront(sleeps):
    client = StorefrontClient(SHOP, "shpat_test", sleep=sleeps.append)
    yield client
    client.close()


@pytest.fixture()
def tokens(clock):
    provider = AccessTokenProvider(TOKEN_URL, "client-id", "client-secret", clock=clock)
    yield provider
    provider.close()


@pytest.fixture()
def erp(tokens, sleeps):
    client = ErpClient(ERP, tokens, sleep=sleeps.append)
    yield client
    client.close()


@pytest.fixture()
def token_route():
    def install(router, token="erp-token", expires_in=3600):
        return router.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": token, "expires_in": expires_in})
        )

    return install
