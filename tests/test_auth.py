import httpx
import pytest
import respx

from catalogsync.errors import DependencyUnavailable

from payloads import TOKEN_URL, request_form


def test_token_is_fetched_once_and_reused(tokens):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "abc", "expires_in": 3600})
        )
        assert tokens.token() == "abc"
        assert tokens.token() == "abc"
    assert route.call_count == 1
    form = request_form(route.calls.last.request)
    assert form == {"grant_type": "client_credentials", "client_id": "client-id", "client_secret": "client-secret"}


def test_token_refreshed_after_expiry(tokens, clock):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(TOKEN_URL).mock(
            side_effect=[
                httpx.Response(200, json={"access_token": "first", "expires_in": 600}),
                httpx.Response(200, json={"access_token": "second", "expires_in": 600}),
            ]
        )
        assert tokens.token() == "first"
        clock.advance(seconds=500)
        assert tokens.token() == "first"
        clock.advance(seconds=60)
        assert tokens.token() == "second"
    assert route.call_count == 2


def test_token_without_expiry_lasts_for_the_process(tokens, clock):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"access_token": "forever"}))
        tokens.token()
        clock.advance(days=30)
        assert tokens.token() == "forever"
    assert route.call_count == 1


def test_token_endpoint_failure_is_dependency_unavailable(tokens):
    with respx.mock(assert_all_called=True) as router:
        router.post(TOKEN_URL).mock(return_value=httpx.Response(401, json={"error": "invalid_client"}))
        with pytest.raises(DependencyUnavailable):
            tokens.token()


def test_missing_access_token_is_dependency_unavailable(tokens):
    with respx.mock(assert_all_called=True) as router:
        router.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "bearer"}))
        with pytest.raises(DependencyUnavailable):
            tokens.token()
