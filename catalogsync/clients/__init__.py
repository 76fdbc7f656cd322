"""Platform client factories."""

from __future__ import annotations

from catalogsync.clients.auth import AccessTokenProvider
from catalogsync.clients.erp import ErpClient
from catalogsync.clients.storefront import StorefrontClient
from catalogsync.config import Settings
from catalogsync.errors import DependencyUnavailable


def build_storefront_client(settings: Settings) -> StorefrontClient:
    return StorefrontClient(
        settings.storefront_url,
        settings.storefront_access_token,
        timeout=settings.http_timeout,
    )


def build_erp_client(settings: Settings) -> ErpClient:
    if not settings.erp_configured:
        raise DependencyUnavailable("ERP credentials are not configured")
    tokens = AccessTokenProvider(
        settings.erp_token_url,
        settings.erp_client_id,
        settings.erp_client_secret,
    )
    return ErpClient(settings.erp_api_url, tokens, timeout=settings.http_timeout)
