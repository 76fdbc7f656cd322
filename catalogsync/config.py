"""Environment-backed settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HTTP_TIMEOUT = 30.0
ERP_VARIABLES = ("ERP_API_URL", "ERP_TOKEN_URL", "ERP_CLIENT_ID", "ERP_CLIENT_SECRET")


@dataclass(frozen=True, slots=True)
class Settings:
    storefront_url: str
    storefront_access_token: str
    erp_api_url: str | None = None
    erp_token_url: str | None = None
    erp_client_id: str | None = None
    erp_client_secret: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    purchase_ledger_path: str | None = None

    @property
    def erp_configured(self) -> bool:
        return all((self.erp_api_url, self.erp_token_url, self.erp_client_id, self.erp_client_secret))

    @classmethod
    def from_env(cls, *, require_erp: bool = True) -> "Settings":
        """Build settings from the environment; a missing required variable raises KeyError.

        The ERP variables are only required when ``require_erp`` is set, so
        storefront-only entry points can run without ERP credentials.
        """
        missing = [name for name in ERP_VARIABLES if name not in os.environ]
        if require_erp and missing:
            raise KeyError(missing[0])
        erp_api_url = os.environ.get("ERP_API_URL")
        return cls(
            storefront_url=os.environ["STOREFRONT_URL"].rstrip("/"),
            storefront_access_token=os.environ["STOREFRONT_ACCESS_TOKEN"].strip(),
            erp_api_url=erp_api_url.rstrip("/") if erp_api_url else None,
            erp_token_url=os.environ.get("ERP_TOKEN_URL"),
            erp_client_id=os.environ.get("ERP_CLIENT_ID"),
            erp_client_secret=os.environ.get("ERP_CLIENT_SECRET"),
            http_timeout=float(os.environ.get("HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
            purchase_ledger_path=os.environ.get("PURCHASE_LEDGER_PATH"),
        )


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
