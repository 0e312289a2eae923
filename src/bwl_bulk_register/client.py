"""Blueworks Live REST API client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import (
    AUTH_API_PATH,
    AUTH_API_VERSION,
    PROVISION_API_PATH,
    PROVISION_API_VERSION,
    RunConfig,
)

logger = logging.getLogger(__name__)


class BlueworksClient:
    """Client for the Blueworks Live Auth and user provisioning APIs.

    Every request carries the HTTP Basic authentication header built from
    the configured credentials. No retries are made.
    """

    def __init__(
        self,
        config: RunConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: run configuration with credentials, account and server
            transport: optional httpx transport (tests pass a MockTransport)
        """
        self.server = config.server
        self.account = config.account
        self._auth = httpx.BasicAuth(config.username, config.password.get_secret_value())
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(auth=self._auth, transport=self._transport)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> BlueworksClient:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def auth_url(self) -> str:
        return f"{self.server}{AUTH_API_PATH}"

    def provision_url(self, service_provider_address: str | None = None) -> str:
        """Provisioning URL on the account's service provider, or the default server."""
        base = (service_provider_address or self.server).rstrip("/")
        return f"{base}{PROVISION_API_PATH}"

    def authenticate(self) -> httpx.Response:
        """Call the Auth API (``GET``) for the configured account."""
        params = {"version": AUTH_API_VERSION, "account": self.account}
        logger.debug(f"GET {self.auth_url()} params={params}")
        return self.client.get(self.auth_url(), params=params)

    def provision_user(
        self, body: dict[str, Any], service_provider_address: str | None = None
    ) -> httpx.Response:
        """Send one user provisioning request (``PUT``).

        Raises:
            httpx.RequestError: the request could not be completed or its body not decoded
        """
        url = self.provision_url(service_provider_address)
        headers = {"Version": PROVISION_API_VERSION, "Content-Type": "application/json"}
        logger.debug(f"PUT {url} account={self.account} body={body}")
        return self.client.put(url, params={"account": self.account}, headers=headers, json=body)
