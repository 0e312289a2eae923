"""Discovery of the service provider that hosts the account."""

import logging

import httpx
from pydantic import ValidationError

from .client import BlueworksClient
from .errors import AuthError
from .models import AuthResponse

logger = logging.getLogger(__name__)


def resolve_service_provider(client: BlueworksClient) -> str | None:
    """Query the Auth API for the account's service provider address.

    Returns:
        The service provider URL, or None when the account is hosted on the
        default server itself

    Raises:
        AuthError: the probe could not be sent, did not return 200, had an
            unreadable body or reported a status other than ``authenticated``
    """
    try:
        response = client.authenticate()
    except httpx.RequestError as e:
        raise AuthError(f"request to {client.auth_url()} failed: {e}") from e

    if response.status_code != httpx.codes.OK:
        raise AuthError(
            f"error calling the Blueworks Live REST API: {response.reason_phrase}",
            response.status_code,
        )

    try:
        auth = AuthResponse.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise AuthError(f"unexpected response from the Auth API: {e}", response.status_code) from e

    if not auth.authenticated:
        raise AuthError(f"user has incorrect status={auth.result}", response.status_code)

    if auth.service_provider_address:
        logger.info(f"Service provider address is {auth.service_provider_address}")
    else:
        logger.info("Account is hosted on the default server")
    return auth.service_provider_address or None
